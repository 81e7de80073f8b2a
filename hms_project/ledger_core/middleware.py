from django.utils.deprecation import MiddlewareMixin
from .models import Company


class CurrentCompanyMiddleware(MiddlewareMixin):
    # Attach a .company attribute to every request, based on the logged-in user
    def process_request(self, request):
        if not request.user.is_authenticated:
            request.company = None
            return

        # default company fallback when the user did not pick one
        request.company = getattr(request.user, "default_company", None)

        # a switched company is stored in the session as "active_company_id"
        company_id = request.session.get("active_company_id")
        if company_id:
            # the user must be a member of that company; a tampered session gets nothing
            request.company = Company.objects.filter(
                id=company_id, memberships__user=request.user
            ).first()
