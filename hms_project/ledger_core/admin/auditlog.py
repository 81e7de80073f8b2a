from django.contrib import admin

from ledger_core.models import AuditLog

from .mixins import TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin


# Register `AuditLog` model
# the trail is append-only: ReadOnlyAdmin blocks add / change / delete
@admin.register(AuditLog)
class AuditLogAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = (
        "id",
        "created_at",
        "company",
        "user",
        "action",  # "close_year", "close_shift", "cancel", "credit_note" ...
        "object_type",
        "object_id",
    )
    # look up everything that happened to e.g. invoice 42 or shift 7
    search_fields = ("object_type", "object_id", "user__username", "action")
    list_filter = ("company", "action", "object_type")
    date_hierarchy = "created_at"  # drill down by year / month / day
    ordering = ("-created_at", "-id")  # newest first

    # Fetch hospital and user in one SQL join
    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("company", "user")
