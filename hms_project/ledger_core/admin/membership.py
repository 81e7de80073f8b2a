from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin
from django.db.models import Count, OuterRef, Q, Subquery
from django.utils.translation import gettext_lazy as _
from ledger_core.models import Company, EntityMembership, FinancialYear, User
from .forms import UserAdminChangeForm, UserAdminCreationForm
from .mixins import TenantAdminMixin

# roles allowed to grant / revoke access to a hospital
MANAGER_ROLES = ("owner", "admin")


# Register `Company` (hospital / facility) model
@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    """One row per hospital, with the year its cashiers are posting into."""

    # columns shown in hospital list view
    list_display = ("id", "name", "slug", "currency_code", "current_year", "active_cashiers",
                    "created_at")
    search_fields = ("name", "slug")  # search by name or slug
    ordering = ("name",)

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        current = FinancialYear.objects.filter(company=OuterRef("pk"), is_current=True)
        # both columns computed in the list query, not per row
        return qs.annotate(
            current_year_code=Subquery(current.values("code")[:1]),
            cashier_count=Count(
                "memberships",
                filter=Q(memberships__role="cashier", memberships__is_active=True),
            ),
        )

    @admin.display(description=_("Current year"), ordering="current_year_code")
    def current_year(self, obj):
        # empty until a year is opened and made current
        return obj.current_year_code or "-"

    @admin.display(description=_("Cashiers"), ordering="cashier_count")
    def active_cashiers(self, obj):
        return obj.cashier_count


# Extend stock `DjangoUserAdmin` for hospital staff
@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    # custom forms carry default_company and phone
    add_form = UserAdminCreationForm
    form = UserAdminChangeForm
    model = User

    list_display = (
        "username", "email", "get_full_name", "is_staff", "default_company")
    # "memberships__role" finds every cashier across the visible hospitals
    list_filter = ("is_staff", "is_superuser", "is_active", "memberships__role")
    search_fields = ("username", "email", "first_name", "last_name", "phone")
    ordering = ("username",)

    fieldsets = (
        (None, {"fields": ("username", "password")}),
        (_("Personal info"), {"fields":
                              ("first_name", "last_name", "email", "phone")}),
        # the hospital the middleware picks when the user logs in
        (_("Hospital"), {"fields": ("default_company",)}),
        (
            _("Permissions"),
            {
                "fields": (
                    "is_active",
                    "is_staff",
                    "is_superuser",
                    "groups",
                    "user_permissions",
                ),
            },
        ),
        (_("Important dates"), {"fields": ("last_login", "date_joined")}),
    )

    # new staff get a default hospital straight away
    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": (
                    "username",
                    "email",
                    "default_company",
                    "password1",
                    "password2",
                ),
            },
        ),
    )

    # Tenant scoping:
    # staff only see users sharing one of their hospitals
    def get_queryset(self, request):
        qs = super().get_queryset(request)
        if request.user.is_superuser:
            return qs
        allowed_company_ids = request.user.memberships.values_list(
            "company_id", flat=True
        )
        # a user in two shared hospitals would otherwise show twice
        return qs.filter(
            memberships__company_id__in=allowed_company_ids).distinct()


# Register EntityMembership model (who works where, in which role)
@admin.register(EntityMembership)
class EntityMembershipAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("user", "company", "role", "is_active", "created_at")
    list_filter = ("role", "is_active", "company")
    search_fields = ("user__username", "user__email", "company__name")
    readonly_fields = ("created_at",)  # creation date is not editable
    ordering = ("company__name", "user__username")

    def get_queryset(self, request):
        # user and hospital in one SQL join
        return super().get_queryset(request).select_related("company", "user")

    def _managed_company_ids(self, request):
        # hospitals where the current user is owner / admin
        return set(
            request.user.memberships.filter(role__in=MANAGER_ROLES).values_list(
                "company_id", flat=True
            )
        )

    # Permission checks:
    # only owners / admins of a hospital manage its memberships.
    # Revoking a cashier here also stops them closing shifts for that hospital.
    def has_change_permission(self, request, obj=None):
        if request.user.is_superuser:
            return True
        managed = self._managed_company_ids(request)
        if obj is None:
            # changelist access: manager somewhere is enough
            return bool(managed)
        return obj.company_id in managed

    def has_delete_permission(self, request, obj=None):
        return self.has_change_permission(request, obj)

    def has_add_permission(self, request):
        if request.user.is_superuser:
            return True
        return bool(self._managed_company_ids(request))
