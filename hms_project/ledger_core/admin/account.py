from django.contrib import admin, messages
from ledger_core.exceptions import LedgerError
from ledger_core.models import Account, SystemAccountMapping
from ledger_core.services.accounts import map_system_account
from .mixins import TenantAdminMixin


# Register `Account` model
@admin.register(Account)
class AccountAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "company",
        "code",
        "name",
        "ac_type",
        "normal_balance",
        "parent",
        "is_active",
    )
    list_filter = ("company", "ac_type", "is_active")
    search_fields = ("code", "name")
    # accounts grouped by company, then sorted by code
    ordering = ("company", "code")
    fieldsets = (
        (
            None,
            {
                "fields": (
                    "company",
                    "code",
                    "name",
                    "ac_type",
                    "normal_balance",
                    "parent",
                    "is_active",
                )
            },
        ),
    )

    def save_model(self, request, obj, form, change):
        # a referenced account refuses code / type changes
        try:
            super().save_model(request, obj, form, change)
        except LedgerError as e:
            self.message_user(request, f"{obj}: {e}", level=messages.ERROR)


@admin.register(SystemAccountMapping)
class SystemAccountMappingAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("key", "account", "company", "is_active", "updated_at")
    list_filter = ("company", "is_active", "key")
    search_fields = ("key", "account__code", "account__name")
    readonly_fields = ("is_active", "updated_at")

    # repointing goes through the service so only one binding stays active
    def save_model(self, request, obj, form, change):
        company = self._get_request_company(request) if not request.user.is_superuser else obj.company
        mapping = map_system_account(company, obj.key, obj.account)
        # the admin redirects to the saved row
        obj.pk = mapping.pk

    def has_delete_permission(self, request, obj=None):
        return False

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("company", "account")
