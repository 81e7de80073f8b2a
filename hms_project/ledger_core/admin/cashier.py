from django.contrib import admin
from ledger_core.models import CashierShiftClosing
from .mixins import TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin


@admin.register(CashierShiftClosing)
class CashierShiftClosingAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = (
        "id",
        "cashier",
        "range_start",
        "range_end",
        "system_cash_total",
        "actual_cash_total",
        "difference",
        "accounting_entry",
    )
    list_filter = ("company", "cashier")
    date_hierarchy = "range_start"

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("cashier", "accounting_entry")
