from django.contrib import admin
from ledger_core.models import (AccountingEntryLine, Charge, FinancialPeriod,
                                Payment)

# ---------- Helpful inline admin classes ----------


class ReadOnlyInline(admin.TabularInline):
    extra = 0
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False


class AccountingEntryLineInline(ReadOnlyInline):
    """Show the lines of an entry, in posting order"""

    model = AccountingEntryLine
    fields = ("line_no", "account", "description", "debit", "credit")
    ordering = ("line_no",)

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("account")


class FinancialPeriodInline(ReadOnlyInline):
    model = FinancialPeriod
    fields = ("period_index", "code", "start_date", "end_date", "status", "closed_at")
    ordering = ("period_index",)
    show_change_link = True


class ChargeInline(ReadOnlyInline):
    model = Charge
    fields = ("service_type", "source_type", "source_id", "description",
              "quantity", "unit_price", "total_amount")


class PaymentInline(ReadOnlyInline):
    model = Payment
    fields = ("amount", "method", "reference", "cashier", "paid_at")
    ordering = ("paid_at",)
