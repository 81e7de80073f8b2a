from decimal import Decimal
from django.contrib import admin
from django.db.models import Prefetch
from django.utils.html import format_html
from ledger_core.models import AccountingEntry, AccountingEntryLine
from .inlines import AccountingEntryLineInline
from .mixins import TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin


# Register `AccountingEntry` model; entries are posted by services only
@admin.register(AccountingEntry)
class AccountingEntryAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = (
        "id",
        "company",
        "entry_date",
        "source_module",
        "source_id",
        "financial_period",
        "created_by",
        "balanced",
    )
    list_filter = ("company", "source_module", "entry_date")
    search_fields = ("source_id", "description", "id")
    inlines = [AccountingEntryLineInline]

    # Fetch everything in one SQL join
    def get_queryset(self, request):
        qs = super().get_queryset(request)
        line_qs = AccountingEntryLine.objects.select_related("account")
        return qs.select_related("company", "created_by", "financial_period").prefetch_related(
            Prefetch("lines", queryset=line_qs)
        )

    # Show total debits / total credits for each entry
    @admin.display(description="Debits / Credits")
    def balanced(self, obj):
        d, c = obj.compute_totals()
        return format_html(
            "<b>{}</b> / <small>{}</small>",
            d or Decimal("0.000"),
            c or Decimal("0.000"),
        )


@admin.register(AccountingEntryLine)
class AccountingEntryLineAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = ("entry", "line_no", "account", "debit", "credit", "description")
    list_filter = ("account__ac_type",)
    search_fields = ("account__code", "description")

    # lines carry no company column of their own
    def get_queryset(self, request):
        qs = super(TenantAdminMixin, self).get_queryset(request).select_related("entry", "account")
        if request.user.is_superuser:
            return qs
        company = self._get_request_company(request)
        return qs.filter(entry__company=company) if company else qs.none()
