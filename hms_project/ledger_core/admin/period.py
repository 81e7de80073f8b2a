from django.contrib import admin
from ledger_core.models import FinancialPeriod, FinancialYear
from .actions import (close_periods, generate_periods, make_current_year,
                      open_years, reopen_periods)
from .inlines import FinancialPeriodInline
from .mixins import TenantAdminMixin


# Register `FinancialYear` model
@admin.register(FinancialYear)
class FinancialYearAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("code", "company", "start_date", "end_date", "status", "is_current",
                    "closed_at")
    list_filter = ("company", "status", "is_current")
    search_fields = ("code", "name")
    # status, current flag and closing are driven by the calendar services
    readonly_fields = ("status", "is_current", "closed_at", "closed_by", "closing_entry")
    inlines = [FinancialPeriodInline]
    actions = [open_years, make_current_year, generate_periods]


# Register `FinancialPeriod` model
@admin.register(FinancialPeriod)
class FinancialPeriodAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("code", "financial_year", "company", "start_date", "end_date", "status")
    list_filter = ("company", "status", "financial_year")
    search_fields = ("code",)
    readonly_fields = ("status", "closed_at", "closed_by")
    actions = [close_periods, reopen_periods]

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("financial_year", "company")
