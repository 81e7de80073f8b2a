from django.contrib import admin
from ledger_core.models import AssetDepreciation, FixedAsset
from .mixins import TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin


# Register `FixedAsset` model
@admin.register(FixedAsset)
class FixedAssetAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "asset_code",
        "name",
        "purchase_date",
        "purchase_cost",
        "salvage_value",
        "useful_life_years",
        "current_value",
        "status",
    )
    list_filter = ("company", "status")
    search_fields = ("asset_code", "name")
    # book value is maintained by the depreciation run
    readonly_fields = ("current_value", "accumulated_depreciation")


@admin.register(AssetDepreciation)
class AssetDepreciationAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = ("asset", "financial_period", "amount", "book_value_after",
                    "accounting_entry", "created_at")
    list_filter = ("company", "financial_year")

    def get_queryset(self, request):
        return super().get_queryset(request).select_related(
            "asset", "financial_period", "accounting_entry"
        )
