from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..exceptions import ImmutableRecordError
from ..managers import TenantManager
from .entitymembership import Company
from .journal import AccountingEntry
from .period import FinancialPeriod, FinancialYear


class AssetStatus(models.TextChoices):
    IN_SERVICE = "IN_SERVICE", "In service"
    FULLY_DEPRECIATED = "FULLY_DEPRECIATED", "Fully depreciated"
    DISPOSED = "DISPOSED", "Disposed"


# ---------- Fixed Assets ----------
class FixedAsset(models.Model):
    """Long-lived hospital equipment depreciated straight-line, monthly."""

    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    asset_code = models.CharField(max_length=80)
    name = models.CharField(max_length=400)  # "CT scanner, radiology wing"
    purchase_date = models.DateField(null=True, blank=True)
    purchase_cost = models.DecimalField(max_digits=18, decimal_places=3, default=Decimal("0"))
    salvage_value = models.DecimalField(max_digits=18, decimal_places=3, default=Decimal("0"))
    useful_life_years = models.PositiveIntegerField()
    # Book value: purchase_cost - accumulated_depreciation
    current_value = models.DecimalField(max_digits=18, decimal_places=3, default=Decimal("0"))
    accumulated_depreciation = models.DecimalField(
        max_digits=18, decimal_places=3, default=Decimal("0")
    )
    status = models.CharField(
        max_length=20, choices=AssetStatus.choices, default=AssetStatus.IN_SERVICE
    )

    objects = TenantManager()

    class Meta:
        indexes = [models.Index(fields=["company", "status"], name="fa_company_status_idx")]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "asset_code"], name="uq_fa_company_asset_code"
            )
        ]

    def __str__(self):
        return f"{self.asset_code} {self.name}"

    @property
    def monthly_depreciation(self):
        months = Decimal(self.useful_life_years * 12)
        return (self.purchase_cost - self.salvage_value) / months

    def clean(self):
        if not self.useful_life_years or self.useful_life_years <= 0:
            raise ValidationError("Useful life must be > 0")
        if self.purchase_cost < 0:
            raise ValidationError("Purchase cost must be >= 0")
        if self.salvage_value < 0 or self.salvage_value > self.purchase_cost:
            raise ValidationError("Salvage value must be between 0 and purchase cost")

    def save(self, *args, **kwargs):
        # a new asset starts at full book value
        if not self.pk and not self.current_value:
            self.current_value = self.purchase_cost - self.accumulated_depreciation
        self.full_clean()
        return super().save(*args, **kwargs)


class AssetDepreciation(models.Model):
    """One monthly depreciation charge; at most one per asset and period."""

    company = models.ForeignKey(Company, on_delete=models.PROTECT)
    asset = models.ForeignKey(
        FixedAsset, on_delete=models.PROTECT, related_name="depreciations"
    )
    financial_year = models.ForeignKey(FinancialYear, on_delete=models.PROTECT)
    financial_period = models.ForeignKey(FinancialPeriod, on_delete=models.PROTECT)
    amount = models.DecimalField(max_digits=18, decimal_places=3)
    book_value_after = models.DecimalField(max_digits=18, decimal_places=3)
    accounting_entry = models.OneToOneField(
        AccountingEntry, on_delete=models.PROTECT, related_name="asset_depreciation"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["asset", "financial_year", "financial_period"],
                name="uq_asset_depreciation_period",
            )
        ]

    def __str__(self):
        return f"{self.asset.asset_code} {self.financial_period.code}: {self.amount}"

    def save(self, *args, **kwargs):
        if self.pk and AssetDepreciation.objects.filter(pk=self.pk).exists():
            raise ImmutableRecordError("Depreciation rows cannot be changed.")
        return super().save(*args, **kwargs)
