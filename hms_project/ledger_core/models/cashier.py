from decimal import Decimal
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from ..exceptions import ImmutableRecordError
from ..managers import TenantManager
from .entitymembership import Company
from .journal import AccountingEntry


# ---------- Cashier shift closing ----------
class CashierShiftClosing(models.Model):
    """
    Cash count of one cashier for the half-open window [range_start, range_end).
    difference = actual_cash_total - system_cash_total; a non-zero difference
    is posted and linked through accounting_entry.
    """

    company = models.ForeignKey(Company, on_delete=models.PROTECT)
    cashier = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="shift_closings",
    )
    range_start = models.DateTimeField()
    range_end = models.DateTimeField()
    system_cash_total = models.DecimalField(max_digits=18, decimal_places=3)
    actual_cash_total = models.DecimalField(max_digits=18, decimal_places=3)
    difference = models.DecimalField(max_digits=18, decimal_places=3)
    note = models.CharField(max_length=400, blank=True, default="")
    accounting_entry = models.OneToOneField(
        AccountingEntry,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="shift_closing",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "cashier", "range_start"], name="shift_company_cashier_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(range_end__gt=models.F("range_start")),
                name="ck_shift_range_order",
            ),
            models.CheckConstraint(
                condition=models.Q(actual_cash_total__gte=0),
                name="ck_shift_actual_non_negative",
            ),
        ]
        ordering = ("-range_start",)

    def __str__(self):
        return f"Shift {self.pk} {self.cashier} {self.range_start:%Y-%m-%d %H:%M}"

    @property
    def is_balanced(self):
        return self.difference == Decimal("0")

    def clean(self):
        if self.range_start and self.range_end and self.range_end <= self.range_start:
            raise ValidationError("range_end must be after range_start")

    def save(self, *args, **kwargs):
        if self.pk and CashierShiftClosing.objects.filter(pk=self.pk).exists():
            raise ImmutableRecordError("A closed shift cannot be changed.")
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError("A closed shift cannot be deleted.")
