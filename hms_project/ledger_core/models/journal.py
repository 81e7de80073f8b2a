from decimal import Decimal
from django.conf import settings
from django.db import models
from ..exceptions import ImmutableRecordError
from ..managers import TenantManager
from .account import Account
from .entitymembership import Company
from .period import FinancialPeriod, FinancialYear


class SourceModule(models.TextChoices):
    BILLING = "BILLING", "Billing"
    CASHIER = "CASHIER", "Cashier payment"
    CASHIER_SHIFT = "CASHIER_SHIFT", "Cashier shift variance"
    CLOSING = "CLOSING", "Year-end closing"
    DEPRECIATION = "DEPRECIATION", "Asset depreciation"
    MANUAL = "MANUAL", "Manual entry"
    OPENING = "OPENING", "Opening balances"


# ---------- Accounting entry (Header) & lines ----------
class AccountingEntry(models.Model):
    """
    One balanced money movement. Written together with its lines by
    services.posting and never changed afterwards; corrections are new
    entries pointing back through `reversal_of`.
    """

    company = models.ForeignKey(Company, on_delete=models.PROTECT)
    entry_date = models.DateField()
    description = models.CharField(max_length=400, blank=True, default="")

    # Producing subsystem + correlation id back to its record
    source_module = models.CharField(max_length=20, choices=SourceModule.choices)
    source_id = models.CharField(max_length=64, blank=True, default="")
    reversal_of = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="reversals",
    )

    # Filled from the calendar at posting time
    financial_year = models.ForeignKey(
        FinancialYear, on_delete=models.PROTECT, related_name="entries"
    )
    financial_period = models.ForeignKey(
        FinancialPeriod, on_delete=models.PROTECT, related_name="entries"
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
        verbose_name_plural = "accounting entries"
        indexes = [
            models.Index(fields=["company", "entry_date"], name="ae_company_date_idx"),
            models.Index(fields=["company", "source_module", "source_id"], name="ae_company_source_idx"),
        ]
        constraints = [
            # one entry per producing record (payment, invoice, shift, ...)
            models.UniqueConstraint(
                fields=["company", "source_module", "source_id"],
                condition=~models.Q(source_id=""),
                name="uq_entry_company_source",
            )
        ]
        ordering = ("company", "entry_date", "id")

    def __str__(self):
        return f"AE {self.pk} {self.entry_date} {self.source_module}:{self.source_id}"

    # Aggregate all debit and credit amounts across entry's lines
    def compute_totals(self):
        aggs = self.lines.aggregate(
            total_debit=models.Sum("debit"),
            total_credit=models.Sum("credit"),
        )
        return (
            aggs["total_debit"] or Decimal("0"),
            aggs["total_credit"] or Decimal("0"),
        )

    def is_balanced(self):
        debit, credit = self.compute_totals()
        return debit == credit

    def save(self, *args, **kwargs):
        if self.pk and AccountingEntry.objects.filter(pk=self.pk).exists():
            raise ImmutableRecordError(
                "Accounting entries are immutable; post a reversing entry instead."
            )
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError("Accounting entries cannot be deleted.")


class AccountingEntryLine(models.Model):
    """One debit or credit leg of an AccountingEntry."""

    entry = models.ForeignKey(
        AccountingEntry, on_delete=models.PROTECT, related_name="lines"
    )
    line_no = models.PositiveSmallIntegerField(default=1)
    account = models.ForeignKey(Account, on_delete=models.PROTECT, related_name="lines")
    debit = models.DecimalField(max_digits=18, decimal_places=3, default=Decimal("0"))
    credit = models.DecimalField(max_digits=18, decimal_places=3, default=Decimal("0"))
    description = models.CharField(max_length=400, blank=True, default="")

    class Meta:
        ordering = ("entry", "line_no")
        indexes = [models.Index(fields=["account", "entry"], name="ael_account_entry_idx")]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(debit__gte=0) & models.Q(credit__gte=0),
                name="ck_line_non_negative",
            ),
            # exactly one side carries the amount
            models.CheckConstraint(
                condition=(
                    (models.Q(debit__gt=0) & models.Q(credit=0))
                    | (models.Q(credit__gt=0) & models.Q(debit=0))
                ),
                name="ck_line_one_sided",
            ),
        ]

    def __str__(self):
        side = f"Dr {self.debit}" if self.debit else f"Cr {self.credit}"
        return f"{self.account.code} {side}"

    def save(self, *args, **kwargs):
        if self.pk and AccountingEntryLine.objects.filter(pk=self.pk).exists():
            raise ImmutableRecordError("Entry lines cannot be edited once posted.")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError("Entry lines cannot be deleted.")
