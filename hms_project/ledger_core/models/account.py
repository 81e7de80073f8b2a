from django.core.exceptions import ValidationError
from django.db import models
from ..exceptions import ImmutableRecordError
from ..managers import TenantManager
from .entitymembership import Company

# Choice Lists
AC_TYPES = [
    ("asset", "Asset"),
    ("liability", "Liability"),
    ("equity", "Equity"),
    ("revenue", "Revenue"),
    ("expense", "Expense"),
]

# Define whether the account normally increases
# on the debit side or credit side
NORMAL_BALANCE = [
    ("debit", "Debit"),
    ("credit", "Credit"),
]

DEFAULT_NORMAL_BALANCE = {
    "asset": "debit",
    "expense": "debit",
    "liability": "credit",
    "equity": "credit",
    "revenue": "credit",
}


class Account(models.Model):
    """
    Ledger account in the hospital's Chart of Accounts.
    - code is unique per company
    - ac_type decides Balance Sheet vs P&L, and what year-end closing sweeps
    - normal_balance is the side a positive balance is reported on
    - once a posted line references it, code / type / normal side are frozen
    """

    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    code = models.CharField(max_length=32)
    name = models.CharField(max_length=200)  # "Main Cash", "Patients Receivable"
    ac_type = models.CharField(max_length=10, choices=AC_TYPES)
    normal_balance = models.CharField(max_length=6, choices=NORMAL_BALANCE, blank=True)
    # Optional hierarchy (e.g. 1001 Cash > 100100 Main Cash)
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="children",
    )
    # "soft deactivate": hide in UI, stop new postings, keep history
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    # Fields a posted line depends on
    FROZEN_FIELDS = ("company_id", "code", "ac_type", "normal_balance")

    class Meta:
        indexes = [
            models.Index(fields=["company", "ac_type"], name="acct_company_type_idx"),
            models.Index(fields=["company", "code"], name="acct_company_code_idx"),
        ]
        constraints = [
            # codes repeat across hospitals but are unique within one
            models.UniqueConstraint(
                fields=["company", "code"], name="uq_company_account_code"
            )
        ]
        ordering = ("company", "code")

    def __str__(self):
        return f"{self.code} – {self.name}"

    @property
    def is_income_statement(self):
        return self.ac_type in ("revenue", "expense")

    def is_referenced(self):
        from .journal import AccountingEntryLine

        return AccountingEntryLine.objects.filter(account_id=self.pk).exists()

    def clean(self):
        if self.parent and self.parent.company_id != self.company_id:
            raise ValidationError(
                "Parent & child accounts must belong to the same company"
            )

    def save(self, *args, **kwargs):
        if not self.normal_balance:
            self.normal_balance = DEFAULT_NORMAL_BALANCE.get(self.ac_type, "debit")

        if not self.pk:
            return super().save(*args, **kwargs)

        old = Account.objects.filter(pk=self.pk).first()
        if old and self.is_referenced():
            changed = [
                f for f in self.FROZEN_FIELDS if getattr(old, f) != getattr(self, f)
            ]
            if changed:
                raise ImmutableRecordError(
                    f"Account {old.code} is used by posted entries; "
                    f"cannot change {', '.join(changed)}."
                )
            # history must stay resolvable to an active account
            if old.is_active and not self.is_active:
                raise ValidationError(
                    "Cannot disable an account that is used in posted entries."
                )
        return super().save(*args, **kwargs)


# ---------- System account roles ----------
class SystemAccountKey(models.TextChoices):
    CASH_MAIN = "CASH_MAIN", "Main cash"
    BANK_MAIN = "BANK_MAIN", "Main bank"
    CASH_SHORT_OVER = "CASH_SHORT_OVER", "Cash short / over"
    RECEIVABLE_PATIENTS = "RECEIVABLE_PATIENTS", "Patients receivable"
    RECEIVABLE_INSURANCE = "RECEIVABLE_INSURANCE", "Insurance receivable"
    REVENUE_OUTPATIENT = "REVENUE_OUTPATIENT", "Outpatient revenue"
    REVENUE_INPATIENT = "REVENUE_INPATIENT", "Inpatient revenue"
    REVENUE_LAB = "REVENUE_LAB", "Laboratory revenue"
    REVENUE_RADIOLOGY = "REVENUE_RADIOLOGY", "Radiology revenue"
    REVENUE_PHARMACY = "REVENUE_PHARMACY", "Pharmacy revenue"
    DISCOUNT_ALLOWED = "DISCOUNT_ALLOWED", "Discount allowed"
    RETAINED_EARNINGS = "RETAINED_EARNINGS", "Retained earnings"
    DEPRECIATION_EXPENSE = "DEPRECIATION_EXPENSE", "Depreciation expense"
    ACCUMULATED_DEPRECIATION = "ACCUMULATED_DEPRECIATION", "Accumulated depreciation"


class SystemAccountMapping(models.Model):
    """
    Binds a symbolic role (CASH_MAIN, CASH_SHORT_OVER, ...) to an Account.
    Resolved inside every posting transaction; an admin may repoint it at any time.
    """

    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    key = models.CharField(max_length=40, choices=SystemAccountKey.choices)
    account = models.ForeignKey(
        Account, on_delete=models.PROTECT, related_name="system_mappings"
    )
    is_active = models.BooleanField(default=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        constraints = [
            # at most one active binding per role per hospital
            models.UniqueConstraint(
                fields=["company", "key"],
                condition=models.Q(is_active=True),
                name="uq_active_system_account_key",
            )
        ]
        indexes = [models.Index(fields=["company", "key", "is_active"], name="sysmap_company_key_idx")]

    def __str__(self):
        return f"{self.key} -> {self.account.code}"

    def clean(self):
        if self.account_id and self.account.company_id != self.company_id:
            raise ValidationError("Mapped account must belong to the same company.")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
