from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .entitymembership import Company


class YearStatus(models.TextChoices):
    DRAFT = "DRAFT", "Draft"
    OPEN = "OPEN", "Open"
    CLOSED = "CLOSED", "Closed"
    ARCHIVED = "ARCHIVED", "Archived"


class PeriodStatus(models.TextChoices):
    OPEN = "OPEN", "Open"
    CLOSED = "CLOSED", "Closed"


# ---------- Financial year ----------
class FinancialYear(models.Model):
    """
    Fiscal year of one hospital.
    DRAFT -> OPEN -> CLOSED -> ARCHIVED. Postings land only in OPEN years.
    Dates are inclusive: start_date <= d <= end_date.
    """

    company = models.ForeignKey(Company, on_delete=models.PROTECT)
    year = models.PositiveIntegerField()
    code = models.CharField(max_length=20)  # "FY-2025"
    name = models.CharField(max_length=100)
    start_date = models.DateField()
    end_date = models.DateField()
    status = models.CharField(
        max_length=10, choices=YearStatus.choices, default=YearStatus.DRAFT
    )
    is_current = models.BooleanField(default=False)

    closed_at = models.DateTimeField(null=True, blank=True)
    closed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    # entry that swept revenue / expense into retained earnings
    closing_entry = models.OneToOneField(
        "AccountingEntry",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="closed_year",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "status"], name="fy_company_status_idx"),
            models.Index(fields=["company", "start_date"], name="fy_company_start_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["company", "code"], name="uq_company_year_code"
            ),
            # one "current" year per hospital
            models.UniqueConstraint(
                fields=["company"],
                condition=models.Q(is_current=True),
                name="uq_company_current_year",
            ),
        ]
        ordering = ("company", "-start_date")

    def __str__(self):
        return f"{self.code} [{self.status}]"

    def covers(self, date):
        return self.start_date <= date <= self.end_date

    def clean(self):
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValidationError("end_date must be after start_date")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def transition_to(self, new_status):
        allowed = {
            YearStatus.DRAFT: [YearStatus.OPEN],
            YearStatus.OPEN: [YearStatus.CLOSED],
            YearStatus.CLOSED: [YearStatus.ARCHIVED],
            YearStatus.ARCHIVED: [],
        }
        if new_status not in allowed.get(self.status, []):
            raise ValidationError(
                f"Cannot move financial year from {self.status} to {new_status}"
            )
        self.status = new_status


# ---------- Financial period ----------
class FinancialPeriod(models.Model):
    """Usually one calendar month of a FinancialYear."""

    company = models.ForeignKey(Company, on_delete=models.PROTECT)
    financial_year = models.ForeignKey(
        FinancialYear, on_delete=models.PROTECT, related_name="periods"
    )
    period_index = models.PositiveSmallIntegerField()  # 1..12
    code = models.CharField(max_length=20)  # "2025-07"
    start_date = models.DateField()
    end_date = models.DateField()
    status = models.CharField(
        max_length=10, choices=PeriodStatus.choices, default=PeriodStatus.OPEN
    )
    closed_at = models.DateTimeField(null=True, blank=True)
    closed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "start_date"], name="fp_company_start_idx"),
            models.Index(fields=["company", "status"], name="fp_company_status_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["financial_year", "period_index"],
                name="uq_year_period_index",
            ),
        ]
        ordering = ("company", "start_date")

    def __str__(self):
        return f"{self.code} [{self.status}]"

    @property
    def is_open(self):
        return self.status == PeriodStatus.OPEN

    def covers(self, date):
        return self.start_date <= date <= self.end_date

    def clean(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValidationError("start_date must not be after end_date")
        if self.financial_year_id:
            fy = self.financial_year
            if fy.company_id != self.company_id:
                raise ValidationError("Period and year must belong to the same company")
            if self.start_date < fy.start_date or self.end_date > fy.end_date:
                raise ValidationError("Period must lie inside its financial year")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
