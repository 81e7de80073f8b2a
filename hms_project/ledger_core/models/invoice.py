from decimal import Decimal
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone
from ..exceptions import ImmutableRecordError
from ..managers import TenantManager
from .entitymembership import Company

ZERO = Decimal("0.000")


class InvoiceStatus(models.TextChoices):
    DRAFT = "DRAFT", "Draft"
    ISSUED = "ISSUED", "Issued"
    PARTIALLY_PAID = "PARTIALLY_PAID", "Partially paid"
    PAID = "PAID", "Paid"
    CANCELLED = "CANCELLED", "Cancelled"


class InvoiceType(models.TextChoices):
    INVOICE = "INVOICE", "Invoice"
    CREDIT_NOTE = "CREDIT_NOTE", "Credit note"


class ClaimStatus(models.TextChoices):
    NONE = "NONE", "No claim"
    PENDING = "PENDING", "Pending"
    SUBMITTED = "SUBMITTED", "Submitted"
    APPROVED = "APPROVED", "Approved"
    REJECTED = "REJECTED", "Rejected"


class ServiceType(models.TextChoices):
    OUTPATIENT = "OUTPATIENT", "Outpatient"
    INPATIENT = "INPATIENT", "Inpatient"
    LAB = "LAB", "Laboratory"
    RADIOLOGY = "RADIOLOGY", "Radiology"
    PHARMACY = "PHARMACY", "Pharmacy"


class ChargeSource(models.TextChoices):
    SERVICE = "SERVICE", "Service"
    LAB_ORDER = "LAB_ORDER", "Lab order"
    RADIOLOGY_ORDER = "RADIOLOGY_ORDER", "Radiology order"
    PHARMACY = "PHARMACY", "Pharmacy dispense"


class PaymentMethod(models.TextChoices):
    CASH = "CASH", "Cash"
    CARD = "CARD", "Card"
    BANK_TRANSFER = "BANK_TRANSFER", "Bank transfer"
    CHEQUE = "CHEQUE", "Cheque"
    OTHER = "OTHER", "Other"


# ---------- Invoice ----------
class Invoice(models.Model):
    """
    Patient invoice, or a credit note reversing one (invoice_type=CREDIT_NOTE).

    remaining = total_amount - discount_amount - paid_amount, never negative.
    patient_share + insurance_share covers total_amount - discount_amount;
    rows where both shares are 0 are old cash invoices, fully patient-liable.
    """

    company = models.ForeignKey(Company, on_delete=models.PROTECT)
    # Registration / encounters live in other modules; only their ids are kept
    patient_id = models.BigIntegerField(db_index=True)
    encounter_id = models.BigIntegerField(null=True, blank=True, db_index=True)

    invoice_type = models.CharField(
        max_length=20, choices=InvoiceType.choices, default=InvoiceType.INVOICE
    )
    original_invoice = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="credit_notes",
    )
    status = models.CharField(
        max_length=20, choices=InvoiceStatus.choices, default=InvoiceStatus.DRAFT
    )

    total_amount = models.DecimalField(max_digits=18, decimal_places=3, default=ZERO)
    discount_amount = models.DecimalField(max_digits=18, decimal_places=3, default=ZERO)
    paid_amount = models.DecimalField(max_digits=18, decimal_places=3, default=ZERO)
    patient_share = models.DecimalField(max_digits=18, decimal_places=3, default=ZERO)
    insurance_share = models.DecimalField(max_digits=18, decimal_places=3, default=ZERO)
    claim_status = models.CharField(
        max_length=20, choices=ClaimStatus.choices, default=ClaimStatus.NONE
    )
    currency = models.CharField(max_length=10, default="LYD")

    cancel_reason = models.CharField(max_length=400, blank=True, default="")
    issued_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(default=timezone.now)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "status"], name="inv_company_status_idx"),
            models.Index(fields=["company", "patient_id"], name="inv_company_patient_idx"),
            models.Index(fields=["company", "created_at"], name="inv_company_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(paid_amount__gte=0)
                & models.Q(discount_amount__gte=0)
                & models.Q(patient_share__gte=0)
                & models.Q(insurance_share__gte=0),
                name="ck_invoice_non_negative",
            ),
        ]
        ordering = ("company", "created_at", "id")

    def __str__(self):
        prefix = "CN" if self.is_credit_note else "INV"
        return f"{prefix}-{self.pk} [{self.status}] {self.total_amount}"

    @property
    def is_credit_note(self):
        return self.invoice_type == InvoiceType.CREDIT_NOTE

    @property
    def net_amount(self):
        return self.total_amount - self.discount_amount

    @property
    def remaining_amount(self):
        return self.total_amount - self.discount_amount - self.paid_amount

    @property
    def effective_patient_share(self):
        # old cash invoices never recorded a split; the patient owes the net
        # (total less discount), which keeps paid_amount <= net_amount
        if self.patient_share == 0 and self.insurance_share == 0 and self.net_amount > 0:
            return self.net_amount
        return self.patient_share

    @property
    def remaining_patient_liability(self):
        return max(ZERO, self.effective_patient_share - self.paid_amount)

    def clean(self):
        if self.discount_amount > self.total_amount:
            raise ValidationError("Discount cannot exceed the invoice total.")
        if self.paid_amount > self.net_amount:
            raise ValidationError("Paid amount cannot exceed total minus discount.")
        if self.original_invoice_id and self.original_invoice.company_id != self.company_id:
            raise ValidationError("Credit note must belong to the original invoice's company.")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    # Control status changes
    def transition_to(self, new_status):
        allowed = {
            InvoiceStatus.DRAFT: [
                InvoiceStatus.ISSUED,
                InvoiceStatus.PARTIALLY_PAID,
                InvoiceStatus.PAID,
                InvoiceStatus.CANCELLED,
            ],
            InvoiceStatus.ISSUED: [
                InvoiceStatus.PARTIALLY_PAID,
                InvoiceStatus.PAID,
                InvoiceStatus.CANCELLED,
            ],
            InvoiceStatus.PARTIALLY_PAID: [
                InvoiceStatus.PARTIALLY_PAID,
                InvoiceStatus.PAID,
                InvoiceStatus.CANCELLED,
            ],
            InvoiceStatus.PAID: [],
            InvoiceStatus.CANCELLED: [],
        }
        if new_status not in allowed.get(self.status, []):
            raise ValidationError(f"Cannot go from {self.status} to {new_status}")
        self.status = new_status


# ---------- Charges & dependent orders ----------
class Charge(models.Model):
    """Billable line produced by clinical modules; uninvoiced while invoice is null."""

    company = models.ForeignKey(Company, on_delete=models.PROTECT)
    patient_id = models.BigIntegerField()
    encounter_id = models.BigIntegerField(db_index=True)
    invoice = models.ForeignKey(
        Invoice,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="charges",
    )
    service_type = models.CharField(
        max_length=20, choices=ServiceType.choices, default=ServiceType.OUTPATIENT
    )
    source_type = models.CharField(
        max_length=20, choices=ChargeSource.choices, default=ChargeSource.SERVICE
    )
    source_id = models.BigIntegerField(null=True, blank=True)
    description = models.CharField(max_length=400, blank=True, default="")
    quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal("1"))
    unit_price = models.DecimalField(max_digits=18, decimal_places=3, default=ZERO)
    total_amount = models.DecimalField(max_digits=18, decimal_places=3, default=ZERO)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        indexes = [models.Index(fields=["company", "encounter_id", "invoice"], name="charge_company_enc_idx")]

    def __str__(self):
        return f"{self.service_type} {self.description} {self.total_amount}"

    def save(self, *args, **kwargs):
        if not self.total_amount:
            self.total_amount = (self.quantity * self.unit_price).quantize(Decimal("0.001"))
        return super().save(*args, **kwargs)


class OrderPaymentStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PAID = "PAID", "Paid"


class ServiceOrder(models.Model):
    """Lab / radiology order; released for processing once payment is settled."""

    ORDER_TYPES = [("LAB", "Laboratory"), ("RADIOLOGY", "Radiology")]

    company = models.ForeignKey(Company, on_delete=models.PROTECT)
    encounter_id = models.BigIntegerField()
    order_type = models.CharField(max_length=20, choices=ORDER_TYPES)
    payment_status = models.CharField(
        max_length=10,
        choices=OrderPaymentStatus.choices,
        default=OrderPaymentStatus.PENDING,
    )
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    def __str__(self):
        return f"{self.order_type} order {self.pk} [{self.payment_status}]"


# ---------- Payment ----------
class Payment(models.Model):
    """Money received against an invoice. Never edited; zero payments are not stored."""

    company = models.ForeignKey(Company, on_delete=models.PROTECT)
    invoice = models.ForeignKey(Invoice, on_delete=models.PROTECT, related_name="payments")
    amount = models.DecimalField(max_digits=18, decimal_places=3)
    method = models.CharField(max_length=20, choices=PaymentMethod.choices)
    cashier = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="payments_received",
    )
    reference = models.CharField(max_length=100, blank=True, default="")
    paid_at = models.DateTimeField(default=timezone.now)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "paid_at"], name="pay_company_paid_at_idx"),
            models.Index(fields=["company", "cashier", "paid_at"], name="pay_company_cashier_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(amount__gt=0), name="ck_payment_positive"),
        ]
        ordering = ("paid_at", "id")

    def __str__(self):
        return f"PAY-{self.pk} {self.method} {self.amount}"

    def save(self, *args, **kwargs):
        if self.pk and Payment.objects.filter(pk=self.pk).exists():
            raise ImmutableRecordError("Payments cannot be edited once recorded.")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError("Payments cannot be deleted.")
