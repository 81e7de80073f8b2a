from decimal import Decimal
from django.conf import settings
from django.db import models
from django.db.models.functions import Coalesce
from ..exceptions import NotFound, TenantMismatch
from ..models import Invoice, InvoiceStatus, InvoiceType, Payment
from ..money import ZERO, amount_epsilon, to_money

OPEN_STATUSES = (InvoiceStatus.DRAFT, InvoiceStatus.ISSUED, InvoiceStatus.PARTIALLY_PAID)
CREDITING_STATUSES = OPEN_STATUSES + (InvoiceStatus.PAID,)


def _open_invoices(company):
    # credited invoices are settled by their credit note
    return (
        Invoice.objects.for_company(company)
        .filter(invoice_type=InvoiceType.INVOICE, status__in=OPEN_STATUSES)
        .exclude(credit_notes__status__in=CREDITING_STATUSES)
    )


def invoice_summary(inv):
    return {
        "id": inv.pk,
        "patient_id": inv.patient_id,
        "encounter_id": inv.encounter_id,
        "type": inv.invoice_type,
        "status": inv.status,
        "total_amount": inv.total_amount,
        "discount_amount": inv.discount_amount,
        "paid_amount": inv.paid_amount,
        "remaining_amount": inv.remaining_amount,
        "patient_share": inv.patient_share,
        "insurance_share": inv.insurance_share,
        "claim_status": inv.claim_status,
        "currency": inv.currency,
        "created_at": inv.created_at,
    }


def cashier_worklist(company):
    """
    Invoices waiting at the cashier desk, oldest first.
    An invoice is listed while the patient still owes part of their share,
    or when the insurer covers everything but the invoice was never confirmed.
    """
    eps = amount_epsilon()
    result = []
    for inv in _open_invoices(company).order_by("created_at", "id"):
        patient_paid = min(inv.paid_amount, inv.patient_share)
        if inv.patient_share - patient_paid > eps:
            result.append(invoice_summary(inv))
        elif inv.patient_share == 0 and inv.status in (
            InvoiceStatus.DRAFT, InvoiceStatus.ISSUED
        ):
            result.append(invoice_summary(inv))
    return result


def outstanding_patient_liability(company, patient_id) -> Decimal:
    """Sum of what the patient still owes on open invoices."""
    total = ZERO
    for inv in _open_invoices(company).filter(patient_id=patient_id):
        total += inv.remaining_patient_liability
    return to_money(total)


def discharge_blocked(company, patient_id, threshold=None) -> bool:
    if threshold is None:
        threshold = getattr(settings, "LEDGER_DISCHARGE_DEBT_THRESHOLD", "0.000")
    return outstanding_patient_liability(company, patient_id) > to_money(threshold)


def patient_statement(company, patient_id):
    invoices = list(
        Invoice.objects.for_company(company)
        .filter(patient_id=patient_id)
        .exclude(status=InvoiceStatus.CANCELLED)
        .order_by("created_at", "id")
    )
    payments = list(
        Payment.objects.for_company(company)
        .filter(invoice__patient_id=patient_id)
        .select_related("invoice")
        .order_by("paid_at", "id")
    )

    summary = {"total_invoiced": ZERO, "total_discount": ZERO, "total_paid": ZERO,
               "remaining": ZERO}
    for inv in invoices:
        # a credit note offsets its original
        sign = -1 if inv.is_credit_note else 1
        summary["total_invoiced"] += sign * inv.total_amount
        summary["total_discount"] += sign * inv.discount_amount
    summary["total_paid"] = sum((p.amount for p in payments), ZERO)
    summary["remaining"] = outstanding_patient_liability(company, patient_id)

    return {
        "patient_id": patient_id,
        "invoices": [invoice_summary(inv) for inv in invoices],
        "payments": [
            {
                "id": p.pk,
                "invoice_id": p.invoice_id,
                "amount": p.amount,
                "method": p.method,
                "reference": p.reference,
                "paid_at": p.paid_at,
            }
            for p in payments
        ],
        "summary": summary,
    }


def payment_receipt(company, payment_id):
    payment = Payment.objects.select_related("invoice", "cashier").filter(pk=payment_id).first()
    if payment is None:
        raise NotFound(f"Payment {payment_id} not found")
    if payment.company_id != company.pk:
        raise TenantMismatch(f"Payment {payment_id} not found")
    return {
        "payment": {
            "id": payment.pk,
            "amount": payment.amount,
            "method": payment.method,
            "paid_at": payment.paid_at,
            "reference": payment.reference,
            "cashier": payment.cashier.get_username() if payment.cashier else None,
        },
        "invoice": invoice_summary(payment.invoice),
    }


def daily_report(company, start, end):
    """Collections by method in [start, end) plus the invoices raised in that window."""
    payments = Payment.objects.for_company(company).filter(paid_at__gte=start, paid_at__lt=end)
    by_method = {
        row["method"]: {"count": row["count"], "amount": row["amount"]}
        for row in payments.values("method")
        .annotate(count=models.Count("id"), amount=Coalesce(models.Sum("amount"), ZERO))
        .order_by("method")
    }
    invoices = Invoice.objects.for_company(company).filter(
        invoice_type=InvoiceType.INVOICE, created_at__gte=start, created_at__lt=end
    )
    totals = invoices.exclude(status=InvoiceStatus.CANCELLED).aggregate(
        count=models.Count("id"),
        total=Coalesce(models.Sum("total_amount"), ZERO),
        discount=Coalesce(models.Sum("discount_amount"), ZERO),
        paid=Coalesce(models.Sum("paid_amount"), ZERO),
    )
    return {
        "start": start,
        "end": end,
        "payments": {
            "count": sum(v["count"] for v in by_method.values()),
            "total": sum((v["amount"] for v in by_method.values()), ZERO),
            "by_method": by_method,
        },
        "invoices": {
            **totals,
            "cancelled": invoices.filter(status=InvoiceStatus.CANCELLED).count(),
        },
    }
