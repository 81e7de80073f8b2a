import logging
from django.db import transaction
from django.utils import timezone
from ..exceptions import InvalidAmount, InvalidStateError, OverpaymentError
from ..models import (Charge, ChargeSource, InvoiceStatus, OrderPaymentStatus,
                      Payment, PaymentMethod, ServiceOrder, SourceModule,
                      SystemAccountKey)
from ..money import ZERO, amount_epsilon, to_money
from .accounts import resolve_system_account
from .billing import get_invoice_for_update, issue_invoice
from .posting import post_entry

logger = logging.getLogger(__name__)

# card and transfer receipts land in the bank, the rest in the main cash box
BANK_METHODS = (PaymentMethod.CARD, PaymentMethod.BANK_TRANSFER)
ORDER_SOURCES = (ChargeSource.LAB_ORDER, ChargeSource.RADIOLOGY_ORDER)


def receipt_account(company, method):
    key = SystemAccountKey.BANK_MAIN if method in BANK_METHODS else SystemAccountKey.CASH_MAIN
    return resolve_system_account(company, key)


def settle_dependent_orders(invoice):
    """Mark lab / radiology orders behind the invoice's charges as PAID."""
    order_ids = list(
        Charge.objects.filter(
            invoice=invoice, source_type__in=ORDER_SOURCES, source_id__isnull=False
        ).values_list("source_id", flat=True)
    )
    if not order_ids:
        return 0
    updated = (
        ServiceOrder.objects.filter(company_id=invoice.company_id, pk__in=order_ids)
        .exclude(payment_status=OrderPaymentStatus.PAID)
        .update(payment_status=OrderPaymentStatus.PAID, updated_at=timezone.now())
    )
    logger.debug("Invoice %s released %s dependent orders", invoice.pk, updated)
    return updated


def _status_for_remaining(remaining):
    # status follows the total remaining (patient + insurer), not the patient share
    if remaining <= amount_epsilon():
        return InvoiceStatus.PAID
    return InvoiceStatus.PARTIALLY_PAID


@transaction.atomic
def record_payment(company, invoice_id, amount, method, reference=None, cashier=None):
    """
    Apply a cashier receipt to an invoice.

    Workflow:
        1. Lock the invoice row; validate tenant, state and amount.
        2. A DRAFT invoice with charges is issued first, so its BILLING
           entry exists before anything settles against patients AR.
        3. amount == 0 confirms a fully covered invoice: status only, no
           Payment and no CASHIER entry. Repeating it changes nothing.
        4. amount > 0 stores a Payment, raises paid_amount, recomputes the
           status and posts one CASHIER entry (cash or bank / patients AR).
           An amount within epsilon above the liability is applied as the
           liability itself.
        5. Once the patient share is settled, dependent orders are released.

    Any failure, including a closed posting period, rolls all of it back.
    Returns {"status", "paid_amount", "payment_id"}.
    """
    amount = to_money(amount)
    if amount < 0:
        raise InvalidAmount("Payment amount cannot be negative.")
    if method not in PaymentMethod.values:
        raise InvalidAmount(f"Unknown payment method {method!r}.")

    invoice = get_invoice_for_update(company, invoice_id)
    if invoice.is_credit_note:
        raise InvalidStateError("Payments cannot be recorded against a credit note.")
    if invoice.status == InvoiceStatus.CANCELLED:
        raise InvalidStateError(f"Invoice {invoice.pk} is cancelled.")

    eps = amount_epsilon()
    patient_share = invoice.effective_patient_share
    liability = max(ZERO, patient_share - invoice.paid_amount)
    if amount > liability + eps:
        raise OverpaymentError(
            f"Amount {amount} exceeds the remaining patient liability {liability}."
        )
    # Payment, entry and paid_amount all carry the applied amount
    amount = min(amount, liability)

    # revenue and receivables are recognised before any settlement
    if invoice.status == InvoiceStatus.DRAFT and invoice.total_amount > 0:
        issue_invoice(invoice, user=cashier)

    if amount == 0:
        new_status = _status_for_remaining(invoice.remaining_amount)
        # a settled invoice never moves back
        if invoice.status == InvoiceStatus.PAID:
            new_status = InvoiceStatus.PAID
        if invoice.status != new_status:
            invoice.transition_to(new_status)
            invoice.save(update_fields=["status"])
            logger.info("Invoice %s confirmed as %s without payment", invoice.pk, new_status)
        else:
            logger.debug("Zero payment on invoice %s changed nothing", invoice.pk)

        if invoice.paid_amount >= patient_share - eps or new_status == InvoiceStatus.PAID:
            settle_dependent_orders(invoice)
        return {"status": invoice.status, "paid_amount": invoice.paid_amount, "payment_id": None}

    if invoice.status == InvoiceStatus.PAID:
        raise InvalidStateError(f"Invoice {invoice.pk} is already paid.")

    payment = Payment.objects.create(
        company=company,
        invoice=invoice,
        amount=amount,
        method=method,
        cashier=cashier if getattr(cashier, "pk", None) else None,
        reference=(reference or "")[:100],
    )

    new_paid = invoice.paid_amount + amount
    invoice.paid_amount = new_paid
    invoice.transition_to(_status_for_remaining(invoice.net_amount - new_paid))
    invoice.save(update_fields=["paid_amount", "status"])

    post_entry(
        company=company,
        entry_date=timezone.localdate(payment.paid_at),
        description=f"Payment {payment.pk} on invoice {invoice.pk} ({method})",
        source_module=SourceModule.CASHIER,
        source_id=str(payment.pk),
        lines=[
            {
                "account": receipt_account(company, method),
                "debit": amount,
                "credit": ZERO,
                "description": f"Receipt {payment.pk}",
            },
            {
                "account": resolve_system_account(company, SystemAccountKey.RECEIVABLE_PATIENTS),
                "debit": ZERO,
                "credit": amount,
                "description": f"Patient {invoice.patient_id}, invoice {invoice.pk}",
            },
        ],
        user=cashier,
    )

    if new_paid >= patient_share - eps:
        settle_dependent_orders(invoice)

    logger.info(
        "Payment %s of %s recorded on invoice %s, now %s (paid %s)",
        payment.pk, amount, invoice.pk, invoice.status, invoice.paid_amount,
    )
    return {"status": invoice.status, "paid_amount": invoice.paid_amount, "payment_id": payment.pk}
