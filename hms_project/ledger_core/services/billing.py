import logging
from collections import defaultdict
from django.db import transaction
from django.utils import timezone
from ..exceptions import InvalidAmount, InvalidStateError, NotFound, TenantMismatch
from ..models import (Charge, ClaimStatus, Invoice,
                      InvoiceStatus, InvoiceType, ServiceType, SourceModule,
                      SystemAccountKey)
from ..money import ZERO, to_money
from .accounts import resolve_system_account
from .audit_helper import log_action
from .posting import find_entry, post_entry, reverse_entry

logger = logging.getLogger(__name__)

REVENUE_KEYS = {
    ServiceType.OUTPATIENT: SystemAccountKey.REVENUE_OUTPATIENT,
    ServiceType.INPATIENT: SystemAccountKey.REVENUE_INPATIENT,
    ServiceType.LAB: SystemAccountKey.REVENUE_LAB,
    ServiceType.RADIOLOGY: SystemAccountKey.REVENUE_RADIOLOGY,
    ServiceType.PHARMACY: SystemAccountKey.REVENUE_PHARMACY,
}


def get_invoice_for_update(company, invoice_id):
    """
    Lock and return an invoice of `company`.
    A row of another tenant is reported as TenantMismatch, a missing one as NotFound.
    """
    invoice = Invoice.objects.select_for_update().filter(pk=invoice_id).first()
    if invoice is None:
        raise NotFound(f"Invoice {invoice_id} not found")
    if invoice.company_id != company.pk:
        raise TenantMismatch(f"Invoice {invoice_id} not found")
    return invoice


def revenue_split(charges):
    """{SystemAccountKey: amount} of charge totals grouped by service type."""
    split = defaultdict(lambda: ZERO)
    for charge in charges:
        key = REVENUE_KEYS.get(charge.service_type, SystemAccountKey.REVENUE_OUTPATIENT)
        split[key] += to_money(charge.total_amount)
    return dict(split)


def _billing_lines(invoice, split):
    """Debit side: receivables and discount. Credit side: revenue per service type."""
    company = invoice.company
    lines = []
    patient_part = invoice.effective_patient_share
    if patient_part > 0:
        lines.append({
            "account": resolve_system_account(company, SystemAccountKey.RECEIVABLE_PATIENTS),
            "debit": patient_part,
            "credit": ZERO,
            "description": f"Patient share, invoice {invoice.pk}",
        })
    if invoice.insurance_share > 0:
        lines.append({
            "account": resolve_system_account(company, SystemAccountKey.RECEIVABLE_INSURANCE),
            "debit": invoice.insurance_share,
            "credit": ZERO,
            "description": f"Insurance share, invoice {invoice.pk}",
        })
    if invoice.discount_amount > 0:
        lines.append({
            "account": resolve_system_account(company, SystemAccountKey.DISCOUNT_ALLOWED),
            "debit": invoice.discount_amount,
            "credit": ZERO,
            "description": f"Discount, invoice {invoice.pk}",
        })
    for key, amount in sorted(split.items()):
        if amount <= 0:
            continue
        lines.append({
            "account": resolve_system_account(company, key),
            "debit": ZERO,
            "credit": amount,
            "description": f"Revenue, invoice {invoice.pk}",
        })
    return lines


def _swap_sides(lines):
    return [
        {**line, "debit": line["credit"], "credit": line["debit"]}
        for line in lines
    ]


def post_invoice_entry(invoice, user=None):
    split = revenue_split(invoice.charges.all())
    entry = post_entry(
        company=invoice.company,
        entry_date=timezone.localdate(invoice.issued_at or timezone.now()),
        description=f"Invoice {invoice.pk} for patient {invoice.patient_id}",
        source_module=SourceModule.BILLING,
        source_id=str(invoice.pk),
        lines=_billing_lines(invoice, split),
        user=user,
    )
    return entry


@transaction.atomic
def create_invoice_for_encounter(company, encounter_id, patient_id, patient_share=None,
                                 discount_amount=0, claim_status=ClaimStatus.NONE,
                                 issue=True, user=None):
    """
    Bill every uninvoiced charge of an encounter.

    patient_share comes from the insurance module when a policy applies;
    it defaults to the whole net amount (cash patient). An ISSUED invoice
    is posted to the ledger at once.
    """
    charges = list(
        Charge.objects.select_for_update()
        .filter(company=company, encounter_id=encounter_id, invoice__isnull=True)
        .order_by("id")
    )
    if not charges:
        raise InvalidStateError(f"Encounter {encounter_id} has no uninvoiced charges.")

    total = sum((to_money(c.total_amount) for c in charges), ZERO)
    discount = to_money(discount_amount)
    if total <= 0:
        raise InvalidAmount("Invoice total must be positive.")
    if discount < 0 or discount > total:
        raise InvalidAmount("Discount must be between 0 and the invoice total.")
    net = total - discount

    patient_part = net if patient_share is None else to_money(patient_share)
    if patient_part < 0 or patient_part > net:
        raise InvalidAmount("Patient share must be between 0 and the net amount.")

    invoice = Invoice.objects.create(
        company=company,
        patient_id=patient_id,
        encounter_id=encounter_id,
        total_amount=total,
        discount_amount=discount,
        patient_share=patient_part,
        insurance_share=net - patient_part,
        claim_status=claim_status,
        currency=company.currency_code,
        created_by=user if getattr(user, "pk", None) else None,
    )
    Charge.objects.filter(pk__in=[c.pk for c in charges]).update(invoice=invoice)

    if issue:
        issue_invoice(invoice, user=user)
    logger.info(
        "Invoice %s created for encounter %s: total=%s patient=%s insurance=%s",
        invoice.pk, encounter_id, total, invoice.patient_share, invoice.insurance_share,
    )
    log_action(action="create", instance=invoice, user=user,
               changes={"total": str(total), "charges": len(charges)})
    return invoice


@transaction.atomic
def issue_invoice(invoice, user=None):
    inv = Invoice.objects.select_for_update().get(pk=invoice.pk)
    if inv.is_credit_note:
        raise InvalidStateError("A credit note cannot be issued.")
    if inv.status != InvoiceStatus.DRAFT:
        raise InvalidStateError(f"Only a DRAFT invoice can be issued ({inv.status}).")
    inv.transition_to(InvoiceStatus.ISSUED)
    inv.issued_at = timezone.now()
    inv.save(update_fields=["status", "issued_at"])
    post_invoice_entry(inv, user=user)

    # keep the caller's instance in step
    invoice.status = inv.status
    invoice.issued_at = inv.issued_at
    return inv


@transaction.atomic
def cancel_invoice(company, invoice_id, reason, user=None):
    """
    Cancel an unpaid invoice. Its charges become billable again and any
    BILLING entry is reversed, never deleted.
    """
    invoice = get_invoice_for_update(company, invoice_id)
    if invoice.is_credit_note:
        raise InvalidStateError("Credit notes cannot be cancelled.")
    if invoice.status not in (
        InvoiceStatus.DRAFT, InvoiceStatus.ISSUED, InvoiceStatus.PARTIALLY_PAID
    ):
        raise InvalidStateError(f"A {invoice.status} invoice cannot be cancelled.")
    if invoice.payments.exists():
        raise InvalidStateError("Invoice has payments; issue a credit note instead.")

    previous = invoice.status
    invoice.charges.update(invoice=None)
    invoice.transition_to(InvoiceStatus.CANCELLED)
    invoice.cancel_reason = (reason or "")[:400]
    invoice.cancelled_at = timezone.now()
    invoice.save(update_fields=["status", "cancel_reason", "cancelled_at"])

    entry = find_entry(company, SourceModule.BILLING, invoice.pk)
    if entry is not None:
        reverse_entry(
            entry,
            entry_date=timezone.localdate(),
            source_id=f"CANCEL-{invoice.pk}",
            description=f"Cancellation of invoice {invoice.pk}",
            user=user,
        )

    logger.info("Invoice %s cancelled (was %s)", invoice.pk, previous)
    log_action(action="cancel", instance=invoice, user=user,
               changes={"from": previous, "reason": invoice.cancel_reason})
    return invoice


@transaction.atomic
def create_credit_note(company, invoice_id, reason=None, user=None):
    """
    Full return of an issued invoice. The original keeps its charges and
    payments; the credit note carries the mirrored ledger entry.
    """
    original = get_invoice_for_update(company, invoice_id)
    if original.is_credit_note:
        raise InvalidStateError("A credit note cannot be credited again.")
    if original.status not in (
        InvoiceStatus.ISSUED, InvoiceStatus.PARTIALLY_PAID, InvoiceStatus.PAID
    ):
        raise InvalidStateError(f"Cannot credit a {original.status} invoice.")
    if original.credit_notes.exclude(status=InvoiceStatus.CANCELLED).exists():
        raise InvalidStateError(f"Invoice {original.pk} already has a credit note.")
    # only a posted invoice has an entry to mirror
    if find_entry(company, SourceModule.BILLING, original.pk) is None:
        raise InvalidStateError(f"Invoice {original.pk} has no billing entry to credit.")

    credit_note = Invoice.objects.create(
        company=company,
        invoice_type=InvoiceType.CREDIT_NOTE,
        original_invoice=original,
        patient_id=original.patient_id,
        encounter_id=original.encounter_id,
        status=InvoiceStatus.PAID,
        total_amount=original.total_amount,
        discount_amount=original.discount_amount,
        patient_share=original.patient_share,
        insurance_share=original.insurance_share,
        paid_amount=original.net_amount,
        currency=original.currency,
        cancel_reason=(reason or "")[:400],
        issued_at=timezone.now(),
        created_by=user if getattr(user, "pk", None) else None,
    )

    split = revenue_split(original.charges.all())
    post_entry(
        company=company,
        entry_date=timezone.localdate(),
        description=f"Credit note {credit_note.pk} (original invoice {original.pk})",
        source_module=SourceModule.BILLING,
        source_id=str(credit_note.pk),
        lines=_swap_sides(_billing_lines(original, split)),
        user=user,
    )

    logger.info("Credit note %s created for invoice %s", credit_note.pk, original.pk)
    log_action(action="credit_note", instance=original, user=user,
               changes={"credit_note": credit_note.pk, "reason": reason or ""})
    return credit_note
