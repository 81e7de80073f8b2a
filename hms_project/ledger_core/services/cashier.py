import datetime
import logging
from django.contrib.auth import get_user_model
from django.db import models, transaction
from django.db.models.functions import Coalesce
from ..exceptions import InvalidAmount, OverlappingShiftError, TenantMismatch
from ..models import (CashierShiftClosing, EntityMembership, Payment, PaymentMethod,
                      SourceModule, SystemAccountKey)
from ..money import ZERO, to_money
from .accounts import resolve_system_account
from .audit_helper import log_action
from .posting import post_entry

logger = logging.getLogger(__name__)


def _cash_collected(company, cashier, start, end):
    return to_money(
        Payment.objects.filter(
            company=company,
            cashier=cashier,
            method=PaymentMethod.CASH,
            paid_at__gte=start,
            paid_at__lt=end,
        ).aggregate(total=Coalesce(models.Sum("amount"), ZERO))["total"]
    )


@transaction.atomic
def close_cashier_shift(company, cashier, range_start, range_end, actual_cash, note=None,
                        user=None):
    """
    Reconcile a cashier's counted cash against recorded CASH payments.

    Workflow:
        1. Lock the cashier's user row so closes for one cashier run one at a time.
        2. Reject any window overlapping an existing closing, [start, end) semantics.
        3. Store the closing with system, actual and difference.
        4. Post the variance, if any: a surplus debits cash and credits
           cash short / over, a shortage the other way round.
    """
    # a night shift entered as 22:00-06:00 ends on the next day
    if range_end <= range_start:
        range_end = range_end + datetime.timedelta(days=1)
    actual = to_money(actual_cash)
    if actual < 0:
        raise InvalidAmount("Actual cash cannot be negative.")

    # the variance lands in this company's ledger; only its own cashiers count
    if not EntityMembership.objects.filter(
        user_id=cashier.pk, company=company, is_active=True
    ).exists():
        raise TenantMismatch(f"{cashier} is not a cashier of {company}.")

    get_user_model().objects.select_for_update().get(pk=cashier.pk)

    overlapping = CashierShiftClosing.objects.filter(
        company=company,
        cashier=cashier,
        range_start__lt=range_end,
        range_end__gt=range_start,
    )
    if overlapping.exists():
        raise OverlappingShiftError(
            f"{cashier} already has a closed shift overlapping "
            f"{range_start:%Y-%m-%d %H:%M} - {range_end:%Y-%m-%d %H:%M}."
        )

    system_cash = _cash_collected(company, cashier, range_start, range_end)
    difference = actual - system_cash

    shift = CashierShiftClosing.objects.create(
        company=company,
        cashier=cashier,
        range_start=range_start,
        range_end=range_end,
        system_cash_total=system_cash,
        actual_cash_total=actual,
        difference=difference,
        note=(note or "")[:400],
        created_by=user if getattr(user, "pk", None) else None,
    )

    if difference != 0:
        cash = resolve_system_account(company, SystemAccountKey.CASH_MAIN)
        short_over = resolve_system_account(company, SystemAccountKey.CASH_SHORT_OVER)
        if difference > 0:
            debit_account, credit_account = cash, short_over
            label = "Cash surplus"
        else:
            debit_account, credit_account = short_over, cash
            label = "Cash shortage"
        amount = abs(difference)

        entry = post_entry(
            company=company,
            entry_date=range_end,
            description=f"{label}, shift {shift.pk} of {cashier}",
            source_module=SourceModule.CASHIER_SHIFT,
            source_id=str(shift.pk),
            lines=[
                {"account": debit_account, "debit": amount, "credit": ZERO, "description": label},
                {"account": credit_account, "debit": ZERO, "credit": amount, "description": label},
            ],
            user=user,
        )
        # the closing row itself is immutable; link through the queryset
        CashierShiftClosing.objects.filter(pk=shift.pk).update(accounting_entry=entry)
        shift.accounting_entry = entry

    logger.info(
        "Closed shift %s for %s: system=%s actual=%s difference=%s",
        shift.pk, cashier, system_cash, actual, difference,
    )
    log_action(action="close_shift", instance=shift, user=user,
               changes={"difference": str(difference)})
    return shift


def list_shifts(company, start, end, cashier=None):
    qs = CashierShiftClosing.objects.for_company(company).filter(
        range_start__gte=start, range_end__lte=end
    )
    if cashier is not None:
        qs = qs.filter(cashier=cashier)
    return qs.select_related("cashier", "accounting_entry").order_by("-range_start", "-id")


def cashier_user_report(company, cashier, start, end):
    """Everything one cashier collected in [start, end)."""
    payments = (
        Payment.objects.for_company(company)
        .filter(cashier=cashier, paid_at__gte=start, paid_at__lt=end)
        .select_related("invoice")
        .order_by("paid_at", "id")
    )
    by_method = {}
    total = ZERO
    rows = []
    for p in payments:
        total += p.amount
        by_method[p.method] = by_method.get(p.method, ZERO) + p.amount
        rows.append({
            "id": p.pk,
            "invoice_id": p.invoice_id,
            "patient_id": p.invoice.patient_id,
            "amount": p.amount,
            "method": p.method,
            "reference": p.reference,
            "paid_at": p.paid_at,
        })
    return {
        "cashier": cashier.get_username(),
        "start": start,
        "end": end,
        "total_amount": total,
        "cash_amount": by_method.get(PaymentMethod.CASH, ZERO),
        "by_method": by_method,
        "payments": rows,
    }
