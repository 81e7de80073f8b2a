import datetime
import logging
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone
from ..exceptions import (InvalidAmount, TenantMismatch,
                          UnbalancedEntryError)
from ..models import AccountingEntry, AccountingEntryLine, SourceModule
from ..money import ZERO, to_money
from .periods import resolve_posting_period

logger = logging.getLogger(__name__)


def _normalize_lines(company, lines):
    """
    Validate raw line dicts and return them with quantized amounts.
    Nothing is written here; any failure leaves the database untouched.
    """
    normalized = []
    for idx, line in enumerate(lines, start=1):
        account = line["account"]
        debit = to_money(line.get("debit"))
        credit = to_money(line.get("credit"))

        if debit < 0 or credit < 0:
            raise InvalidAmount(f"Line {idx}: debit and credit must be >= 0")
        # exactly one side carries the amount
        if (debit > 0) == (credit > 0):
            raise InvalidAmount(
                f"Line {idx}: exactly one of debit / credit must be positive "
                f"(debit={debit}, credit={credit})"
            )
        if account.company_id != company.pk:
            raise TenantMismatch(f"Line {idx}: account {account.code} belongs to another company")
        if not account.is_active:
            raise ValidationError(f"Line {idx}: account {account.code} is inactive")

        normalized.append(
            {
                "account": account,
                "debit": debit,
                "credit": credit,
                "description": (line.get("description") or "")[:400],
            }
        )

    if not normalized:
        raise UnbalancedEntryError("An accounting entry needs at least one line.")

    total_debit = sum((l["debit"] for l in normalized), ZERO)
    total_credit = sum((l["credit"] for l in normalized), ZERO)
    # amounts are already rounded to mills: no tolerance here
    if total_debit != total_credit:
        raise UnbalancedEntryError(
            f"Entry not balanced: debits={total_debit}, credits={total_credit}"
        )
    return normalized


@transaction.atomic
def write_entry(*, company, financial_year, financial_period, entry_date, description,
                source_module, source_id="", lines, user=None, reversal_of=None):
    """
    Persist a header and its lines against an already resolved period.
    post_entry() is the public way in; year-end closing calls this directly
    because its final period may already be closed.
    """
    normalized = _normalize_lines(company, lines)

    entry = AccountingEntry.objects.create(
        company=company,
        entry_date=entry_date,
        description=description[:400],
        source_module=source_module,
        source_id=str(source_id or ""),
        reversal_of=reversal_of,
        financial_year=financial_year,
        financial_period=financial_period,
        created_by=user if getattr(user, "pk", None) else None,
    )
    AccountingEntryLine.objects.bulk_create(
        [
            AccountingEntryLine(
                entry=entry,
                line_no=no,
                account=l["account"],
                debit=l["debit"],
                credit=l["credit"],
                description=l["description"],
            )
            for no, l in enumerate(normalized, start=1)
        ]
    )
    logger.info(
        "Posted entry %s (%s:%s) on %s for %s, %d lines, amount %s",
        entry.pk,
        source_module,
        entry.source_id,
        entry_date,
        company,
        len(normalized),
        sum((l["debit"] for l in normalized), ZERO),
    )
    return entry


@transaction.atomic
def post_entry(company, entry_date, description, source_module, source_id, lines,
               user=None, reversal_of=None):
    """
    Post one balanced AccountingEntry.

    1. Resolve the OPEN year / period for entry_date (PeriodClosedError otherwise).
    2. Validate every line and the debit == credit rule.
    3. Insert header + lines in one transaction; readers never see half an entry.
    """
    # materialize generators before validation
    lines = list(lines)
    if isinstance(entry_date, datetime.datetime):
        entry_date = timezone.localdate(entry_date) if timezone.is_aware(entry_date) else entry_date.date()
    financial_year, financial_period = resolve_posting_period(company, entry_date)
    return write_entry(
        company=company,
        financial_year=financial_year,
        financial_period=financial_period,
        entry_date=entry_date,
        description=description,
        source_module=source_module,
        source_id=source_id,
        lines=lines,
        user=user,
        reversal_of=reversal_of,
    )


def reverse_entry(entry, entry_date, source_id, description=None, user=None):
    """Post the mirror image of `entry` under the same source module."""
    lines = [
        {
            "account": line.account,
            "debit": line.credit,
            "credit": line.debit,
            "description": f"Reversal: {line.description}"[:400],
        }
        for line in entry.lines.select_related("account").order_by("line_no")
    ]
    return post_entry(
        company=entry.company,
        entry_date=entry_date,
        description=description or f"Reversal of entry {entry.pk}",
        source_module=entry.source_module,
        source_id=source_id,
        lines=lines,
        user=user,
        reversal_of=entry,
    )


def create_manual_entry(company, entry_date, description, lines, user=None):
    """Accountant-entered journal; no correlation id."""
    return post_entry(
        company=company,
        entry_date=entry_date,
        description=description,
        source_module=SourceModule.MANUAL,
        source_id="",
        lines=lines,
        user=user,
    )


def find_entry(company, source_module, source_id):
    return AccountingEntry.objects.filter(
        company=company, source_module=source_module, source_id=str(source_id)
    ).first()
