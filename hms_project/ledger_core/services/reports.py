from django.db.models import Sum
from django.db.models.functions import Coalesce
from ..exceptions import TenantMismatch
from ..models import Account, AccountingEntryLine
from ..money import ZERO


def _lines(company, date_from=None, date_to=None, financial_year=None):
    qs = AccountingEntryLine.objects.filter(entry__company=company)
    if date_from:
        qs = qs.filter(entry__entry_date__gte=date_from)
    if date_to:
        qs = qs.filter(entry__entry_date__lte=date_to)
    if financial_year is not None:
        qs = qs.filter(entry__financial_year=financial_year)
    return qs


def trial_balance(company, date_from=None, date_to=None, financial_year=None):
    """
    Per-account debit / credit totals over posted lines.
    balance = debit - credit; totals always agree for a consistent ledger.
    """
    aggregated = {
        row["account_id"]: row
        for row in _lines(company, date_from, date_to, financial_year)
        .values("account_id")
        .annotate(debit=Coalesce(Sum("debit"), ZERO), credit=Coalesce(Sum("credit"), ZERO))
        .order_by()
    }
    rows = []
    total_debit = total_credit = ZERO
    for account in Account.objects.filter(pk__in=aggregated).order_by("code"):
        debit = aggregated[account.pk]["debit"]
        credit = aggregated[account.pk]["credit"]
        total_debit += debit
        total_credit += credit
        rows.append({
            "account_id": account.pk,
            "code": account.code,
            "name": account.name,
            "type": account.ac_type,
            "debit": debit,
            "credit": credit,
            "balance": debit - credit,
        })
    return {"rows": rows, "total_debit": total_debit, "total_credit": total_credit}


def _signed(account, debit, credit):
    # balances are shown on the account's normal side
    if account.normal_balance == "credit":
        return credit - debit
    return debit - credit


def account_ledger(company, account, date_from, date_to):
    if account.company_id != company.pk:
        raise TenantMismatch("Account belongs to another company.")

    opening_totals = AccountingEntryLine.objects.filter(
        entry__company=company, account=account, entry__entry_date__lt=date_from
    ).aggregate(debit=Coalesce(Sum("debit"), ZERO), credit=Coalesce(Sum("credit"), ZERO))
    opening = _signed(account, opening_totals["debit"], opening_totals["credit"])

    lines = (
        _lines(company, date_from, date_to)
        .filter(account=account)
        .select_related("entry")
        .order_by("entry__entry_date", "entry_id", "line_no")
    )
    running = opening
    rows = []
    for line in lines:
        running += _signed(account, line.debit, line.credit)
        rows.append({
            "date": line.entry.entry_date,
            "entry_id": line.entry_id,
            "source_module": line.entry.source_module,
            "source_id": line.entry.source_id,
            "description": line.description or line.entry.description,
            "debit": line.debit,
            "credit": line.credit,
            "balance": running,
        })
    return {
        "account": {"id": account.pk, "code": account.code, "name": account.name},
        "opening_balance": opening,
        "rows": rows,
        "closing_balance": running,
    }
