import calendar
import datetime
import logging
from collections import defaultdict
from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.utils import timezone
from ..exceptions import InvalidStateError, NoOpenPeriod, NotFound
from ..models import (Account, AccountingEntryLine, FinancialPeriod,
                      FinancialYear, PeriodStatus, SourceModule,
                      SystemAccountKey, YearStatus)
from .audit_helper import log_action

logger = logging.getLogger(__name__)


@transaction.atomic
def resolve_posting_period(company, date):
    """
    Return (FinancialYear, FinancialPeriod) that accept a posting on `date`.

    Both must be OPEN. The period row is locked when called inside a
    transaction, so a concurrent close_period waits for the posting to commit.
    """
    if isinstance(date, datetime.datetime):
        date = timezone.localdate(date) if timezone.is_aware(date) else date.date()

    year = FinancialYear.objects.filter(
        company=company,
        status=YearStatus.OPEN,
        start_date__lte=date,
        end_date__gte=date,
    ).first()
    if year is None:
        raise NoOpenPeriod(f"No open financial year covers {date} for {company}")

    period = (
        FinancialPeriod.objects.select_for_update()
        .filter(
            financial_year=year,
            start_date__lte=date,
            end_date__gte=date,
        )
        .first()
    )
    if period is None:
        raise NoOpenPeriod(f"No financial period covers {date} in {year.code}")
    if period.status != PeriodStatus.OPEN:
        raise NoOpenPeriod(f"Period {period.code} is closed; cannot post on {date}")
    return year, period


# ----------------------------
# Years
# ----------------------------
def create_year(company, year, start_date, end_date, name=None, user=None):
    """Create a DRAFT year. Years of one company may not overlap."""
    if end_date <= start_date:
        raise ValidationError("The year end date must be after its start date.")

    overlapping = FinancialYear.objects.filter(
        company=company, start_date__lte=end_date, end_date__gte=start_date
    )
    if overlapping.exists():
        raise ValidationError("Another financial year overlaps this date range.")

    fy = FinancialYear.objects.create(
        company=company,
        year=year,
        code=f"FY-{year}",
        name=name or f"Financial year {year}",
        start_date=start_date,
        end_date=end_date,
    )
    log_action(action="create", instance=fy, user=user)
    return fy


@transaction.atomic
def open_year(year, user=None):
    fy = FinancialYear.objects.select_for_update().get(pk=year.pk)
    fy.transition_to(YearStatus.OPEN)
    fy.save(update_fields=["status"])
    log_action(action="open", instance=fy, user=user)
    return fy


@transaction.atomic
def archive_year(year, user=None):
    fy = FinancialYear.objects.select_for_update().get(pk=year.pk)
    fy.transition_to(YearStatus.ARCHIVED)
    fy.save(update_fields=["status"])
    log_action(action="archive", instance=fy, user=user)
    return fy


@transaction.atomic
def set_current_year(year, user=None):
    """Make `year` the only current year of its company (atomic swap)."""
    # lock every year of the tenant so two swaps cannot interleave
    years = list(
        FinancialYear.objects.select_for_update().filter(company_id=year.company_id)
    )
    fy = next((y for y in years if y.pk == year.pk), None)
    if fy is None:
        raise NotFound(f"Financial year {year.pk} not found")
    if fy.status not in (YearStatus.DRAFT, YearStatus.OPEN):
        raise InvalidStateError(f"A {fy.status} year cannot become current.")

    FinancialYear.objects.filter(company_id=fy.company_id, is_current=True).exclude(
        pk=fy.pk
    ).update(is_current=False)
    fy.is_current = True
    fy.save(update_fields=["is_current"])
    logger.info("%s is now the current year of %s", fy.code, fy.company)
    log_action(action="set_current", instance=fy, user=user)
    return fy


# ----------------------------
# Periods
# ----------------------------
@transaction.atomic
def generate_monthly_periods(year, user=None):
    """
    One OPEN period per calendar month: index 1..n, code "YYYY-MM".
    The first period starts at the year start, the last one is clipped to the year end.
    """
    fy = FinancialYear.objects.select_for_update().get(pk=year.pk)
    if fy.status in (YearStatus.CLOSED, YearStatus.ARCHIVED):
        raise InvalidStateError(f"Cannot add periods to a {fy.status} year.")
    if fy.periods.exists():
        raise ValidationError(f"Periods already exist for {fy.code}.")

    periods = []
    current = fy.start_date
    index = 1
    while current <= fy.end_date:
        last_day = calendar.monthrange(current.year, current.month)[1]
        month_end = datetime.date(current.year, current.month, last_day)
        period_end = min(month_end, fy.end_date)
        periods.append(
            FinancialPeriod.objects.create(
                company_id=fy.company_id,
                financial_year=fy,
                period_index=index,
                code=f"{current.year}-{current.month:02d}",
                start_date=current,
                end_date=period_end,
            )
        )
        current = period_end + datetime.timedelta(days=1)
        index += 1

    log_action(action="generate_periods", instance=fy, user=user,
               changes={"count": len(periods)})
    return periods


def _locked_period(period):
    p = (
        FinancialPeriod.objects.select_for_update()
        .select_related("financial_year")
        .get(pk=period.pk)
    )
    if p.financial_year.status != YearStatus.OPEN:
        raise InvalidStateError(
            f"Periods of a {p.financial_year.status} year cannot be opened or closed."
        )
    return p


@transaction.atomic
def close_period(period, user=None):
    p = _locked_period(period)
    if p.status == PeriodStatus.CLOSED:
        return p
    p.status = PeriodStatus.CLOSED
    p.closed_at = timezone.now()
    p.closed_by = user
    p.save(update_fields=["status", "closed_at", "closed_by"])
    logger.info("Closed period %s of %s", p.code, p.company_id)
    log_action(action="close", instance=p, user=user)
    return p


@transaction.atomic
def open_period(period, user=None):
    """Explicit re-open of a closed period; closing is otherwise one-way."""
    p = _locked_period(period)
    if p.status == PeriodStatus.OPEN:
        return p
    p.status = PeriodStatus.OPEN
    p.closed_at = None
    p.closed_by = None
    p.save(update_fields=["status", "closed_at", "closed_by"])
    logger.warning("Re-opened period %s of %s", p.code, p.company_id)
    log_action(action="reopen", instance=p, user=user)
    return p


# ----------------------------
# Year-end close
# ----------------------------
def _income_statement_balances(fy):
    """{account: debit - credit} for revenue / expense accounts within the year."""
    rows = (
        AccountingEntryLine.objects.filter(
            entry__company_id=fy.company_id,
            entry__financial_year=fy,
            account__ac_type__in=("revenue", "expense"),
        )
        .values("account_id")
        .annotate(debit=models.Sum("debit"), credit=models.Sum("credit"))
    )
    balances = defaultdict(Decimal)
    for row in rows:
        balances[row["account_id"]] += (row["debit"] or 0) - (row["credit"] or 0)
    accounts = Account.objects.in_bulk(list(balances))
    return {accounts[pk]: bal for pk, bal in balances.items() if bal != 0}


@transaction.atomic
def close_year(year, retained_earnings_account=None, force_close_final_period=False, user=None):
    """
    Close a financial year.
    Workflow:
        1. The year must be OPEN; every period but the last must be CLOSED.
        2. The last period must be CLOSED too, unless force_close_final_period.
        3. Write one CLOSING entry dated at year end that zeroes revenue and
           expense balances against retained earnings.
        4. Flip the year to CLOSED and clear is_current.
    """
    from .accounts import resolve_system_account
    from .posting import write_entry

    fy = FinancialYear.objects.select_for_update().get(pk=year.pk)
    if fy.status != YearStatus.OPEN:
        raise InvalidStateError(f"Only an OPEN year can be closed ({fy.code} is {fy.status}).")

    periods = list(fy.periods.select_for_update().order_by("period_index"))
    if not periods:
        raise ValidationError(f"{fy.code} has no periods to close.")
    final = periods[-1]
    still_open = [p.code for p in periods[:-1] if p.status == PeriodStatus.OPEN]
    if still_open:
        raise InvalidStateError(
            f"Close all periods before closing the year: {', '.join(still_open)} still open."
        )
    if final.status == PeriodStatus.OPEN and not force_close_final_period:
        raise InvalidStateError(f"Final period {final.code} is still open.")

    retained = retained_earnings_account or resolve_system_account(
        fy.company, SystemAccountKey.RETAINED_EARNINGS
    )
    if retained.ac_type != "equity" or retained.company_id != fy.company_id:
        raise ValidationError("Retained earnings must be an equity account of the same company.")

    balances = _income_statement_balances(fy)
    lines = []
    net = Decimal("0")  # debit - credit across revenue / expense
    for account, balance in sorted(balances.items(), key=lambda kv: kv[0].code):
        net += balance
        if balance > 0:
            # debit balance (expense) is closed with a credit
            lines.append({"account": account, "debit": 0, "credit": balance,
                          "description": f"Close {account.code} {account.name}"})
        else:
            lines.append({"account": account, "debit": -balance, "credit": 0,
                          "description": f"Close {account.code} {account.name}"})

    closing_entry = None
    if lines:
        if net < 0:
            # profit: revenue exceeded expense
            lines.append({"account": retained, "debit": 0, "credit": -net,
                          "description": f"Net income {fy.code}"})
        elif net > 0:
            lines.append({"account": retained, "debit": net, "credit": 0,
                          "description": f"Net loss {fy.code}"})
        closing_entry = write_entry(
            company=fy.company,
            financial_year=fy,
            financial_period=final,
            entry_date=fy.end_date,
            description=f"Year-end closing {fy.code}",
            source_module=SourceModule.CLOSING,
            source_id=str(fy.pk),
            lines=lines,
            user=user,
        )
    else:
        logger.info("%s has no revenue or expense activity; closing without an entry", fy.code)

    if final.status == PeriodStatus.OPEN:
        final.status = PeriodStatus.CLOSED
        final.closed_at = timezone.now()
        final.closed_by = user
        final.save(update_fields=["status", "closed_at", "closed_by"])

    fy.transition_to(YearStatus.CLOSED)
    fy.is_current = False
    fy.closed_at = timezone.now()
    fy.closed_by = user
    fy.closing_entry = closing_entry
    fy.save(update_fields=["status", "is_current", "closed_at", "closed_by", "closing_entry"])

    logger.info("Closed %s for %s (net income %s)", fy.code, fy.company, -net)
    log_action(
        action="close_year",
        instance=fy,
        user=user,
        changes={"net_income": str(-net), "closing_entry": getattr(closing_entry, "pk", None)},
    )
    return fy
