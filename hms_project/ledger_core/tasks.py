import logging
from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task  # register this function as a Celery task
def run_depreciation(company_id, period_id, user_id=None):
    # import lazily to avoid circular imports at module import time
    from .models import Company, FinancialPeriod, User
    from .services.depreciate import run_depreciation_for_period

    company = Company.objects.get(pk=company_id)
    period = FinancialPeriod.objects.get(pk=period_id, company=company)
    user = User.objects.filter(pk=user_id).first() if user_id else None
    result = run_depreciation_for_period(company, period, user=user)
    # Decimal is not JSON serializable for the result backend
    return {**result, "total_amount": str(result["total_amount"])}


@shared_task
def close_period_task(company_id, period_code):
    """Scheduled month-end close; a period that is already closed is left alone."""
    from .models import FinancialPeriod, PeriodStatus, YearStatus
    from .services.periods import close_period

    period = (
        FinancialPeriod.objects.filter(
            company_id=company_id,
            code=period_code,
            financial_year__status=YearStatus.OPEN,
        )
        .order_by("-financial_year__start_date")
        .first()
    )
    if period is None:
        logger.warning("No open-year period %s for company %s", period_code, company_id)
        return None
    if period.status == PeriodStatus.CLOSED:
        return period.pk
    close_period(period)
    return period.pk
