import logging
from decimal import ROUND_HALF_UP, Decimal
from django.db import transaction
from ..exceptions import InvalidStateError
from ..models import (AssetDepreciation, AssetStatus, FinancialPeriod,
                      FixedAsset, PeriodStatus, SourceModule,
                      SystemAccountKey, YearStatus)
from ..money import MILLS, ZERO
from .accounts import resolve_system_account
from .audit_helper import log_action
from .posting import post_entry

logger = logging.getLogger(__name__)


def monthly_amount(asset):
    """Straight-line monthly charge, capped so book value never drops below salvage."""
    months = Decimal(asset.useful_life_years * 12)
    per_month = ((asset.purchase_cost - asset.salvage_value) / months).quantize(
        MILLS, rounding=ROUND_HALF_UP
    )
    remaining = asset.current_value - asset.salvage_value
    return min(per_month, remaining)


# ----------------------------
# Fixed Asset workflows
# ----------------------------
@transaction.atomic
def run_depreciation_for_period(company, financial_period, user=None):
    """
    Depreciate every IN_SERVICE asset of `company` for one period.
    Workflow:
        1. Lock the period; it must be OPEN inside an OPEN year.
        2. Skip assets already depreciated for (year, period).
        3. For each remaining asset post one DEPRECIATION entry dated at the
           period end: debit depreciation expense, credit accumulated depreciation.
        4. Record an AssetDepreciation row and lower the asset's book value.
           An asset that reaches salvage becomes FULLY_DEPRECIATED.
    The run is all or nothing: one failed posting aborts every asset.
    """
    period = (
        FinancialPeriod.objects.select_for_update()
        .select_related("financial_year")
        .get(pk=financial_period.pk, company=company)
    )
    fy = period.financial_year
    if fy.status != YearStatus.OPEN or period.status != PeriodStatus.OPEN:
        raise InvalidStateError(f"Period {period.code} is not open for depreciation.")

    expense = resolve_system_account(company, SystemAccountKey.DEPRECIATION_EXPENSE)
    accumulated = resolve_system_account(company, SystemAccountKey.ACCUMULATED_DEPRECIATION)

    assets = list(
        FixedAsset.objects.select_for_update()
        .filter(company=company, status=AssetStatus.IN_SERVICE)
        .order_by("asset_code")
    )
    done = set(
        AssetDepreciation.objects.filter(
            asset__in=assets, financial_year=fy, financial_period=period
        ).values_list("asset_id", flat=True)
    )

    processed = skipped = 0
    total_amount = ZERO
    for asset in assets:
        if asset.pk in done or asset.current_value <= asset.salvage_value:
            skipped += 1
            continue
        amount = monthly_amount(asset)
        if amount <= 0:
            skipped += 1
            continue

        entry = post_entry(
            company=company,
            entry_date=period.end_date,
            description=f"Depreciation {asset.asset_code} for {period.code}",
            source_module=SourceModule.DEPRECIATION,
            source_id=f"{asset.pk}:{period.pk}",
            lines=[
                {"account": expense, "debit": amount, "credit": ZERO,
                 "description": f"Depreciation expense {asset.asset_code}"},
                {"account": accumulated, "debit": ZERO, "credit": amount,
                 "description": f"Accumulated depreciation {asset.asset_code}"},
            ],
            user=user,
        )

        asset.accumulated_depreciation += amount
        asset.current_value -= amount
        if asset.current_value <= asset.salvage_value:
            asset.status = AssetStatus.FULLY_DEPRECIATED
        asset.save(update_fields=["accumulated_depreciation", "current_value", "status"])

        AssetDepreciation.objects.create(
            company=company,
            asset=asset,
            financial_year=fy,
            financial_period=period,
            amount=amount,
            book_value_after=asset.current_value,
            accounting_entry=entry,
        )
        processed += 1
        total_amount += amount

    result = {
        "processed": processed,
        "skipped": skipped,
        "total_assets": len(assets),
        "total_amount": total_amount,
    }
    logger.info("Depreciation for %s / %s: %s", company, period.code, result)
    log_action(action="depreciation_run", instance=period, user=user,
               changes={**result, "total_amount": str(total_amount)})
    return result
