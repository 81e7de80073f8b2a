import logging
from django.db import transaction
from ..exceptions import SystemAccountNotConfigured, TenantMismatch
from ..models import Account, SystemAccountKey, SystemAccountMapping

logger = logging.getLogger(__name__)

# Default hospital chart: (code, name, type, system key or None)
DEFAULT_CHART = [
    ("100100", "Main Cash", "asset", SystemAccountKey.CASH_MAIN),
    ("101100", "Main Bank Account", "asset", SystemAccountKey.BANK_MAIN),
    ("120100", "Patients Receivable", "asset", SystemAccountKey.RECEIVABLE_PATIENTS),
    ("120200", "Insurance Receivable", "asset", SystemAccountKey.RECEIVABLE_INSURANCE),
    ("150100", "Medical Equipment", "asset", None),
    ("150900", "Accumulated Depreciation", "asset", SystemAccountKey.ACCUMULATED_DEPRECIATION),
    ("300100", "Capital", "equity", None),
    ("300200", "Retained Earnings", "equity", SystemAccountKey.RETAINED_EARNINGS),
    ("400100", "Medical Services Revenue", "revenue", SystemAccountKey.REVENUE_OUTPATIENT),
    ("400110", "Inpatient Revenue", "revenue", SystemAccountKey.REVENUE_INPATIENT),
    ("400120", "Laboratory Revenue", "revenue", SystemAccountKey.REVENUE_LAB),
    ("400130", "Radiology Revenue", "revenue", SystemAccountKey.REVENUE_RADIOLOGY),
    ("400140", "Pharmacy Revenue", "revenue", SystemAccountKey.REVENUE_PHARMACY),
    ("400200", "Discount Allowed", "revenue", SystemAccountKey.DISCOUNT_ALLOWED),
    ("520100", "Cash Short and Over", "expense", SystemAccountKey.CASH_SHORT_OVER),
    ("530100", "Depreciation Expense", "expense", SystemAccountKey.DEPRECIATION_EXPENSE),
]

# contra accounts carry the opposite normal side of their type
NORMAL_SIDE_OVERRIDES = {
    "150900": "credit",
    "400200": "debit",
}


@transaction.atomic
def ensure_default_accounts(company):
    """
    Create (or complete) the default chart of accounts and bind every
    system key that is not bound yet. Safe to run repeatedly.
    Returns {code: Account}.
    """
    accounts = {}
    for code, name, ac_type, key in DEFAULT_CHART:
        account, created = Account.objects.get_or_create(
            company=company,
            code=code,
            defaults={
                "name": name,
                "ac_type": ac_type,
                "normal_balance": NORMAL_SIDE_OVERRIDES.get(code, ""),
            },
        )
        if created:
            logger.debug("Created account %s for %s", code, company)
        accounts[code] = account

        if key and not SystemAccountMapping.objects.filter(
            company=company, key=key, is_active=True
        ).exists():
            SystemAccountMapping.objects.create(company=company, key=key, account=account)
    return accounts


def resolve_system_account(company, key):
    """
    Active account bound to `key` for this company.
    Always read from the database: a mapping may be repointed between requests.
    """
    mapping = (
        SystemAccountMapping.objects.select_related("account")
        .filter(company=company, key=key, is_active=True)
        .first()
    )
    if mapping is None or not mapping.account.is_active:
        raise SystemAccountNotConfigured(
            f"No active account is mapped to {key} for {company}."
        )
    return mapping.account


@transaction.atomic
def map_system_account(company, key, account):
    """Repoint `key` to `account`, retiring the previous binding."""
    if account.company_id != company.pk:
        raise TenantMismatch("Account belongs to another company.")
    # lock the current binding so two admins cannot both activate one
    current = list(
        SystemAccountMapping.objects.select_for_update().filter(
            company=company, key=key, is_active=True
        )
    )
    for mapping in current:
        if mapping.account_id == account.pk:
            return mapping
    SystemAccountMapping.objects.filter(pk__in=[m.pk for m in current]).update(is_active=False)
    mapping = SystemAccountMapping.objects.create(company=company, key=key, account=account)
    logger.info("System account %s for %s now points to %s", key, company, account.code)
    return mapping
