from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from django.conf import settings
from .exceptions import InvalidAmount

MILLS = Decimal("0.001")
ZERO = Decimal("0.000")


def to_money(value) -> Decimal:
    """
    Quantize anything numeric to 3 decimal places; None / "" become 0.
    NaN, infinities, junk and values beyond decimal precision raise InvalidAmount.
    """
    if value is None or value == "":
        return ZERO
    try:
        amount = Decimal(str(value))
        if not amount.is_finite():
            raise InvalidAmount(f"Amount {value!r} is not a finite number.")
        return amount.quantize(MILLS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidAmount(f"Amount {value!r} is not a valid money value.")


def amount_epsilon() -> Decimal:
    # tolerance for settlement comparisons, read per call so tests can override it
    return Decimal(str(getattr(settings, "LEDGER_AMOUNT_EPSILON", "0.001")))
