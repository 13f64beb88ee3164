# app/utils/decimal_utils.py
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0")


def parse_decimal(value) -> Decimal:
    """Lenient conversion for user-entered numbers.

    Anything that is not a finite number (None, "", "abc", NaN, Infinity)
    becomes zero instead of raising.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip().replace(",", ""))
        except (InvalidOperation, ValueError):
            return ZERO
    if not result.is_finite():
        return ZERO
    return result


def to_decimal(value) -> Decimal:
    return parse_decimal(value).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def line_total(quantity, unit_price) -> Decimal:
    return to_decimal(parse_decimal(quantity) * parse_decimal(unit_price))
