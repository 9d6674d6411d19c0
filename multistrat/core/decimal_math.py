"""
Fixed-point decimal arithmetic.

Every division in multistrat goes through this module so that results carry
an explicit scale and ROUND_HALF_UP rounding, independent of whatever
thread-local decimal context the caller happens to have installed.

Scales:
    RATIO_SCALE (8)    prices, indicator values, quantities, returns
    PERCENT_SCALE (4)  ratios that are later multiplied by 100
"""

from decimal import Context, Decimal, ROUND_HALF_UP, localcontext
from typing import Iterable, Union

RATIO_SCALE = 8
PERCENT_SCALE = 4

ZERO = Decimal("0")
ONE = Decimal("1")
TWO = Decimal("2")
HUNDRED = Decimal("100")

_CONTEXT = Context(prec=50, rounding=ROUND_HALF_UP)

Number = Union[Decimal, int, float, str]


def _exponent(scale: int) -> Decimal:
    return ONE.scaleb(-scale)


def to_decimal(value: Number) -> Decimal:
    """Convert to Decimal. Floats go through repr() to avoid binary noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def quantize(value: Number, scale: int = RATIO_SCALE) -> Decimal:
    with localcontext(_CONTEXT):
        return to_decimal(value).quantize(_exponent(scale), rounding=ROUND_HALF_UP)


def divide(numerator: Number, denominator: Number, scale: int = RATIO_SCALE) -> Decimal:
    """
    Divide and round half-up to ``scale`` fractional digits.

    Raises:
        ZeroDivisionError: if denominator is zero. Callers guard this
            themselves and pick a fallback value.
    """
    denominator = to_decimal(denominator)
    if denominator == 0:
        raise ZeroDivisionError("fixed-point divide by zero")
    with localcontext(_CONTEXT):
        result = to_decimal(numerator) / denominator
        return result.quantize(_exponent(scale), rounding=ROUND_HALF_UP)


def mean(values: Iterable[Number], scale: int = RATIO_SCALE) -> Decimal:
    """Arithmetic mean; ZERO for an empty input."""
    items = [to_decimal(v) for v in values]
    if not items:
        return ZERO
    with localcontext(_CONTEXT):
        total = sum(items, ZERO)
    return divide(total, len(items), scale)


def sqrt(value: Number, scale: int = RATIO_SCALE) -> Decimal:
    value = to_decimal(value)
    if value < 0:
        raise ValueError(f"sqrt of negative value {value}")
    with localcontext(_CONTEXT):
        return value.sqrt().quantize(_exponent(scale), rounding=ROUND_HALF_UP)


def percent(part: Number, whole: Number) -> Decimal:
    """part / whole at PERCENT_SCALE, expressed in percent (x100)."""
    return divide(part, whole, PERCENT_SCALE) * HUNDRED
