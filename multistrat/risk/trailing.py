"""
ATR trailing stop for long positions.
"""

from decimal import Decimal
from typing import Optional

from multistrat.core.decimal_math import Number, quantize, to_decimal


def trail_stop(
    current_stop: Optional[Decimal],
    entry_price: Decimal,
    price: Decimal,
    atr: Optional[Decimal],
    multiplier: Number = 1.5,
) -> Optional[Decimal]:
    """
    Ratchet a long stop up to ``price - multiplier * atr``.

    Only applies while the position is in profit, and never lowers the stop.
    Returns the (possibly unchanged) stop.
    """
    if atr is None or price <= entry_price:
        return current_stop
    candidate = quantize(price - atr * to_decimal(multiplier))
    if current_stop is None or candidate > current_stop:
        return candidate
    return current_stop
