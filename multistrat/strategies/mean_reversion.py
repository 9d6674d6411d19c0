"""
Range Mean Reversion analyzer.

Only trades when the recent range is a tradeable size (strictly between
min_range_pct and max_range_pct of the mean close). Fades touches of the
Bollinger Bands on below-average volume, targeting the middle band.
"""

from decimal import Decimal
from typing import Sequence

from multistrat.config.backtest_config import MeanReversionParams
from multistrat.core.decimal_math import HUNDRED, divide, mean, to_decimal
from multistrat.core.enums import SignalType, StrategyType
from multistrat.core.models import Bar, Signal
from multistrat.indicators import average_volume, bollinger_bands, closes

from .base import INSUFFICIENT_DATA, hold, make_signal

STRATEGY = StrategyType.MEAN_REVERSION
CONFIDENCE = 0.65

UPPER_STOP_BUFFER = Decimal("1.02")
LOWER_STOP_BUFFER = Decimal("0.98")


def analyze(window: Sequence[Bar], params: MeanReversionParams) -> Signal:
    if len(window) < max(params.range_period, params.bollinger_period):
        return hold(STRATEGY, window, INSUFFICIENT_DATA)

    recent = window[-params.range_period:]
    range_high = max(b.high for b in recent)
    range_low = min(b.low for b in recent)
    mean_price = mean(b.close for b in recent)
    if mean_price <= 0:
        return hold(STRATEGY, window, "Non-positive mean price")

    range_pct = divide(range_high - range_low, mean_price) * HUNDRED
    in_range = to_decimal(params.min_range_pct) < range_pct < to_decimal(params.max_range_pct)
    if not in_range:
        return hold(STRATEGY, window, "No mean reversion opportunity")

    bands = bollinger_bands(closes(window), params.bollinger_period, params.bollinger_std)
    bar = window[-1]
    low_volume = bar.volume < average_volume(window) * to_decimal(params.volume_multiplier)

    # Upper band first
    if bar.close >= bands.upper and low_volume:
        return make_signal(
            STRATEGY,
            SignalType.SELL,
            bar,
            CONFIDENCE,
            "Price at upper Bollinger Band in range",
            stop_loss=range_high * UPPER_STOP_BUFFER,
            take_profit=bands.middle,
        )

    if bar.close <= bands.lower and low_volume:
        return make_signal(
            STRATEGY,
            SignalType.BUY,
            bar,
            CONFIDENCE,
            "Price at lower Bollinger Band in range",
            stop_loss=range_low * LOWER_STOP_BUFFER,
            take_profit=bands.middle,
        )

    return hold(STRATEGY, window, "No mean reversion opportunity")
