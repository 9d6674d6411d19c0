"""
Technical indicators over Decimal series.

Every function returns None when the input is shorter than the period it
needs ("insufficient data"). Callers must treat None as undefined, never
as zero. Inputs are ordered oldest first; results describe the last element.
"""

from decimal import Decimal
from typing import List, Optional, Sequence

from multistrat.core.decimal_math import (
    HUNDRED,
    ONE,
    TWO,
    ZERO,
    Number,
    divide,
    quantize,
    sqrt,
    to_decimal,
)
from multistrat.core.models import Bar, BollingerBands

VOLUME_AVERAGE_PERIOD = 20


def _check_period(period: int) -> None:
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")


def sma(series: Sequence[Number], period: int) -> Optional[Decimal]:
    """Arithmetic mean of the last ``period`` values."""
    _check_period(period)
    if len(series) < period:
        return None
    total = sum((to_decimal(v) for v in series[-period:]), ZERO)
    return divide(total, period)


def ema(series: Sequence[Number], period: int) -> Optional[Decimal]:
    """
    Exponential moving average.

    Seeded with the SMA of the first ``period`` values, then
    ema_t = price_t * k + ema_{t-1} * (1 - k) with k = 2 / (period + 1).
    """
    _check_period(period)
    if len(series) < period:
        return None
    k = divide(TWO, period + 1)
    value = sma(series[:period], period)
    for price in series[period:]:
        value = quantize(to_decimal(price) * k + value * (ONE - k))
    return value


def true_ranges(bars: Sequence[Bar]) -> List[Decimal]:
    """True range for every bar that has a previous close (len(bars) - 1 values)."""
    ranges = []
    for prev, bar in zip(bars, bars[1:]):
        ranges.append(max(
            bar.high - bar.low,
            abs(bar.high - prev.close),
            abs(bar.low - prev.close),
        ))
    return ranges


def atr(bars: Sequence[Bar], period: int = 14) -> Optional[Decimal]:
    """
    Average True Range: SMA of the last ``period`` true ranges.

    Needs period + 1 bars because the first bar only supplies a previous close.
    """
    _check_period(period)
    if len(bars) < period + 1:
        return None
    return sma(true_ranges(bars), period)


def bollinger_bands(
    series: Sequence[Number],
    period: int = 20,
    std_dev_multiplier: Number = 2,
) -> Optional[BollingerBands]:
    """
    Bollinger Bands over the trailing ``period`` values.

    Standard deviation is the population figure (divide by period).
    """
    _check_period(period)
    multiplier = to_decimal(std_dev_multiplier)
    if multiplier < 0:
        raise ValueError(f"std_dev_multiplier must be >= 0, got {multiplier}")
    if len(series) < period:
        return None

    window = [to_decimal(v) for v in series[-period:]]
    middle = sma(window, period)
    squared = sum(((v - middle) ** 2 for v in window), ZERO)
    std = sqrt(divide(squared, period))
    band = quantize(std * multiplier)

    return BollingerBands(
        upper=middle + band,
        middle=middle,
        lower=middle - band,
        std_dev=std,
    )


def rsi(series: Sequence[Number], period: int = 14) -> Optional[Decimal]:
    """
    Relative Strength Index from the first ``period`` deltas of the series.

    Simple averages, no Wilder smoothing. Returns 100 when there were no losses.
    """
    _check_period(period)
    if len(series) < period + 1:
        return None

    gains = ZERO
    losses = ZERO
    for i in range(1, period + 1):
        change = to_decimal(series[i]) - to_decimal(series[i - 1])
        if change > 0:
            gains += change
        else:
            losses -= change

    avg_gain = divide(gains, period)
    avg_loss = divide(losses, period)
    if avg_loss == 0:
        return HUNDRED

    rs = divide(avg_gain, avg_loss)
    return HUNDRED - divide(HUNDRED, ONE + rs)


# ----------------------------------------------------------------------
# Window helpers shared by the strategy analyzers
# ----------------------------------------------------------------------

def highest_high(bars: Sequence[Bar], period: int) -> Optional[Decimal]:
    if period < 1 or len(bars) < period:
        return None
    return max(b.high for b in bars[-period:])


def lowest_low(bars: Sequence[Bar], period: int) -> Optional[Decimal]:
    if period < 1 or len(bars) < period:
        return None
    return min(b.low for b in bars[-period:])


def average_volume(bars: Sequence[Bar], period: int = VOLUME_AVERAGE_PERIOD) -> Optional[Decimal]:
    """Mean base volume of the trailing ``period`` bars (fewer if the window is shorter)."""
    recent = bars[-period:]
    if not recent:
        return None
    return sma([b.volume for b in recent], len(recent))


def closes(bars: Sequence[Bar]) -> List[Decimal]:
    return [b.close for b in bars]
