"""
Volume Spike Reversal analyzer.

A bar with volume well above its trailing average and a long rejection wick
is faded: long upper wick -> SELL, long lower wick -> BUY.
"""

from decimal import Decimal
from typing import Sequence

from multistrat.config.backtest_config import VolumeSpikeParams
from multistrat.core.decimal_math import to_decimal
from multistrat.core.enums import SignalType, StrategyType
from multistrat.core.models import Bar, Signal
from multistrat.indicators import average_volume
from multistrat.indicators.technical import VOLUME_AVERAGE_PERIOD

from .base import INSUFFICIENT_DATA, hold, make_signal

STRATEGY = StrategyType.VOLUME_SPIKE_REVERSAL
CONFIDENCE = 0.60

HIGH_STOP_BUFFER = Decimal("1.01")
LOW_STOP_BUFFER = Decimal("0.99")


def analyze(window: Sequence[Bar], params: VolumeSpikeParams) -> Signal:
    if len(window) < VOLUME_AVERAGE_PERIOD:
        return hold(STRATEGY, window, INSUFFICIENT_DATA)

    bar = window[-1]
    avg_volume = average_volume(window)
    if bar.volume <= avg_volume * to_decimal(params.volume_multiplier):
        return hold(STRATEGY, window, "No volume spike reversal")

    candle_range = bar.range
    wick_limit = candle_range * to_decimal(params.wick_ratio)

    upper_wick = bar.high - max(bar.close, bar.open)
    if upper_wick > wick_limit:
        return make_signal(
            STRATEGY,
            SignalType.SELL,
            bar,
            CONFIDENCE,
            "Volume spike with upper wick rejection",
            stop_loss=bar.high * HIGH_STOP_BUFFER,
            take_profit=bar.close - candle_range,
        )

    lower_wick = min(bar.close, bar.open) - bar.low
    if lower_wick > wick_limit:
        return make_signal(
            STRATEGY,
            SignalType.BUY,
            bar,
            CONFIDENCE,
            "Volume spike with lower wick rejection",
            stop_loss=bar.low * LOW_STOP_BUFFER,
            take_profit=bar.close + candle_range,
        )

    return hold(STRATEGY, window, "No volume spike reversal")
