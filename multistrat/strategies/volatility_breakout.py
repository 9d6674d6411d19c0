"""
Volatility Breakout analyzer.

Looks for a compressed volatility regime (current ATR below a percentile
of the window's historical ATRs) and then a close above the preceding
consolidation high on above-average volume.
"""

import logging
from decimal import Decimal
from typing import List, Sequence

from multistrat.config.backtest_config import VolatilityBreakoutParams
from multistrat.core.decimal_math import to_decimal
from multistrat.core.enums import SignalType, StrategyType
from multistrat.core.models import Bar, Signal
from multistrat.indicators import atr, average_volume

from .base import INSUFFICIENT_DATA, hold, make_signal

logger = logging.getLogger(__name__)

STRATEGY = StrategyType.VOLATILITY_BREAKOUT
CONFIDENCE = 0.80


def historical_atrs(window: Sequence[Bar], period: int) -> List[Decimal]:
    """ATR of every (period + 1)-bar slice that ends before the last bar."""
    values = []
    for end in range(period + 1, len(window)):
        value = atr(window[end - period - 1:end], period)
        if value is not None:
            values.append(value)
    return values


def compression_threshold(atrs: Sequence[Decimal], percentile: float) -> Decimal:
    """Value at ``percentile`` of the sorted ATRs (index truncated, clamped to the last)."""
    ordered = sorted(atrs)
    index = min(int(len(ordered) * percentile), len(ordered) - 1)
    return ordered[index]


def analyze(window: Sequence[Bar], params: VolatilityBreakoutParams) -> Signal:
    needed = max(params.min_bars, params.atr_period + 2, params.consolidation_period + 1)
    if len(window) < needed:
        return hold(STRATEGY, window, INSUFFICIENT_DATA)

    current_atr = atr(window[-(params.atr_period + 1):], params.atr_period)
    history = historical_atrs(window, params.atr_period)
    if current_atr is None or not history:
        return hold(STRATEGY, window, INSUFFICIENT_DATA)

    threshold = compression_threshold(history, params.compression_percentile)
    if current_atr >= threshold:
        return hold(STRATEGY, window, "No volatility compression")

    bar = window[-1]
    consolidation = window[-(params.consolidation_period + 1):-1]
    consolidation_high = max(b.high for b in consolidation)
    consolidation_low = min(b.low for b in consolidation)

    avg_volume = average_volume(window)
    volume_breakout = bar.volume > avg_volume * to_decimal(params.volume_multiplier)

    if bar.close > consolidation_high and volume_breakout:
        risk = bar.close - consolidation_low
        logger.debug(
            "[%s] compression breakout: atr=%s threshold=%s high=%s",
            bar.symbol, current_atr, threshold, consolidation_high,
        )
        return make_signal(
            STRATEGY,
            SignalType.BUY,
            bar,
            CONFIDENCE,
            "Volatility compression breakout with volume",
            stop_loss=consolidation_low,
            take_profit=bar.close + risk * to_decimal(params.reward_risk_ratio),
        )

    return hold(STRATEGY, window, "No volatility breakout")
