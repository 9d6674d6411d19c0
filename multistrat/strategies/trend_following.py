"""
Trend Following analyzer.

Entry: close above the short SMA, short SMA above the long SMA, close at or
above the breakout high, and volume above its trailing average times a
multiplier. Exit: close back below the short SMA.
"""

import logging
from typing import Sequence

from multistrat.config.backtest_config import TrendFollowingParams
from multistrat.core.decimal_math import to_decimal
from multistrat.core.enums import SignalType, StrategyType
from multistrat.core.models import Bar, Signal
from multistrat.indicators import atr, average_volume, closes, highest_high, sma

from .base import INSUFFICIENT_DATA, hold, make_signal

logger = logging.getLogger(__name__)

STRATEGY = StrategyType.TREND_FOLLOWING
ENTRY_CONFIDENCE = 0.75
EXIT_CONFIDENCE = 0.70


def analyze(window: Sequence[Bar], params: TrendFollowingParams) -> Signal:
    if len(window) < max(params.sma_long, params.breakout_period):
        return hold(STRATEGY, window, INSUFFICIENT_DATA)

    prices = closes(window)
    sma_short = sma(prices, params.sma_short)
    sma_long = sma(prices, params.sma_long)
    if sma_short is None or sma_long is None:
        return hold(STRATEGY, window, INSUFFICIENT_DATA)

    bar = window[-1]
    breakout_high = highest_high(window, params.breakout_period)
    avg_volume = average_volume(window)
    current_atr = atr(window, params.atr_period)

    above_sma = bar.close > sma_short
    trend_up = sma_short > sma_long
    breakout = bar.close >= breakout_high
    volume_confirm = bar.volume > avg_volume * to_decimal(params.volume_multiplier)

    if above_sma and trend_up and breakout and volume_confirm:
        stop = take_profit = None
        if current_atr is not None:
            distance = current_atr * to_decimal(params.atr_multiplier)
            stop = bar.close - distance
            take_profit = bar.close + distance * 2
        logger.debug("[%s] trend breakout at %s (atr=%s)", bar.symbol, bar.close, current_atr)
        return make_signal(
            STRATEGY,
            SignalType.BUY,
            bar,
            ENTRY_CONFIDENCE,
            "Trend + Breakout + Volume confirmation",
            stop_loss=stop,
            take_profit=take_profit,
        )

    if bar.close < sma_short:
        return make_signal(
            STRATEGY,
            SignalType.SELL,
            bar,
            EXIT_CONFIDENCE,
            f"Price below SMA{params.sma_short} - trend exit",
        )

    return hold(STRATEGY, window, "No trend signal")
