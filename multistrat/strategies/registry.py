"""
Strategy dispatch.

The analyzer set is closed: each StrategyType maps to exactly one analyze
function and the BacktestConfig attribute holding its parameters.
"""

import logging
from typing import Callable, Dict, List, NamedTuple, Sequence

from multistrat.config.backtest_config import BacktestConfig
from multistrat.core.enums import StrategyType
from multistrat.core.models import Bar, Signal

from . import mean_reversion, trend_following, volatility_breakout, volume_spike
from .base import hold

logger = logging.getLogger(__name__)


class StrategyEntry(NamedTuple):
    analyze: Callable[..., Signal]
    params_attr: str


STRATEGIES: Dict[StrategyType, StrategyEntry] = {
    StrategyType.TREND_FOLLOWING: StrategyEntry(trend_following.analyze, "trend_following"),
    StrategyType.VOLATILITY_BREAKOUT: StrategyEntry(volatility_breakout.analyze, "volatility_breakout"),
    StrategyType.MEAN_REVERSION: StrategyEntry(mean_reversion.analyze, "mean_reversion"),
    StrategyType.VOLUME_SPIKE_REVERSAL: StrategyEntry(volume_spike.analyze, "volume_spike"),
}


def run_strategy(strategy: StrategyType, window: Sequence[Bar], config: BacktestConfig) -> Signal:
    """Run one analyzer; malformed data degrades to HOLD for this analyzer only."""
    entry = STRATEGIES[strategy]
    params = getattr(config, entry.params_attr)
    try:
        return entry.analyze(window, params)
    except (ArithmeticError, ValueError, TypeError) as e:
        logger.warning(f"{strategy.value} analyzer failed: {e}")
        return hold(strategy, window, f"Analyzer error: {e}")


def run_enabled(window: Sequence[Bar], config: BacktestConfig) -> List[Signal]:
    """One signal per enabled strategy, in canonical strategy order."""
    return [run_strategy(s, window, config) for s in config.enabled_strategies()]
