"""
multistrat enumerations.
"""

from enum import Enum


class SignalType(str, Enum):
    """Direction recommended by a strategy."""

    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


class StrategyType(str, Enum):
    """The fixed set of strategy analyzers."""

    TREND_FOLLOWING = "trend_following"
    VOLATILITY_BREAKOUT = "volatility_breakout"
    MEAN_REVERSION = "mean_reversion"
    VOLUME_SPIKE_REVERSAL = "volume_spike_reversal"


class ExitReason(str, Enum):
    """Why a simulated trade was closed."""

    STOP_LOSS = "stop_loss"
    TAKE_PROFIT = "take_profit"
    SIGNAL_EXIT = "signal_exit"
    END_OF_BACKTEST = "end_of_backtest"
