"""
Shared helpers for the strategy analyzers.

An analyzer is a pure function ``analyze(window, params) -> Signal``. It
never raises for a well-formed window: missing data and unmet conditions
come back as HOLD signals with a reason.
"""

from decimal import Decimal
from typing import Optional, Sequence

from multistrat.core.decimal_math import quantize
from multistrat.core.enums import SignalType, StrategyType
from multistrat.core.models import Bar, Signal

INSUFFICIENT_DATA = "Insufficient data"


def hold(strategy: StrategyType, window: Sequence[Bar], reason: str) -> Signal:
    """HOLD stamped with the last bar of the window (if any)."""
    last = window[-1] if window else None
    return Signal.hold(
        strategy,
        reason,
        symbol=last.symbol if last else "",
        timestamp=last.timestamp if last else None,
        price=last.close if last else None,
    )


def make_signal(
    strategy: StrategyType,
    signal_type: SignalType,
    bar: Bar,
    confidence: float,
    reason: str,
    stop_loss: Optional[Decimal] = None,
    take_profit: Optional[Decimal] = None,
) -> Signal:
    """Actionable signal priced at ``bar.close``."""
    return Signal(
        signal_type=signal_type,
        strategy=strategy,
        symbol=bar.symbol,
        timestamp=bar.timestamp,
        price=bar.close,
        stop_loss=quantize(stop_loss) if stop_loss is not None else None,
        take_profit=quantize(take_profit) if take_profit is not None else None,
        confidence=confidence,
        reason=reason,
    )
