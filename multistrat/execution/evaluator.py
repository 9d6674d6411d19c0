"""
Live evaluation tick.

Wraps the analyzers, arbitration and signal validation behind a single
``evaluate(window, account_state)`` call for an external execution service.
Per-strategy open counts come from an injected provider and the global
count from the caller's AccountState; the evaluator holds no position state.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from multistrat.config.backtest_config import BacktestConfig
from multistrat.core.decimal_math import Number, to_decimal
from multistrat.core.enums import SignalType, StrategyType
from multistrat.core.models import Bar, Signal
from multistrat.risk.position_sizer import PositionSizer
from multistrat.strategies import run_enabled

from .arbitrator import select_best

logger = logging.getLogger(__name__)


class OpenPositionsProvider(Protocol):
    """Query port onto the live position store."""

    def count_open(self, strategy: StrategyType) -> int:
        ...


@dataclass
class AccountState:
    """Account snapshot supplied by the caller on each tick."""

    balance: Decimal
    open_positions: int = 0
    risk_fraction: Optional[Decimal] = None


class SignalEvaluator:
    """Single entry point for one live evaluation tick."""

    def __init__(
        self,
        positions: OpenPositionsProvider,
        config: Optional[BacktestConfig] = None,
        sizer: Optional[PositionSizer] = None,
    ):
        self.positions = positions
        self.config = config or BacktestConfig()
        self.sizer = sizer or PositionSizer(self.config.risk)

    def evaluate(self, window: Sequence[Bar], account_state: AccountState) -> Signal:
        """
        Run the enabled analyzers over ``window`` and return one signal.

        BUY signals must pass validation and the global position cap; SELL
        signals only need an open position for their strategy. Anything
        rejected comes back as HOLD with the rejection reason.
        """
        best = select_best(run_enabled(window, self.config))
        if best is None:
            return self._hold(window, "No actionable signal")

        open_for_strategy = self.positions.count_open(best.strategy)

        if best.signal_type == SignalType.SELL:
            if open_for_strategy == 0:
                return self._hold(window, f"No open {best.strategy_name} position to exit", best.strategy)
            return best

        if account_state.open_positions >= self.config.max_positions:
            return self._hold(window, "Max positions reached", best.strategy)

        reason = self.sizer.rejection_reason(best, open_for_strategy)
        if reason is not None:
            logger.info("Rejected %s BUY: %s", best.strategy_name, reason)
            return self._hold(window, reason, best.strategy)

        return best

    def position_size(self, signal: Signal, account_state: AccountState) -> Decimal:
        """Quantity for an accepted signal at the account's balance."""
        risk: Number = account_state.risk_fraction
        if risk is None:
            risk = self.config.risk_per_trade
        return self.sizer.size(signal, account_state.balance, to_decimal(risk))

    def _hold(
        self,
        window: Sequence[Bar],
        reason: str,
        strategy: Optional[StrategyType] = None,
    ) -> Signal:
        last = window[-1] if window else None
        return Signal.hold(
            strategy,
            reason,
            symbol=last.symbol if last else "",
            timestamp=last.timestamp if last else None,
            price=last.close if last else None,
        )
