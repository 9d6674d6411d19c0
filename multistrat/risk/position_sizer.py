"""
multistrat Position Sizer

Converts a signal plus account state into a trade quantity:
- Fixed-fractional risk: balance * risk_fraction / |price - stop|
- Capped by a maximum position value (max_position_pct of balance / price)

Also validates signal quality before a live entry:
- stop-loss present
- reward:risk at or above min_reward_risk (when a target is given)
- open positions for the same strategy below max_positions_per_strategy
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from multistrat.config.backtest_config import RiskParams
from multistrat.core.decimal_math import ZERO, Number, divide, to_decimal
from multistrat.core.models import Signal

logger = logging.getLogger(__name__)


@dataclass
class SizingResult:
    """Result of a position size calculation."""

    quantity: Decimal
    risk_amount: Decimal
    stop_distance: Decimal
    risk_based_quantity: Decimal
    cap_quantity: Decimal
    can_trade: bool
    rejection_reason: Optional[str] = None


class PositionSizer:
    """
    Fixed-fractional position sizing with a position-value ceiling.

    Sizing never raises on a bad signal: anything that cannot be sized
    comes back as a zero quantity with a rejection reason.
    """

    def __init__(self, params: Optional[RiskParams] = None):
        params = params or RiskParams()
        self.max_position_pct = to_decimal(params.max_position_pct)
        self.min_reward_risk = to_decimal(params.min_reward_risk)
        self.max_positions_per_strategy = params.max_positions_per_strategy

    # ------------------------------------------------------------------
    # Sizing
    # ------------------------------------------------------------------

    def size(self, signal: Signal, balance: Number, risk_fraction: Number) -> Decimal:
        """Quantity to trade, or zero when the signal cannot be sized."""
        return self.size_detailed(signal, balance, risk_fraction).quantity

    def size_detailed(self, signal: Signal, balance: Number, risk_fraction: Number) -> SizingResult:
        """
        Calculate position size for a signal.

        Args:
            signal: Signal with price and stop-loss.
            balance: Account balance (or buying power) to size against.
            risk_fraction: Fraction of balance risked, e.g. 0.01 for 1%.

        Returns:
            SizingResult; quantity is min(risk-based size, cap size).
        """
        balance = to_decimal(balance)
        risk_fraction = to_decimal(risk_fraction)

        if signal.stop_loss is None:
            return self._reject(signal, "No stop-loss")
        if signal.price is None or signal.price <= 0:
            return self._reject(signal, "No reference price")
        if balance <= 0:
            return self._reject(signal, "No balance")

        stop_distance = abs(signal.price - signal.stop_loss)
        if stop_distance == 0:
            return self._reject(signal, "Zero stop distance", stop_distance=stop_distance)

        risk_amount = balance * risk_fraction
        risk_based = divide(risk_amount, stop_distance)
        cap = divide(balance * self.max_position_pct, signal.price)
        quantity = min(risk_based, cap)

        if risk_based > cap:
            logger.debug(
                "[%s] Size capped at %s%% of balance: %s -> %s",
                signal.symbol, self.max_position_pct * 100, risk_based, cap,
            )

        if quantity <= 0:
            return self._reject(signal, "Calculated quantity <= 0", stop_distance=stop_distance)

        logger.debug(
            "[%s] %s size=%s risk=%s stop_distance=%s",
            signal.symbol, signal.strategy_name, quantity, risk_amount, stop_distance,
        )

        return SizingResult(
            quantity=quantity,
            risk_amount=risk_amount,
            stop_distance=stop_distance,
            risk_based_quantity=risk_based,
            cap_quantity=cap,
            can_trade=True,
        )

    def _reject(self, signal: Signal, reason: str, stop_distance: Decimal = ZERO) -> SizingResult:
        logger.warning("[%s] Cannot size %s signal: %s", signal.symbol, signal.strategy_name, reason)
        return SizingResult(
            quantity=ZERO,
            risk_amount=ZERO,
            stop_distance=stop_distance,
            risk_based_quantity=ZERO,
            cap_quantity=ZERO,
            can_trade=False,
            rejection_reason=reason,
        )

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, signal: Signal, open_positions_for_same_strategy: int) -> bool:
        """True when the signal may be acted on."""
        return self.rejection_reason(signal, open_positions_for_same_strategy) is None

    def rejection_reason(self, signal: Signal, open_positions_for_same_strategy: int) -> Optional[str]:
        """Why ``signal`` fails validation, or None if it passes."""
        if signal.stop_loss is None:
            return "No stop-loss"

        if signal.take_profit is not None:
            ratio = signal.risk_reward_ratio
            if ratio is None:
                return "Degenerate stop distance"
            if ratio < self.min_reward_risk:
                logger.debug("[%s] R:R %s below minimum %s", signal.symbol, ratio, self.min_reward_risk)
                return f"Reward:risk {ratio} below {self.min_reward_risk}"

        if open_positions_for_same_strategy >= self.max_positions_per_strategy:
            return (
                f"{open_positions_for_same_strategy} open {signal.strategy_name} positions "
                f"(max {self.max_positions_per_strategy})"
            )

        return None
