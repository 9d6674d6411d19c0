"""
multistrat Core Data Models

Dataclasses for market bars and indicator outputs.
Pydantic model for strategy signals.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .decimal_math import ZERO, divide
from .enums import SignalType, StrategyType


@dataclass(frozen=True)
class Bar:
    """One OHLCV observation for a symbol."""

    symbol: str
    timestamp: datetime
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal
    quote_volume: Decimal = ZERO
    trade_count: int = 0

    @property
    def range(self) -> Decimal:
        return self.high - self.low


@dataclass(frozen=True)
class BollingerBands:
    """Bollinger band triple for the latest bar of a series."""

    upper: Decimal
    middle: Decimal
    lower: Decimal
    std_dev: Decimal


class Signal(BaseModel):
    """
    A directional recommendation produced by one strategy analyzer.

    HOLD signals carry no confidence. A BUY/SELL without a stop-loss is
    allowed here; sizing and validation reject it downstream.
    """

    signal_type: SignalType
    strategy: Optional[StrategyType] = None
    symbol: str = ""
    timestamp: Optional[datetime] = None

    price: Optional[Decimal] = None
    stop_loss: Optional[Decimal] = None
    take_profit: Optional[Decimal] = None

    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    reason: str = ""

    model_config = ConfigDict(frozen=True)

    @classmethod
    def hold(
        cls,
        strategy: Optional[StrategyType],
        reason: str,
        symbol: str = "",
        timestamp: Optional[datetime] = None,
        price: Optional[Decimal] = None,
    ) -> "Signal":
        return cls(
            signal_type=SignalType.HOLD,
            strategy=strategy,
            symbol=symbol,
            timestamp=timestamp,
            price=price,
            reason=reason,
        )

    @property
    def strategy_name(self) -> str:
        return self.strategy.value if self.strategy is not None else "unassigned"

    @property
    def is_actionable(self) -> bool:
        """BUY or SELL with a confidence attached."""
        return self.signal_type != SignalType.HOLD and self.confidence is not None

    @property
    def stop_distance(self) -> Optional[Decimal]:
        if self.price is None or self.stop_loss is None:
            return None
        return abs(self.price - self.stop_loss)

    @property
    def risk_reward_ratio(self) -> Optional[Decimal]:
        """Reward:risk from price, stop and target at scale 2, None if undefined."""
        risk = self.stop_distance
        if risk is None or self.take_profit is None or risk == 0:
            return None
        reward = abs(self.take_profit - self.price)
        return divide(reward, risk, 2)
