"""Backtest data models."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from multistrat.core.decimal_math import ZERO, percent
from multistrat.core.enums import ExitReason, StrategyType


@dataclass
class SimulatedTrade:
    """A long position opened by the backtest. Open until ``close()`` is called once."""

    trade_id: int
    symbol: str
    strategy: StrategyType

    entry_time: datetime
    entry_price: Decimal
    quantity: Decimal
    stop_loss: Optional[Decimal] = None
    take_profit: Optional[Decimal] = None
    entry_commission: Decimal = ZERO
    signal_reason: str = ""

    exit_time: Optional[datetime] = None
    exit_price: Optional[Decimal] = None
    exit_reason: Optional[ExitReason] = None
    exit_commission: Decimal = ZERO

    gross_pnl: Decimal = ZERO
    pnl: Decimal = ZERO
    pnl_percent: Decimal = ZERO

    @property
    def is_open(self) -> bool:
        return self.exit_time is None

    @property
    def is_winner(self) -> bool:
        return not self.is_open and self.pnl > 0

    @property
    def notional(self) -> Decimal:
        return self.entry_price * self.quantity

    def unrealized_pnl(self, price: Decimal) -> Decimal:
        return (price - self.entry_price) * self.quantity

    def close(
        self,
        exit_time: datetime,
        exit_price: Decimal,
        reason: ExitReason,
        exit_commission: Decimal = ZERO,
    ) -> Decimal:
        """
        Close the trade and return its net PnL.

        Net PnL subtracts both entry and exit commission.

        Raises:
            ValueError: if the trade was already closed.
        """
        if not self.is_open:
            raise ValueError(f"Trade {self.trade_id} already closed")
        self.exit_time = exit_time
        self.exit_price = exit_price
        self.exit_reason = reason
        self.exit_commission = exit_commission
        self.gross_pnl = self.unrealized_pnl(exit_price)
        self.pnl = self.gross_pnl - self.entry_commission - exit_commission
        self.pnl_percent = percent(self.pnl, self.notional) if self.notional else ZERO
        return self.pnl


@dataclass(frozen=True)
class EquityPoint:
    """Account state after one simulation step."""

    timestamp: datetime
    cash: Decimal
    unrealized_pnl: Decimal
    equity: Decimal
    drawdown: Decimal
    open_trades: int


@dataclass(frozen=True)
class PerformanceBreakdown:
    """Trade statistics for one group of closed trades (a strategy or a month)."""

    trades: int = 0
    winners: int = 0
    total_pnl: Decimal = ZERO
    win_rate: Decimal = ZERO
    average_return: Decimal = ZERO

    @property
    def losers(self) -> int:
        return self.trades - self.winners


@dataclass(frozen=True)
class BacktestResult:
    """Outcome of one backtest run. Built once, after the loop completes."""

    symbol: str
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    bars_processed: int

    initial_capital: Decimal
    final_capital: Decimal
    total_return: Decimal
    total_return_percent: Decimal
    max_drawdown: Decimal
    sharpe_ratio: Optional[Decimal]

    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: Decimal
    average_win: Decimal
    average_loss: Decimal
    profit_factor: Optional[Decimal]
    largest_win: Decimal
    largest_loss: Decimal
    total_commission: Decimal

    trades: Tuple[SimulatedTrade, ...] = ()
    equity_curve: Tuple[EquityPoint, ...] = ()
    monthly_returns: Dict[str, PerformanceBreakdown] = field(default_factory=dict)
    strategy_performance: Dict[StrategyType, PerformanceBreakdown] = field(default_factory=dict)
    exit_reasons: Dict[ExitReason, int] = field(default_factory=dict)

    # One-sample t-test of trade PnL against zero (None with fewer than 2 trades)
    t_statistic: Optional[float] = None
    p_value: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly summary (Decimals as strings, no trade list)."""

        def _s(value: Any) -> Any:
            if isinstance(value, Decimal):
                return str(value)
            if isinstance(value, datetime):
                return value.isoformat()
            return value

        def _breakdown(b: PerformanceBreakdown) -> Dict[str, Any]:
            return {
                "trades": b.trades,
                "winners": b.winners,
                "total_pnl": str(b.total_pnl),
                "win_rate": str(b.win_rate),
                "average_return": str(b.average_return),
            }

        summary_fields = (
            "symbol", "start_time", "end_time", "bars_processed",
            "initial_capital", "final_capital", "total_return", "total_return_percent",
            "max_drawdown", "sharpe_ratio", "total_trades", "winning_trades",
            "losing_trades", "win_rate", "average_win", "average_loss",
            "profit_factor", "largest_win", "largest_loss", "total_commission",
            "t_statistic", "p_value",
        )
        data = {name: _s(getattr(self, name)) for name in summary_fields}
        data["monthly_returns"] = {k: _breakdown(v) for k, v in self.monthly_returns.items()}
        data["strategy_performance"] = {k.value: _breakdown(v) for k, v in self.strategy_performance.items()}
        data["exit_reasons"] = {k.value: v for k, v in self.exit_reasons.items()}
        return data
