"""
In-memory store of simulated trades for one backtest run.

Trades are keyed by an integer id handed out in opening order. Closed trades
stay in the book; ``closed()`` returns them in the order they were closed.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from multistrat.core.enums import ExitReason, StrategyType

from .models import SimulatedTrade


class TradeBook:
    """Open/closed trade bookkeeping, owned by a single run."""

    def __init__(self):
        self._trades: Dict[int, SimulatedTrade] = {}
        self._open_ids: List[int] = []
        self._closed_ids: List[int] = []
        self._next_id = 1

    def __len__(self) -> int:
        return len(self._trades)

    def get(self, trade_id: int) -> SimulatedTrade:
        return self._trades[trade_id]

    def open(
        self,
        symbol: str,
        strategy: StrategyType,
        entry_time: datetime,
        entry_price: Decimal,
        quantity: Decimal,
        stop_loss: Optional[Decimal] = None,
        take_profit: Optional[Decimal] = None,
        entry_commission: Decimal = Decimal("0"),
        signal_reason: str = "",
    ) -> SimulatedTrade:
        trade = SimulatedTrade(
            trade_id=self._next_id,
            symbol=symbol,
            strategy=strategy,
            entry_time=entry_time,
            entry_price=entry_price,
            quantity=quantity,
            stop_loss=stop_loss,
            take_profit=take_profit,
            entry_commission=entry_commission,
            signal_reason=signal_reason,
        )
        self._trades[trade.trade_id] = trade
        self._open_ids.append(trade.trade_id)
        self._next_id += 1
        return trade

    def close(
        self,
        trade_id: int,
        exit_time: datetime,
        exit_price: Decimal,
        reason: ExitReason,
        exit_commission: Decimal = Decimal("0"),
    ) -> SimulatedTrade:
        """Close an open trade. Raises KeyError if it is not open."""
        if trade_id not in self._open_ids:
            raise KeyError(f"Trade {trade_id} is not open")
        trade = self._trades[trade_id]
        trade.close(exit_time, exit_price, reason, exit_commission)
        self._open_ids.remove(trade_id)
        self._closed_ids.append(trade_id)
        return trade

    def open_trades(self, strategy: Optional[StrategyType] = None) -> List[SimulatedTrade]:
        """Open trades in opening order, optionally for one strategy."""
        trades = [self._trades[i] for i in self._open_ids]
        if strategy is not None:
            trades = [t for t in trades if t.strategy == strategy]
        return trades

    def count_open(self, strategy: Optional[StrategyType] = None) -> int:
        return len(self.open_trades(strategy))

    def closed(self) -> List[SimulatedTrade]:
        return [self._trades[i] for i in self._closed_ids]

    def locked_notional(self) -> Decimal:
        """Entry value tied up in open trades."""
        return sum((t.notional for t in self.open_trades()), Decimal("0"))

    def unrealized_pnl(self, price: Decimal) -> Decimal:
        return sum((t.unrealized_pnl(price) for t in self.open_trades()), Decimal("0"))
