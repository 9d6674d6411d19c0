"""
Calculate backtest statistics from closed trades and the equity curve.

Key metrics:
- Win rate, average win/loss, profit factor
- Sharpe ratio from per-step equity returns
- Per-strategy and per-month breakdowns
- Statistical significance (t-test on trade PnL)

All Decimal results use the fixed-point helpers: percentages are computed
at scale 4 and multiplied by 100, everything else is scale 8.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, Hashable, List, Optional, Sequence, Tuple

import numpy as np
from scipy import stats as sp_stats

from multistrat.core.decimal_math import (
    PERCENT_SCALE,
    ZERO,
    divide,
    mean,
    percent,
    sqrt,
)
from multistrat.core.enums import ExitReason, StrategyType

from .models import PerformanceBreakdown, SimulatedTrade

logger = logging.getLogger(__name__)

TRADING_DAYS_PER_YEAR = 252


@dataclass(frozen=True)
class TradeStatistics:
    """Win/loss split over a list of closed trades."""

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


def month_key(trade: SimulatedTrade) -> str:
    """Calendar month a trade is reported in: its exit month, 'YYYY-MM'."""
    return trade.exit_time.strftime("%Y-%m")


class StatisticsCalculator:
    """Calculate backtest statistics."""

    def trade_statistics(self, trades: Sequence[SimulatedTrade]) -> TradeStatistics:
        """
        Win/loss metrics. A trade is a win iff its net PnL is > 0.

        Profit factor is None when there are no losing PnL dollars.
        """
        winning = [t for t in trades if t.pnl > 0]
        losing = [t for t in trades if t.pnl <= 0]

        total_win = sum((t.pnl for t in winning), ZERO)
        total_loss = sum((abs(t.pnl) for t in losing), ZERO)

        profit_factor = divide(total_win, total_loss) if total_loss > 0 else None
        pnls = [t.pnl for t in trades]

        return TradeStatistics(
            total_trades=len(trades),
            winning_trades=len(winning),
            losing_trades=len(losing),
            win_rate=percent(len(winning), len(trades)) if trades else ZERO,
            average_win=mean(t.pnl for t in winning),
            average_loss=mean(abs(t.pnl) for t in losing),
            profit_factor=profit_factor,
            largest_win=max(pnls) if winning else ZERO,
            largest_loss=min(pnls) if losing else ZERO,
            total_commission=sum((t.entry_commission + t.exit_commission for t in trades), ZERO),
        )

    @staticmethod
    def step_returns(equity: Sequence[Decimal]) -> List[Decimal]:
        """(e_t - e_{t-1}) / e_{t-1}; steps from a non-positive equity are skipped."""
        returns = []
        for prev, cur in zip(equity, equity[1:]):
            if prev <= 0:
                continue
            returns.append(divide(cur - prev, prev))
        return returns

    def sharpe_ratio(self, equity: Sequence[Decimal]) -> Optional[Decimal]:
        """
        Annualized Sharpe ratio of per-step equity returns.

        Mean and population standard deviation are both scaled by sqrt(252)
        before dividing. None with fewer than 2 returns or zero deviation.
        """
        returns = self.step_returns(equity)
        if len(returns) < 2:
            return None

        avg = mean(returns)
        variance = mean((r - avg) ** 2 for r in returns)
        std = sqrt(variance)
        if std == 0:
            return None

        annual = sqrt(TRADING_DAYS_PER_YEAR)
        return divide(avg * annual, std * annual)

    @staticmethod
    def breakdown(trades: Sequence[SimulatedTrade]) -> PerformanceBreakdown:
        if not trades:
            return PerformanceBreakdown()
        winners = sum(1 for t in trades if t.pnl > 0)
        return PerformanceBreakdown(
            trades=len(trades),
            winners=winners,
            total_pnl=sum((t.pnl for t in trades), ZERO),
            win_rate=percent(winners, len(trades)),
            average_return=mean((t.pnl_percent for t in trades), PERCENT_SCALE),
        )

    def _grouped(
        self,
        trades: Sequence[SimulatedTrade],
        key: Callable[[SimulatedTrade], Hashable],
    ) -> Dict[Hashable, PerformanceBreakdown]:
        groups: "OrderedDict[Hashable, List[SimulatedTrade]]" = OrderedDict()
        for trade in trades:
            groups.setdefault(key(trade), []).append(trade)
        return {k: self.breakdown(v) for k, v in groups.items()}

    def strategy_performance(self, trades: Sequence[SimulatedTrade]) -> Dict[StrategyType, PerformanceBreakdown]:
        """Breakdown per originating strategy, in canonical strategy order."""
        grouped = self._grouped(trades, lambda t: t.strategy)
        return {s: grouped[s] for s in StrategyType if s in grouped}

    def monthly_returns(self, trades: Sequence[SimulatedTrade]) -> Dict[str, PerformanceBreakdown]:
        """Breakdown per exit month, sorted by month."""
        grouped = self._grouped(trades, month_key)
        return {k: grouped[k] for k in sorted(grouped)}

    @staticmethod
    def exit_reasons(trades: Sequence[SimulatedTrade]) -> Dict[ExitReason, int]:
        counts = {}
        for reason in ExitReason:
            n = sum(1 for t in trades if t.exit_reason == reason)
            if n:
                counts[reason] = n
        return counts

    @staticmethod
    def significance_test(pnl_values: Sequence[Decimal]) -> Tuple[Optional[float], Optional[float]]:
        """One-tailed t-test: is mean PnL significantly > 0?"""
        if len(pnl_values) < 2:
            return None, None

        arr = np.array([float(v) for v in pnl_values])
        if np.std(arr, ddof=1) == 0:
            return None, None

        t_stat, p_two = sp_stats.ttest_1samp(arr, 0)
        if not (np.isfinite(t_stat) and np.isfinite(p_two)):
            return None, None
        # Convert to one-tailed (H1: mean > 0)
        p_one = p_two / 2 if t_stat > 0 else 1 - p_two / 2
        return float(t_stat), float(p_one)
