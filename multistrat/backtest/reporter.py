"""
Backtest Reporter

Generates formatted text reports and pandas exports from a BacktestResult.
"""

from decimal import Decimal
from typing import Iterable, Optional

import pandas as pd

from .models import BacktestResult, EquityPoint, SimulatedTrade


def _fmt(value: Optional[Decimal], spec: str = ",.2f") -> str:
    if value is None:
        return "n/a"
    return format(float(value), spec)


class BacktestReporter:
    """Generate reports from backtest results."""

    def generate_summary(self, result: BacktestResult) -> str:
        period = "n/a"
        if result.start_time and result.end_time:
            period = f"{result.start_time.date()} to {result.end_time.date()}"

        lines = [
            "=" * 70,
            f"BACKTEST SUMMARY - {result.symbol}",
            "=" * 70,
            "",
            f"Period: {period}",
            f"Bars simulated: {result.bars_processed}",
            "",
            "## ACCOUNT PERFORMANCE",
            f"Initial Capital:   ${_fmt(result.initial_capital):>12}",
            f"Final Capital:     ${_fmt(result.final_capital):>12}",
            f"Total Return:      ${_fmt(result.total_return):>12}",
            f"Return:            {_fmt(result.total_return_percent):>12}%",
            f"Max Drawdown:      {_fmt(result.max_drawdown):>12}%",
            f"Sharpe Ratio:      {_fmt(result.sharpe_ratio):>12}",
            "",
            "## TRADE STATISTICS",
            f"Total Trades:      {result.total_trades:>12}",
            f"Winners:           {result.winning_trades:>12}",
            f"Losers:            {result.losing_trades:>12}",
            f"Win Rate:          {_fmt(result.win_rate, '.1f'):>12}%",
            f"Avg Win:           ${_fmt(result.average_win):>12}",
            f"Avg Loss:          ${_fmt(result.average_loss):>12}",
            f"Profit Factor:     {_fmt(result.profit_factor):>12}",
            f"Commission Paid:   ${_fmt(result.total_commission):>12}",
        ]
        if result.p_value is not None:
            lines.append(f"t-stat / p-value:  {result.t_statistic:>6.2f} / {result.p_value:.4f}")

        return "\n".join(lines)

    def generate_strategy_report(self, result: BacktestResult) -> str:
        lines = [
            "",
            "=" * 70,
            "PERFORMANCE BY STRATEGY",
            "=" * 70,
        ]

        for strategy, perf in result.strategy_performance.items():
            status = "[+]" if perf.total_pnl > 0 else "[-]"
            lines.extend([
                "",
                f"{status} {strategy.value.upper()}",
                f"   Trades:      {perf.trades:>8}  (W:{perf.winners} L:{perf.losers})",
                f"   Win Rate:    {_fmt(perf.win_rate, '.1f'):>8}%",
                f"   Net P&L:     ${_fmt(perf.total_pnl):>8}",
                f"   Avg Return:  {_fmt(perf.average_return, '.3f'):>8}%",
            ])

        if result.exit_reasons:
            lines.extend(["", "Exit reasons: " + ", ".join(
                f"{reason.value}={count}" for reason, count in result.exit_reasons.items()
            )])

        return "\n".join(lines)

    def generate_monthly_report(self, result: BacktestResult) -> str:
        lines = [
            "",
            "=" * 70,
            "PERFORMANCE BY MONTH (exit month)",
            "=" * 70,
        ]

        for month, perf in result.monthly_returns.items():
            lines.append(
                f"{month}   trades={perf.trades:>4}   pnl=${_fmt(perf.total_pnl):>10}"
                f"   win={_fmt(perf.win_rate, '.1f'):>5}%"
            )

        return "\n".join(lines)

    def generate_full_report(self, result: BacktestResult) -> str:
        return "\n".join([
            self.generate_summary(result),
            self.generate_strategy_report(result),
            self.generate_monthly_report(result),
        ])


def trades_to_dataframe(trades: Iterable[SimulatedTrade]) -> pd.DataFrame:
    """Convert closed trades to a DataFrame for analysis."""
    rows = []
    for t in trades:
        rows.append(
            {
                "trade_id": t.trade_id,
                "symbol": t.symbol,
                "strategy": t.strategy.value,
                "entry_time": t.entry_time,
                "exit_time": t.exit_time,
                "entry_price": float(t.entry_price),
                "exit_price": float(t.exit_price) if t.exit_price is not None else None,
                "quantity": float(t.quantity),
                "exit_reason": t.exit_reason.value if t.exit_reason else None,
                "commission": float(t.entry_commission + t.exit_commission),
                "pnl": float(t.pnl),
                "pnl_percent": float(t.pnl_percent),
            }
        )

    if not rows:
        return pd.DataFrame()
    return pd.DataFrame(rows)


def equity_curve_to_dataframe(points: Iterable[EquityPoint]) -> pd.DataFrame:
    """Equity curve indexed by timestamp."""
    rows = [
        {
            "timestamp": p.timestamp,
            "cash": float(p.cash),
            "unrealized_pnl": float(p.unrealized_pnl),
            "equity": float(p.equity),
            "drawdown_pct": float(p.drawdown) * 100,
            "open_trades": p.open_trades,
        }
        for p in points
    ]
    if not rows:
        return pd.DataFrame()
    return pd.DataFrame(rows).set_index("timestamp")
