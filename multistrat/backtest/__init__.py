"""multistrat backtesting framework."""

from .engine import BacktestEngine
from .models import BacktestResult, EquityPoint, PerformanceBreakdown, SimulatedTrade
from .reporter import BacktestReporter, equity_curve_to_dataframe, trades_to_dataframe
from .statistics import StatisticsCalculator, TradeStatistics
from .trade_book import TradeBook

__all__ = [
    "BacktestEngine",
    "BacktestReporter",
    "BacktestResult",
    "EquityPoint",
    "PerformanceBreakdown",
    "SimulatedTrade",
    "StatisticsCalculator",
    "TradeBook",
    "TradeStatistics",
    "equity_curve_to_dataframe",
    "trades_to_dataframe",
]
