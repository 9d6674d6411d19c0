"""
Backtest engine: walks a historical bar series through the strategy
analyzers and simulates the resulting long trades.

Usage::

    engine = BacktestEngine(load_backtest_config({"lookback_period": 100}))
    result = engine.run(bars, initial_capital=10_000)
    print(result.total_return_percent, result.max_drawdown)

Each step i (from lookback_period to the last bar) sees the window
bars[i - lookback_period : i + 1] and runs, in order:

1. stop-loss / take-profit check on open trades at the bar's close
2. analyzers on the window, arbitrated to one signal
3. BUY -> open a trade (if under max_positions and sizable)
4. SELL -> close open trades of the signal's strategy
5. equity and drawdown bookkeeping

Remaining trades are force-closed at the last close.
"""

import logging
from concurrent.futures import ProcessPoolExecutor
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence

from multistrat.config.backtest_config import BacktestConfig, ensure_valid
from multistrat.core.decimal_math import (
    HUNDRED,
    ONE,
    PERCENT_SCALE,
    ZERO,
    Number,
    divide,
    percent,
    quantize,
    to_decimal,
)
from multistrat.core.enums import ExitReason, SignalType
from multistrat.core.exceptions import ConfigurationError, DataError
from multistrat.core.models import Bar, Signal
from multistrat.execution.arbitrator import select_best
from multistrat.indicators import atr
from multistrat.risk.position_sizer import PositionSizer
from multistrat.risk.trailing import trail_stop
from multistrat.strategies import run_enabled

from .models import BacktestResult, EquityPoint, SimulatedTrade
from .statistics import StatisticsCalculator
from .trade_book import TradeBook

logger = logging.getLogger(__name__)

DEFAULT_INITIAL_CAPITAL = Decimal("10000")


class BacktestEngine:
    """
    Runs backtests for one configuration.

    The engine holds only read-only collaborators; all mutable state lives
    in a per-run ``_BacktestRun``, so one engine can run many series.
    """

    def __init__(
        self,
        config: Optional[BacktestConfig] = None,
        sizer: Optional[PositionSizer] = None,
        statistics: Optional[StatisticsCalculator] = None,
    ):
        self.config = ensure_valid(config)
        self.sizer = sizer or PositionSizer(self.config.risk)
        self.statistics = statistics or StatisticsCalculator()

    def run(self, bars: Sequence[Bar], initial_capital: Number = DEFAULT_INITIAL_CAPITAL) -> BacktestResult:
        """
        Run a backtest over ``bars``.

        Raises:
            ConfigurationError: if initial_capital is not positive.
            DataError: if the series is empty, too short for one step,
                mixes symbols, or is not ordered by timestamp.
        """
        capital = to_decimal(initial_capital)
        if capital <= 0:
            raise ConfigurationError(f"initial_capital must be positive, got {capital}")
        self._check_series(bars)

        logger.info(
            "Backtest %s: %d bars, lookback=%d, strategies=%s",
            bars[0].symbol,
            len(bars),
            self.config.lookback_period,
            [s.value for s in self.config.enabled_strategies()],
        )
        result = _BacktestRun(self, list(bars), capital).execute()
        logger.info(
            "Backtest %s complete: %d trades, return=%s%%, max_dd=%s%%",
            result.symbol, result.total_trades, result.total_return_percent, result.max_drawdown,
        )
        return result

    def run_many(
        self,
        series: Mapping[str, Sequence[Bar]],
        initial_capital: Number = DEFAULT_INITIAL_CAPITAL,
        max_workers: Optional[int] = None,
    ) -> Dict[str, BacktestResult]:
        """
        Run independent backtests, one per key of ``series``.

        With max_workers > 1 the runs execute in a process pool; results are
        identical to running them one by one.
        """
        keys = list(series)
        if not max_workers or max_workers <= 1:
            return {k: self.run(series[k], initial_capital) for k in keys}

        with ProcessPoolExecutor(max_workers=max_workers) as pool:
            futures = {k: pool.submit(_run_one, self, list(series[k]), initial_capital) for k in keys}
            return {k: futures[k].result() for k in keys}

    def _check_series(self, bars: Sequence[Bar]) -> None:
        if not bars:
            raise DataError("No bars supplied")
        needed = self.config.lookback_period + 1
        if len(bars) < needed:
            raise DataError(f"Need at least {needed} bars for lookback {self.config.lookback_period}, got {len(bars)}")
        symbol = bars[0].symbol
        for prev, bar in zip(bars, bars[1:]):
            if bar.symbol != symbol:
                raise DataError(f"Mixed symbols in series: {symbol} and {bar.symbol}")
            if bar.timestamp < prev.timestamp:
                raise DataError(f"Bars out of order at {bar.timestamp}")


def _run_one(engine: BacktestEngine, bars: List[Bar], initial_capital: Number) -> BacktestResult:
    return engine.run(bars, initial_capital)


class _BacktestRun:
    """Mutable state of a single run: cash, trade book, equity curve."""

    def __init__(self, engine: BacktestEngine, bars: List[Bar], initial_capital: Decimal):
        self.config = engine.config
        self.sizer = engine.sizer
        self.statistics = engine.statistics
        self.bars = bars
        self.initial_capital = initial_capital

        self.commission_rate = to_decimal(self.config.commission_rate)
        self.slippage_rate = to_decimal(self.config.slippage_rate)
        self.risk_fraction = to_decimal(self.config.risk_per_trade)

        # Settled balance: initial capital + realized net PnL - commission on open trades.
        self.cash = initial_capital
        self.book = TradeBook()
        self.equity_curve: List[EquityPoint] = []
        self.peak_equity = initial_capital
        self.max_drawdown = ZERO

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def execute(self) -> BacktestResult:
        lookback = self.config.lookback_period

        for i in range(lookback, len(self.bars)):
            window = self.bars[i - lookback:i + 1]
            bar = self.bars[i]

            self._check_exits(bar, window)

            best = select_best(run_enabled(window, self.config))
            if best is not None:
                if best.signal_type == SignalType.BUY:
                    self._enter(best, bar)
                elif best.signal_type == SignalType.SELL:
                    self._exit_by_signal(best, bar)

            self._mark_to_market(bar)

        last = self.bars[-1]
        for trade in self.book.open_trades():
            self._close(trade, last, ExitReason.END_OF_BACKTEST)

        return self._build_result()

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _check_exits(self, bar: Bar, window: Sequence[Bar]) -> None:
        price = bar.close
        trailing = self.config.trailing_stop
        current_atr = None
        if trailing.enabled and self.book.count_open():
            current_atr = atr(window[-(trailing.atr_period + 1):], trailing.atr_period)

        for trade in self.book.open_trades():
            if trade.stop_loss is not None and price <= trade.stop_loss:
                self._close(trade, bar, ExitReason.STOP_LOSS)
            elif trade.take_profit is not None and price >= trade.take_profit:
                self._close(trade, bar, ExitReason.TAKE_PROFIT)
            elif trailing.enabled:
                new_stop = trail_stop(trade.stop_loss, trade.entry_price, price, current_atr, trailing.atr_multiplier)
                if new_stop != trade.stop_loss:
                    logger.debug("Trade %d stop trailed %s -> %s", trade.trade_id, trade.stop_loss, new_stop)
                    trade.stop_loss = new_stop

    def _enter(self, signal: Signal, bar: Bar) -> Optional[SimulatedTrade]:
        if self.book.count_open() >= self.config.max_positions:
            logger.debug("Skip %s BUY at %s: max positions", signal.strategy_name, bar.timestamp)
            return None

        if self.config.validate_signals:
            reason = self.sizer.rejection_reason(signal, self.book.count_open(signal.strategy))
            if reason is not None:
                logger.debug("Skip %s BUY at %s: %s", signal.strategy_name, bar.timestamp, reason)
                return None

        buying_power = self.cash - self.book.locked_notional()
        if buying_power <= 0:
            return None

        entry_price = quantize(bar.close * (ONE + self.slippage_rate))
        quantity = self.sizer.size(signal, buying_power, self.risk_fraction)
        affordable = divide(buying_power, entry_price * (ONE + self.commission_rate))
        quantity = min(quantity, affordable)
        if quantity <= 0:
            return None

        commission = quantize(entry_price * quantity * self.commission_rate)
        self.cash -= commission
        trade = self.book.open(
            symbol=bar.symbol,
            strategy=signal.strategy,
            entry_time=bar.timestamp,
            entry_price=entry_price,
            quantity=quantity,
            stop_loss=signal.stop_loss,
            take_profit=signal.take_profit,
            entry_commission=commission,
            signal_reason=signal.reason,
        )
        logger.debug(
            "Open #%d %s qty=%s @ %s stop=%s target=%s",
            trade.trade_id, signal.strategy_name, quantity, entry_price,
            signal.stop_loss, signal.take_profit,
        )
        return trade

    def _exit_by_signal(self, signal: Signal, bar: Bar) -> None:
        for trade in self.book.open_trades(signal.strategy):
            self._close(trade, bar, ExitReason.SIGNAL_EXIT)

    def _close(self, trade: SimulatedTrade, bar: Bar, reason: ExitReason) -> None:
        exit_price = quantize(bar.close * (ONE - self.slippage_rate))
        commission = quantize(exit_price * trade.quantity * self.commission_rate)
        self.book.close(trade.trade_id, bar.timestamp, exit_price, reason, commission)
        self.cash += trade.gross_pnl - commission
        logger.debug("Close #%d %s @ %s pnl=%s", trade.trade_id, reason.value, exit_price, trade.pnl)

    def _mark_to_market(self, bar: Bar) -> None:
        unrealized = self.book.unrealized_pnl(bar.close)
        equity = self.cash + unrealized

        if equity > self.peak_equity:
            self.peak_equity = equity
        drawdown = ZERO
        if self.peak_equity > 0:
            drawdown = divide(self.peak_equity - equity, self.peak_equity, PERCENT_SCALE)
        if drawdown > self.max_drawdown:
            self.max_drawdown = drawdown

        self.equity_curve.append(EquityPoint(
            timestamp=bar.timestamp,
            cash=self.cash,
            unrealized_pnl=unrealized,
            equity=equity,
            drawdown=drawdown,
            open_trades=self.book.count_open(),
        ))

    # ------------------------------------------------------------------
    # Result
    # ------------------------------------------------------------------

    def _build_result(self) -> BacktestResult:
        trades = self.book.closed()
        stats = self.statistics.trade_statistics(trades)
        final_capital = self.cash
        total_return = final_capital - self.initial_capital
        t_stat, p_value = self.statistics.significance_test([t.pnl for t in trades])

        return BacktestResult(
            symbol=self.bars[0].symbol,
            start_time=self.bars[0].timestamp,
            end_time=self.bars[-1].timestamp,
            bars_processed=len(self.equity_curve),
            initial_capital=self.initial_capital,
            final_capital=final_capital,
            total_return=total_return,
            total_return_percent=percent(total_return, self.initial_capital),
            max_drawdown=self.max_drawdown * HUNDRED,
            sharpe_ratio=self.statistics.sharpe_ratio([p.equity for p in self.equity_curve]),
            total_trades=stats.total_trades,
            winning_trades=stats.winning_trades,
            losing_trades=stats.losing_trades,
            win_rate=stats.win_rate,
            average_win=stats.average_win,
            average_loss=stats.average_loss,
            profit_factor=stats.profit_factor,
            largest_win=stats.largest_win,
            largest_loss=stats.largest_loss,
            total_commission=stats.total_commission,
            trades=tuple(trades),
            equity_curve=tuple(self.equity_curve),
            monthly_returns=self.statistics.monthly_returns(trades),
            strategy_performance=self.statistics.strategy_performance(trades),
            exit_reasons=self.statistics.exit_reasons(trades),
            t_statistic=t_stat,
            p_value=p_value,
        )
