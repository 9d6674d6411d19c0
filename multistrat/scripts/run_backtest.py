"""
Run a backtest over a CSV of historical bars and print the report.

Usage::

    python -m multistrat.scripts.run_backtest --csv data/BTCUSDT_1h.csv
    python -m multistrat.scripts.run_backtest --csv BTCUSDT_1h.csv          # looked up in MULTISTRAT_DATA_DIR
    python -m multistrat.scripts.run_backtest --csv bars.csv --config backtest.json
    python -m multistrat.scripts.run_backtest --csv bars.csv --disable mean_reversion --trades-out trades.csv
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from multistrat.backtest import BacktestEngine, BacktestReporter, trades_to_dataframe
from multistrat.config import get_settings, load_backtest_config
from multistrat.core.enums import StrategyType
from multistrat.core.exceptions import MultistratError
from multistrat.data import load_bars_csv

logger = logging.getLogger(__name__)

_ENABLE_FLAGS = {
    StrategyType.TREND_FOLLOWING: "enable_trend_following",
    StrategyType.VOLATILITY_BREAKOUT: "enable_volatility_breakout",
    StrategyType.MEAN_REVERSION: "enable_mean_reversion",
    StrategyType.VOLUME_SPIKE_REVERSAL: "enable_volume_spike",
}


def _resolve_csv(path: Path, data_dir: str) -> Path:
    """Relative paths that do not exist as given are looked up under data_dir."""
    if path.is_absolute() or path.exists():
        return path
    candidate = Path(data_dir) / path
    return candidate if candidate.exists() else path


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="multistrat - multi-strategy backtest over historical bars",
    )
    parser.add_argument("--csv", type=Path, required=True,
                        help=f"CSV file of OHLCV bars (relative paths also tried under {settings.data_dir})")
    parser.add_argument("--symbol", type=str, default=None,
                        help="Symbol for the bars (default: CSV symbol column or settings)")
    parser.add_argument("--capital", type=float, default=settings.initial_capital)
    parser.add_argument("--config", type=Path, default=settings.backtest_config_path,
                        help="JSON file with BacktestConfig fields")
    parser.add_argument("--lookback", type=int, default=None)
    parser.add_argument("--disable", action="append", default=[],
                        choices=[s.value for s in StrategyType],
                        help="Disable a strategy (repeatable)")
    parser.add_argument("--trades-out", type=Path, default=None,
                        help="Write closed trades to this CSV")
    parser.add_argument("--log-level", type=str, default=settings.log_level)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s  %(name)-30s  %(levelname)-7s  %(message)s",
    )

    overrides = {"lookback_period": args.lookback}
    for name in args.disable:
        overrides[_ENABLE_FLAGS[StrategyType(name)]] = False

    try:
        config = load_backtest_config(args.config, **overrides)
        settings = get_settings()
        csv_path = _resolve_csv(args.csv, settings.data_dir)
        bars = load_bars_csv(csv_path, args.symbol, default_symbol=settings.default_symbol)
        result = BacktestEngine(config).run(bars, args.capital)
    except MultistratError as e:
        logger.error(f"Backtest failed: {e}")
        return 1

    print(BacktestReporter().generate_full_report(result))

    if args.trades_out:
        trades_to_dataframe(result.trades).to_csv(args.trades_out, index=False)
        print(f"\nTrades written to {args.trades_out}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
