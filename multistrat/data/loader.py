"""
Historical bar loading from CSV / DataFrames.

Expected columns (case-insensitive): timestamp, open, high, low, close,
volume, and optionally symbol, quote_volume, trade_count. Timestamps may be
ISO strings or epoch milliseconds. Prices are parsed from their text form so
no float rounding leaks into the Decimal values.

Malformed rows are dropped here, before the backtest ever sees them.
"""

import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

from multistrat.core.exceptions import DataError
from multistrat.core.models import Bar

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("timestamp", "open", "high", "low", "close", "volume")

_ALIASES = {
    "open_time": "timestamp",
    "date": "timestamp",
    "datetime": "timestamp",
    "time": "timestamp",
    "quote_asset_volume": "quote_volume",
    "volume_usdt": "quote_volume",
    "number_of_trades": "trade_count",
    "trades": "trade_count",
}


def _parse_timestamps(values: pd.Series) -> pd.Series:
    text = values.astype(str).str.strip()
    if text.str.fullmatch(r"\d{11,}").all():
        return pd.to_datetime(text.astype("int64"), unit="ms", errors="coerce")
    return pd.to_datetime(text, errors="coerce")


def _decimal(value) -> Decimal:
    result = Decimal(str(value).strip())
    if not result.is_finite():
        raise InvalidOperation(f"non-finite value {value!r}")
    return result


def _optional_decimal(value) -> Decimal:
    if value is None or (isinstance(value, str) and not value.strip()):
        return Decimal("0")
    if not isinstance(value, str) and pd.isna(value):
        return Decimal("0")
    return _decimal(value)


def bars_from_dataframe(
    df: pd.DataFrame,
    symbol: Optional[str] = None,
    default_symbol: Optional[str] = None,
) -> List[Bar]:
    """
    Convert a DataFrame of OHLCV rows into Bars sorted by timestamp.

    Args:
        df: Raw frame; a DatetimeIndex named 'timestamp' is accepted too.
        symbol: Symbol for every bar, overriding any symbol column.
        default_symbol: Used when there is neither ``symbol`` nor a symbol column.

    Raises:
        DataError: if required columns are missing or no symbol is known.
    """
    if df.index.name and df.index.name.lower() in ("timestamp", "date", "datetime"):
        df = df.reset_index()

    df = df.rename(columns=lambda c: str(c).strip().lower())
    df = df.rename(columns={k: v for k, v in _ALIASES.items() if k in df.columns and v not in df.columns})

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise DataError(f"Missing columns: {missing}")
    if symbol is None and "symbol" not in df.columns:
        symbol = default_symbol
    if symbol is None and "symbol" not in df.columns:
        raise DataError("No symbol column and no symbol given")

    timestamps = _parse_timestamps(df["timestamp"])

    bars: List[Bar] = []
    skipped = 0
    for idx, row in enumerate(df.itertuples(index=False)):
        ts = timestamps.iloc[idx]
        if pd.isna(ts):
            skipped += 1
            continue
        row_symbol = symbol or str(getattr(row, "symbol"))
        try:
            bar = Bar(
                symbol=row_symbol,
                timestamp=ts.to_pydatetime(),
                open=_decimal(row.open),
                high=_decimal(row.high),
                low=_decimal(row.low),
                close=_decimal(row.close),
                volume=_decimal(row.volume),
                quote_volume=_optional_decimal(getattr(row, "quote_volume", None)),
                trade_count=int(_optional_decimal(getattr(row, "trade_count", None))),
            )
        except (InvalidOperation, ValueError, TypeError) as e:
            logger.debug(f"Skipping row {idx}: {e}")
            skipped += 1
            continue

        if bar.high < bar.low or bar.volume < 0:
            skipped += 1
            continue
        bars.append(bar)

    if skipped:
        logger.warning(f"Skipped {skipped} malformed rows of {len(df)}")

    bars.sort(key=lambda b: b.timestamp)
    return bars


def load_bars_csv(
    path: Union[str, Path],
    symbol: Optional[str] = None,
    default_symbol: Optional[str] = None,
) -> List[Bar]:
    """
    Load bars from a CSV file.

    Raises:
        DataError: if the file cannot be read or lacks required columns.
    """
    path = Path(path)
    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise DataError(f"Cannot read {path}: {e}") from e

    bars = bars_from_dataframe(df, symbol, default_symbol)
    logger.info(f"Loaded {len(bars)} bars from {path.name}")
    return bars
