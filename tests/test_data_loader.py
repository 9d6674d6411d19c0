"""Tests for CSV / DataFrame bar loading."""

from datetime import datetime
from decimal import Decimal

import pandas as pd
import pytest

from multistrat.core.exceptions import DataError
from multistrat.data import bars_from_dataframe, load_bars_csv

HEADER = "timestamp,symbol,open,high,low,close,volume\n"


def _write(tmp_path, body, header=HEADER, name="bars.csv"):
    path = tmp_path / name
    path.write_text(header + body)
    return path


class TestLoadCsv:

    def test_basic_rows(self, tmp_path):
        path = _write(tmp_path, (
            "2024-01-01 00:00:00,BTCUSDT,100.10,101.20,99.90,100.70,12.5\n"
            "2024-01-01 01:00:00,BTCUSDT,100.70,102.00,100.50,101.90,8.25\n"
        ))
        bars = load_bars_csv(path)

        assert len(bars) == 2
        assert bars[0].symbol == "BTCUSDT"
        assert bars[0].timestamp == datetime(2024, 1, 1, 0, 0)
        assert bars[0].close == Decimal("100.70")
        assert bars[1].volume == Decimal("8.25")

    def test_prices_parsed_exactly(self, tmp_path):
        path = _write(tmp_path, "2024-01-01 00:00:00,BTCUSDT,0.1,0.4,0.1,0.30000001,1\n")
        bar = load_bars_csv(path)[0]
        assert bar.close == Decimal("0.30000001")
        assert bar.high == Decimal("0.4")

    def test_sorted_by_timestamp(self, tmp_path):
        path = _write(tmp_path, (
            "2024-01-03 00:00:00,BTCUSDT,1,1,1,3,1\n"
            "2024-01-01 00:00:00,BTCUSDT,1,1,1,1,1\n"
            "2024-01-02 00:00:00,BTCUSDT,1,1,1,2,1\n"
        ))
        assert [b.close for b in load_bars_csv(path)] == [Decimal("1"), Decimal("2"), Decimal("3")]

    def test_malformed_rows_skipped(self, tmp_path):
        path = _write(tmp_path, (
            "2024-01-01 00:00:00,BTCUSDT,100,101,99,100,10\n"
            "2024-01-02 00:00:00,BTCUSDT,100,101,99,abc,10\n"
            "2024-01-03 00:00:00,BTCUSDT,100,98,99,100,10\n"
            "2024-01-04 00:00:00,BTCUSDT,100,101,99,100,-5\n"
            "not-a-date,BTCUSDT,100,101,99,100,10\n"
            "2024-01-06 00:00:00,BTCUSDT,100,101,99,100,10\n"
        ))
        bars = load_bars_csv(path)
        assert [b.timestamp.day for b in bars] == [1, 6]

    def test_epoch_millisecond_timestamps_and_aliases(self, tmp_path):
        header = "Open_Time,Open,High,Low,Close,Volume,Number_Of_Trades\n"
        path = _write(tmp_path, "1704067200000,1,2,0.5,1.5,10,42\n", header=header)

        bar = load_bars_csv(path, symbol="ETHUSDT")[0]
        assert bar.symbol == "ETHUSDT"
        assert bar.timestamp == datetime(2024, 1, 1)
        assert bar.trade_count == 42
        assert bar.quote_volume == Decimal("0")

    def test_symbol_argument_overrides_column(self, tmp_path):
        path = _write(tmp_path, "2024-01-01 00:00:00,BTCUSDT,1,1,1,1,1\n")
        assert load_bars_csv(path, symbol="SOLUSDT")[0].symbol == "SOLUSDT"

    def test_default_symbol_used_without_column(self, tmp_path):
        header = "timestamp,open,high,low,close,volume\n"
        path = _write(tmp_path, "2024-01-01 00:00:00,1,1,1,1,1\n", header=header)

        assert load_bars_csv(path, default_symbol="BTCUSDT")[0].symbol == "BTCUSDT"
        with pytest.raises(DataError):
            load_bars_csv(path)

    def test_missing_column(self, tmp_path):
        path = _write(tmp_path, "2024-01-01 00:00:00,BTCUSDT,1,1,1,1\n",
                      header="timestamp,symbol,open,high,low,close\n")
        with pytest.raises(DataError, match="volume"):
            load_bars_csv(path)

    def test_unreadable_file(self, tmp_path):
        with pytest.raises(DataError):
            load_bars_csv(tmp_path / "missing.csv")


class TestFromDataFrame:

    def test_datetime_index(self):
        df = pd.DataFrame(
            {"open": ["1"], "high": ["2"], "low": ["0.5"], "close": ["1.5"], "volume": ["3"]},
            index=pd.DatetimeIndex([datetime(2024, 2, 1)], name="timestamp"),
        )
        bars = bars_from_dataframe(df, symbol="BTCUSDT")
        assert bars[0].timestamp == datetime(2024, 2, 1)
        assert bars[0].low == Decimal("0.5")
