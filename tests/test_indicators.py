"""Tests for the technical indicator library."""

from dataclasses import replace
from decimal import Decimal

import pytest

from multistrat.indicators import (
    atr,
    average_volume,
    bollinger_bands,
    ema,
    highest_high,
    lowest_low,
    rsi,
    sma,
    true_ranges,
)


# ---------------------------------------------------------------------------
# Moving averages
# ---------------------------------------------------------------------------

class TestSMA:

    def test_constant_series(self):
        assert sma([10, 10, 10, 10, 10], 5) == Decimal("10")

    @pytest.mark.parametrize("period", [1, 3, 7])
    def test_constant_series_any_period(self, period):
        assert sma([Decimal("42.5")] * 10, period) == Decimal("42.5")

    def test_uses_last_period_values(self):
        assert sma([1, 2, 3, 4, 5], 2) == Decimal("4.5")

    def test_insufficient_data_is_none(self):
        assert sma([1, 2], 3) is None

    def test_period_must_be_positive(self):
        with pytest.raises(ValueError):
            sma([1, 2, 3], 0)


class TestEMA:

    def test_constant_series(self):
        assert ema([7] * 12, 5) == Decimal("7")

    def test_seed_is_sma_of_first_period(self):
        assert ema([2, 4, 6], 3) == Decimal("4")

    def test_recurrence(self):
        # seed 1.5, k = 2/3 -> 3 * k + 1.5 * (1 - k) = 2.5 (within rounding)
        value = ema([1, 2, 3], 2)
        assert abs(value - Decimal("2.5")) < Decimal("0.0000001")

    def test_insufficient_data_is_none(self):
        assert ema([1, 2], 5) is None


# ---------------------------------------------------------------------------
# ATR
# ---------------------------------------------------------------------------

class TestATR:

    def test_constant_range_flat_closes(self, make_bar):
        bars = [make_bar(i, 100, high=101, low=99) for i in range(15)]
        assert atr(bars, 14) == Decimal("2")

    def test_needs_period_plus_one_bars(self, make_bar):
        bars = [make_bar(i, 100, high=101, low=99) for i in range(14)]
        assert atr(bars, 14) is None

    def test_gap_uses_previous_close(self, make_bar):
        bars = [make_bar(0, 100), make_bar(1, 108, high=110, low=105)]
        assert true_ranges(bars) == [Decimal("10")]
        assert atr(bars, 1) == Decimal("10")

    def test_never_negative(self, make_bar):
        bars = [make_bar(i, 100 - i, high=101 - i, low=98 - i) for i in range(20)]
        assert atr(bars, 14) >= 0


# ---------------------------------------------------------------------------
# Bollinger Bands
# ---------------------------------------------------------------------------

class TestBollingerBands:

    def test_population_std(self):
        bands = bollinger_bands([1, 2, 3, 4, 5], 5, 2)
        assert bands.middle == Decimal("3")
        assert bands.std_dev == Decimal("1.41421356")
        assert bands.upper == Decimal("5.82842712")
        assert bands.lower == Decimal("0.17157288")

    def test_constant_series_collapses(self):
        bands = bollinger_bands([50] * 20, 20, 2)
        assert bands.upper == bands.middle == bands.lower == Decimal("50")

    def test_ordering(self):
        series = [100, 103, 97, 110, 92, 101, 99, 104, 96, 100]
        bands = bollinger_bands(series, 10, 2.5)
        assert bands.upper >= bands.middle >= bands.lower

    def test_insufficient_data_is_none(self):
        assert bollinger_bands([1, 2, 3], 20, 2) is None


# ---------------------------------------------------------------------------
# RSI
# ---------------------------------------------------------------------------

class TestRSI:

    def test_no_losses_is_100(self):
        assert rsi(list(range(1, 20)), 14) == Decimal("100")

    def test_no_gains_is_0(self):
        assert rsi(list(range(20, 1, -1)), 14) == Decimal("0")

    def test_uses_first_period_deltas(self):
        # +1, -1 -> RS 1 -> 50; the later jump is outside the first two deltas
        assert rsi([1, 2, 1, 100], 2) == Decimal("50")

    def test_bounded(self):
        series = [100, 102, 101, 105, 103, 99, 98, 104, 107, 103, 101, 100, 102, 106, 105]
        value = rsi(series, 14)
        assert Decimal("0") <= value <= Decimal("100")

    def test_insufficient_data_is_none(self):
        assert rsi([1] * 14, 14) is None


# ---------------------------------------------------------------------------
# Window helpers
# ---------------------------------------------------------------------------

class TestWindowHelpers:

    def test_high_low(self, make_bar):
        bars = [make_bar(0, 10, high=12, low=9), make_bar(1, 11, high=15, low=10), make_bar(2, 10, high=11, low=8)]
        assert highest_high(bars, 2) == Decimal("15")
        assert lowest_low(bars, 3) == Decimal("8")
        assert highest_high(bars, 4) is None

    def test_average_volume_trailing_20(self, flat_bars):
        bars = flat_bars(30, volume=100)
        bars[-1] = replace(bars[-1], volume=Decimal("1000"))
        assert average_volume(bars) == Decimal("145")
