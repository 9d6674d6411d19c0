"""
multistrat test configuration.
"""

import sys
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from multistrat.core.models import Bar  # noqa: E402

START = datetime(2024, 1, 1)


def _d(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def build_bar(index, close, open_=None, high=None, low=None, volume=100, symbol="BTCUSDT"):
    """Daily bar ``index`` days after START; high/low default to the body."""
    close = _d(close)
    open_ = close if open_ is None else _d(open_)
    high = max(open_, close) if high is None else _d(high)
    low = min(open_, close) if low is None else _d(low)
    return Bar(
        symbol=symbol,
        timestamp=START + timedelta(days=index),
        open=open_,
        high=high,
        low=low,
        close=close,
        volume=_d(volume),
    )


@pytest.fixture
def make_bar():
    """Factory for a single bar."""
    return build_bar


@pytest.fixture
def flat_bars():
    """Factory for n identical bars (o=h=l=c=price)."""

    def _flat(n, price=100, volume=100, start=0):
        return [build_bar(start + i, price, volume=volume) for i in range(n)]

    return _flat


@pytest.fixture
def spike_series(flat_bars, make_bar):
    """
    25 flat bars, a high-volume hammer at index 25 (volume-spike BUY:
    stop 94.05, target 105.5), then 10 bars closing 0.4 higher each.
    """
    bars = flat_bars(25)
    bars.append(make_bar(25, 100, open_=100, high="100.5", low=95, volume=1000))
    price = Decimal("100")
    for i in range(26, 36):
        prev = price
        price += Decimal("0.4")
        bars.append(make_bar(i, price, open_=prev))
    return bars
