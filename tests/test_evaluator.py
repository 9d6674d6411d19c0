"""Tests for the live signal evaluator."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from multistrat.config.backtest_config import BacktestConfig, RiskParams
from multistrat.core.enums import SignalType, StrategyType
from multistrat.execution import AccountState, SignalEvaluator


@pytest.fixture
def positions():
    provider = MagicMock()
    provider.count_open.return_value = 0
    return provider


@pytest.fixture
def hammer_window(flat_bars, make_bar):
    return flat_bars(20) + [make_bar(20, 100, open_=100, high="100.5", low=95, volume=1000)]


@pytest.fixture
def shooting_star_window(flat_bars, make_bar):
    return flat_bars(20) + [make_bar(20, 100, open_=100, high="105.5", low=100, volume=1000)]


@pytest.fixture
def permissive_config():
    return BacktestConfig(risk=RiskParams(min_reward_risk=0.5))


ACCOUNT = AccountState(balance=Decimal("10000"))


# ---------------------------------------------------------------------------
# BUY handling
# ---------------------------------------------------------------------------

class TestBuy:

    def test_accepted(self, positions, hammer_window, permissive_config):
        signal = SignalEvaluator(positions, permissive_config).evaluate(hammer_window, ACCOUNT)

        assert signal.signal_type == SignalType.BUY
        assert signal.strategy == StrategyType.VOLUME_SPIKE_REVERSAL
        assert signal.stop_loss == Decimal("94.05")
        positions.count_open.assert_called_with(StrategyType.VOLUME_SPIKE_REVERSAL)

    def test_poor_reward_risk_rejected_by_default(self, positions, hammer_window):
        signal = SignalEvaluator(positions).evaluate(hammer_window, ACCOUNT)

        assert signal.signal_type == SignalType.HOLD
        assert signal.strategy == StrategyType.VOLUME_SPIKE_REVERSAL
        assert signal.reason.startswith("Reward:risk 0.92")

    def test_per_strategy_cap(self, positions, hammer_window, permissive_config):
        positions.count_open.return_value = 2
        signal = SignalEvaluator(positions, permissive_config).evaluate(hammer_window, ACCOUNT)

        assert signal.signal_type == SignalType.HOLD
        assert "max 2" in signal.reason

    def test_global_cap(self, positions, hammer_window, permissive_config):
        account = AccountState(balance=Decimal("10000"), open_positions=5)
        signal = SignalEvaluator(positions, permissive_config).evaluate(hammer_window, account)

        assert signal.signal_type == SignalType.HOLD
        assert signal.reason == "Max positions reached"


# ---------------------------------------------------------------------------
# SELL and HOLD handling
# ---------------------------------------------------------------------------

class TestSellAndHold:

    def test_sell_without_position_is_hold(self, positions, shooting_star_window):
        signal = SignalEvaluator(positions).evaluate(shooting_star_window, ACCOUNT)

        assert signal.signal_type == SignalType.HOLD
        assert signal.reason.startswith("No open")

    def test_sell_with_position(self, positions, shooting_star_window):
        positions.count_open.return_value = 1
        signal = SignalEvaluator(positions).evaluate(shooting_star_window, ACCOUNT)

        assert signal.signal_type == SignalType.SELL
        assert signal.take_profit == Decimal("94.5")

    def test_nothing_actionable(self, positions, flat_bars):
        window = flat_bars(21)
        signal = SignalEvaluator(positions).evaluate(window, ACCOUNT)

        assert signal.signal_type == SignalType.HOLD
        assert signal.strategy is None
        assert signal.reason == "No actionable signal"
        assert signal.timestamp == window[-1].timestamp
        positions.count_open.assert_not_called()


class TestPositionSize:

    def test_uses_config_risk_by_default(self, positions, hammer_window, permissive_config):
        evaluator = SignalEvaluator(positions, permissive_config)
        signal = evaluator.evaluate(hammer_window, ACCOUNT)

        assert evaluator.position_size(signal, ACCOUNT) == Decimal("16.80672269")

    def test_account_risk_fraction_overrides(self, positions, hammer_window, permissive_config):
        evaluator = SignalEvaluator(positions, permissive_config)
        signal = evaluator.evaluate(hammer_window, ACCOUNT)
        account = AccountState(balance=Decimal("10000"), risk_fraction=Decimal("0.02"))

        assert evaluator.position_size(signal, account) == Decimal("33.61344538")
