"""Tests for backtest configuration and environment settings."""

import json

import pytest
from pydantic import ValidationError

from multistrat.config import (
    BacktestConfig,
    Settings,
    TrendFollowingParams,
    load_backtest_config,
)
from multistrat.core.enums import StrategyType
from multistrat.core.exceptions import ConfigurationError


class TestDefaults:

    def test_documented_defaults(self):
        config = BacktestConfig()

        assert config.lookback_period == 200
        assert config.max_positions == 5
        assert config.risk_per_trade == 0.01
        assert config.commission_rate == 0.001
        assert config.slippage_rate == 0.0005
        assert config.validate_signals is False
        assert config.trailing_stop.enabled is False
        assert config.trend_following.sma_short == 50
        assert config.volume_spike.wick_ratio == 0.6

    def test_all_strategies_enabled_in_canonical_order(self):
        assert BacktestConfig().enabled_strategies() == list(StrategyType)

    def test_disabled_strategy_dropped(self):
        config = BacktestConfig(enable_mean_reversion=False)
        assert StrategyType.MEAN_REVERSION not in config.enabled_strategies()
        assert not config.is_enabled(StrategyType.MEAN_REVERSION)
        assert config.is_enabled(StrategyType.TREND_FOLLOWING)

    def test_frozen(self):
        with pytest.raises(ValidationError):
            BacktestConfig().lookback_period = 10


class TestLoading:

    def test_from_mapping(self):
        config = load_backtest_config({"lookback_period": 100, "volume_spike": {"volume_multiplier": 2.5}})
        assert config.lookback_period == 100
        assert config.volume_spike.volume_multiplier == 2.5
        assert config.volume_spike.wick_ratio == 0.6

    def test_from_json_file(self, tmp_path):
        path = tmp_path / "backtest.json"
        path.write_text(json.dumps({"max_positions": 3, "enable_trend_following": False}))

        config = load_backtest_config(path)
        assert config.max_positions == 3
        assert StrategyType.TREND_FOLLOWING not in config.enabled_strategies()

    def test_overrides_win_and_none_is_ignored(self):
        config = load_backtest_config({"lookback_period": 100}, lookback_period=50, max_positions=None)
        assert config.lookback_period == 50
        assert config.max_positions == 5

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_backtest_config(tmp_path / "missing.json")

    def test_non_object_json(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with pytest.raises(ConfigurationError):
            load_backtest_config(path)

    @pytest.mark.parametrize("data", [
        {"lookback_period": 0},
        {"max_positions": 0},
        {"risk_per_trade": 0},
        {"commission_rate": -0.1},
        {"unknown_field": 1},
        {"trend_following": {"sma_short": 200, "sma_long": 50}},
        {"mean_reversion": {"min_range_pct": 20, "max_range_pct": 10}},
        {"volume_spike": {"wick_ratio": 1.5}},
    ])
    def test_invalid_values(self, data):
        with pytest.raises(ConfigurationError):
            load_backtest_config(data)

    def test_params_validator_direct(self):
        with pytest.raises(ValueError):
            TrendFollowingParams(sma_short=30, sma_long=30)


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("MULTISTRAT_INITIAL_CAPITAL", raising=False)
        settings = Settings(_env_file=None)
        assert settings.initial_capital == 10_000.0
        assert settings.default_symbol == "BTCUSDT"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("MULTISTRAT_INITIAL_CAPITAL", "25000")
        monkeypatch.setenv("MULTISTRAT_DEFAULT_SYMBOL", "ETHUSDT")
        settings = Settings(_env_file=None)
        assert settings.initial_capital == 25_000.0
        assert settings.default_symbol == "ETHUSDT"
