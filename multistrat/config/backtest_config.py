"""
Run-scoped backtest configuration.

A BacktestConfig is read-only for the duration of a run. Field constraints
reject non-positive periods and out-of-range fractions when the model is
built; load_backtest_config() turns pydantic's ValidationError into a
ConfigurationError so callers only deal with multistrat exceptions.
"""

import json
from pathlib import Path
from typing import Any, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from multistrat.core.enums import StrategyType
from multistrat.core.exceptions import ConfigurationError


class _Params(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class TrendFollowingParams(_Params):
    sma_short: int = Field(default=50, ge=1)
    sma_long: int = Field(default=200, ge=1)
    breakout_period: int = Field(default=20, ge=1)
    volume_multiplier: float = Field(default=1.5, gt=0)
    atr_multiplier: float = Field(default=2.0, gt=0)
    atr_period: int = Field(default=14, ge=1)

    @model_validator(mode="after")
    def _check_sma_order(self) -> "TrendFollowingParams":
        if self.sma_short >= self.sma_long:
            raise ValueError("sma_short must be smaller than sma_long")
        return self


class VolatilityBreakoutParams(_Params):
    atr_period: int = Field(default=14, ge=1)
    compression_percentile: float = Field(default=0.2, gt=0, lt=1)
    volume_multiplier: float = Field(default=1.5, gt=0)
    reward_risk_ratio: float = Field(default=2.0, gt=0)
    consolidation_period: int = Field(default=14, ge=1)
    min_bars: int = Field(default=50, ge=1)


class MeanReversionParams(_Params):
    range_period: int = Field(default=50, ge=1)
    bollinger_period: int = Field(default=20, ge=1)
    bollinger_std: float = Field(default=2.0, ge=0)
    volume_multiplier: float = Field(default=1.0, gt=0)
    min_range_pct: float = Field(default=5.0, ge=0)
    max_range_pct: float = Field(default=15.0, gt=0)

    @model_validator(mode="after")
    def _check_range(self) -> "MeanReversionParams":
        if self.min_range_pct >= self.max_range_pct:
            raise ValueError("min_range_pct must be below max_range_pct")
        return self


class VolumeSpikeParams(_Params):
    volume_multiplier: float = Field(default=3.0, gt=0)
    wick_ratio: float = Field(default=0.6, gt=0, lt=1)


class RiskParams(_Params):
    max_position_pct: float = Field(default=1.0, gt=0, le=1)
    min_reward_risk: float = Field(default=1.5, ge=0)
    max_positions_per_strategy: int = Field(default=2, ge=1)


class TrailingStopParams(_Params):
    enabled: bool = False
    atr_multiplier: float = Field(default=1.5, gt=0)
    atr_period: int = Field(default=14, ge=1)


class BacktestConfig(BaseModel):
    """Everything a single backtest run reads."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    lookback_period: int = Field(default=200, ge=1)
    max_positions: int = Field(default=5, ge=1)
    risk_per_trade: float = Field(default=0.01, gt=0, le=1)
    commission_rate: float = Field(default=0.001, ge=0, lt=1)
    slippage_rate: float = Field(default=0.0005, ge=0, lt=1)

    enable_trend_following: bool = True
    enable_volatility_breakout: bool = True
    enable_mean_reversion: bool = True
    enable_volume_spike: bool = True

    # Apply signal validation (stop present, reward:risk, per-strategy cap) before entries
    validate_signals: bool = False

    trend_following: TrendFollowingParams = Field(default_factory=TrendFollowingParams)
    volatility_breakout: VolatilityBreakoutParams = Field(default_factory=VolatilityBreakoutParams)
    mean_reversion: MeanReversionParams = Field(default_factory=MeanReversionParams)
    volume_spike: VolumeSpikeParams = Field(default_factory=VolumeSpikeParams)
    risk: RiskParams = Field(default_factory=RiskParams)
    trailing_stop: TrailingStopParams = Field(default_factory=TrailingStopParams)

    def is_enabled(self, strategy: StrategyType) -> bool:
        flags = {
            StrategyType.TREND_FOLLOWING: self.enable_trend_following,
            StrategyType.VOLATILITY_BREAKOUT: self.enable_volatility_breakout,
            StrategyType.MEAN_REVERSION: self.enable_mean_reversion,
            StrategyType.VOLUME_SPIKE_REVERSAL: self.enable_volume_spike,
        }
        return flags[strategy]

    def enabled_strategies(self) -> List[StrategyType]:
        """Enabled strategies in canonical (enum declaration) order."""
        return [s for s in StrategyType if self.is_enabled(s)]


def load_backtest_config(
    source: Union[None, Mapping[str, Any], str, Path] = None,
    **overrides: Any,
) -> BacktestConfig:
    """
    Build a BacktestConfig from a mapping or a JSON file.

    Args:
        source: None for defaults, a dict of fields, or a path to a JSON file.
        **overrides: Top-level fields applied on top of ``source``.

    Raises:
        ConfigurationError: if the file is unreadable or any value is invalid.
    """
    if source is None:
        data = {}
    elif isinstance(source, Mapping):
        data = dict(source)
    else:
        path = Path(source)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Cannot read backtest config {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Backtest config {path} must contain a JSON object")

    data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return BacktestConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid backtest configuration: {e}") from e


def ensure_valid(config: Optional[BacktestConfig]) -> BacktestConfig:
    """Return ``config`` (or defaults), re-validating in case it was built unchecked."""
    if config is None:
        return BacktestConfig()
    try:
        return BacktestConfig.model_validate(config.model_dump())
    except ValidationError as e:
        raise ConfigurationError(f"Invalid backtest configuration: {e}") from e
