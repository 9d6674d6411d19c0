from .backtest_config import (
    BacktestConfig,
    MeanReversionParams,
    RiskParams,
    TrailingStopParams,
    TrendFollowingParams,
    VolatilityBreakoutParams,
    VolumeSpikeParams,
    ensure_valid,
    load_backtest_config,
)
from .settings import Settings, get_settings

__all__ = [
    "BacktestConfig",
    "MeanReversionParams",
    "RiskParams",
    "Settings",
    "TrailingStopParams",
    "TrendFollowingParams",
    "VolatilityBreakoutParams",
    "VolumeSpikeParams",
    "ensure_valid",
    "get_settings",
    "load_backtest_config",
]
