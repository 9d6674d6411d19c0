"""
multistrat configuration - loaded from environment (MULTISTRAT_*).
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment."""

    model_config = SettingsConfigDict(
        env_prefix="MULTISTRAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Account
    initial_capital: float = 10_000.0
    default_symbol: str = "BTCUSDT"

    # Data / config locations
    data_dir: str = "data"
    backtest_config_path: Optional[str] = None

    # Logging
    log_level: str = "INFO"


settings = Settings()


def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return settings
