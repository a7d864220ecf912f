"""Application settings and configuration."""

from decimal import Decimal
from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


def get_default_data_dir() -> Path:
    """Return the default data directory based on platform."""
    return Path.home() / ".papertrade"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PAPERTRADE_",
    )

    app_name: str = "Paper Trader"
    app_version: str = "0.1.0"

    # Data directory (local portfolio document and database live here)
    data_dir: Optional[Path] = None

    # Database URL (derived from data_dir if not set explicitly)
    database_url: Optional[str] = None

    log_level: str = "INFO"

    # Portfolio defaults
    initial_cash: Decimal = Decimal("100000")

    # Pricing policy. Fixed rate, zero dividend yield.
    risk_free_rate: float = 0.0416
    trading_day_cutoff_days: int = 365

    # Settlement and refresh policy
    settlement_grace_seconds: int = 60
    price_epsilon: Decimal = Decimal("0.0001")
    refresh_interval_seconds: int = 300
    persist_attempts: int = 3

    # Market data settings
    market_data_provider: Literal["stub", "http"] = "stub"
    market_data_cache_ttl_seconds: int = 60
    quote_api_base_url: str = "https://financialmodelingprep.com/api/v3"
    quote_api_key: Optional[str] = None
    options_proxy_url: str = "https://optionsproxy-gqoddifzlq-uc.a.run.app"
    http_timeout_seconds: float = 10.0

    def get_data_dir(self) -> Path:
        """Get the data directory, creating it if needed."""
        data_dir = self.data_dir or get_default_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def get_database_url(self) -> str:
        """Get database URL, deriving from data_dir if not set."""
        if self.database_url:
            return self.database_url
        db_path = self.get_data_dir() / "papertrade.db"
        return f"sqlite:///{db_path}"

    def get_local_portfolio_path(self) -> Path:
        """Get the JSON document path used by anonymous local sessions."""
        return self.get_data_dir() / "local_portfolio.json"


# Global settings instance (can be replaced at runtime)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the current settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to force reload."""
    global _settings
    _settings = None
