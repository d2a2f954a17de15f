# Complete settings for the contract appraisal engine
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field, field_validator
from enum import Enum
from pathlib import Path

from core.trading.hubs import resolve_trade_hub


class Environment(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class LoggingSettings(BaseModel):
    # Core logging settings
    level: str = "INFO"
    json_format: bool = True

    # Console logging
    console_enabled: bool = True

    # File logging
    file_enabled: bool = False
    logs_dir: str = "logs"
    file_max_bytes: int = 50 * 1024 * 1024
    file_backup_count: int = 5

    @field_validator("level")
    @classmethod
    def validate_level(cls, v):
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class MarketDataSettings(BaseModel):
    """ESI market data provider configuration"""
    base_url: str = "https://esi.evetech.net/latest"
    datasource: str = "tranquility"
    user_agent: str = "contract-appraisal/1.0"
    request_timeout_seconds: float = 20.0
    # Retries apply to transient errors only (timeouts, 5xx, rate limits)
    max_retries: int = Field(default=2, ge=0)
    retry_base_delay: float = Field(default=0.5, ge=0.0)

    # File-backed order cache
    cache_enabled: bool = True
    cache_dir: str = "cache/market_orders"
    cache_ttl_seconds: int = 3 * 60 * 60


class ValuationSettings(BaseModel):
    """Portfolio valuation engine configuration"""
    max_concurrency: int = Field(default=10, ge=1, le=50)
    default_hub: str = "jita"
    # Valuations bypass the order cache unless told otherwise
    force_refresh: bool = True
    discount_cap_percent: int = Field(default=99999, ge=1, le=99999)
    default_discount_percent: int = Field(default=100, ge=1, le=99999)

    @field_validator("default_hub")
    @classmethod
    def validate_default_hub(cls, v):
        if resolve_trade_hub(v) is None:
            raise ValueError(f"Unknown trade hub: {v}")
        return v.lower().strip()


class Settings(BaseSettings):
    """Main application settings, loaded from environment variables"""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore"
    )

    app_name: str = "Contract Appraisal"
    version: str = "1.0.0"
    environment: Environment = Environment.DEVELOPMENT

    logging: LoggingSettings = LoggingSettings()
    market_data: MarketDataSettings = MarketDataSettings()
    valuation: ValuationSettings = ValuationSettings()

    @property
    def logs_dir(self) -> Path:
        """Resolve the log directory against the project root when relative"""
        path = Path(self.logging.logs_dir)
        if path.is_absolute():
            return path
        return Path(self.base_dir) / path

    @property
    def cache_dir(self) -> Path:
        """Resolve the order cache directory against the project root when relative"""
        path = Path(self.market_data.cache_dir)
        if path.is_absolute():
            return path
        return Path(self.base_dir) / path

    @property
    def base_dir(self) -> str:
        """Get base application directory dynamically"""
        # Go up 2 levels from core/config/settings.py to reach project root
        return str(Path(__file__).resolve().parents[2])


# No global settings instance - use dependency injection instead
