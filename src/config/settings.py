"""
Application settings with Pydantic v2 validation.

Loads configuration from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RemoteSettings(BaseSettings):
    """Remote POS backend configuration."""

    model_config = SettingsConfigDict(env_prefix="REMOTE_")

    base_url: str = "http://localhost:3000"
    sale_path: str = "/api/pos/create-sale"
    coupon_path: str = "/api/pos/coupons/validate"
    products_path: str = "/api/pos/products"
    health_path: str = "/api/health"
    api_token: str | None = None

    # Requests slower than this are treated as a lost connection
    timeout: float = 15.0

    # Retry settings (connection-level only)
    max_retries: int = 2
    retry_delay: float = 0.5
    retry_multiplier: float = 2.0


class StorageSettings(BaseSettings):
    """Storage configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "pos_offline.db"

    # SQLite settings
    pool_size: int = 2
    busy_timeout: int = 30000  # ms

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class OfflineSettings(BaseSettings):
    """Offline queue and connectivity configuration."""

    model_config = SettingsConfigDict(env_prefix="OFFLINE_")

    sync_interval_seconds: float = 300.0
    reconnect_delay_seconds: float = 1.0
    health_check_interval_seconds: float = 30.0
    slow_connection_threshold_ms: int = 3000


class CheckoutSettings(BaseSettings):
    """Checkout defaults."""

    model_config = SettingsConfigDict(env_prefix="CHECKOUT_")

    currency: str = "NGN"
    staff_id: int = 0
    staff_name: str = "POS Terminal"


class APISettings(BaseSettings):
    """Local admin API configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "127.0.0.1"
    port: int = 8765
    debug: bool = False
    cors_origins: list[str] = ["*"]


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "POS Checkout Engine"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Sub-settings
    remote: RemoteSettings = Field(default_factory=RemoteSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    offline: OfflineSettings = Field(default_factory=OfflineSettings)
    checkout: CheckoutSettings = Field(default_factory=CheckoutSettings)
    api: APISettings = Field(default_factory=APISettings)

    @field_validator("storage", mode="before")
    @classmethod
    def ensure_data_dir(cls, v: Any) -> StorageSettings:
        if isinstance(v, dict):
            settings = StorageSettings(**v)
        else:
            settings = v or StorageSettings()
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        return settings


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
