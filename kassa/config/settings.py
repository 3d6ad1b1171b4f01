"""
Configuration Management for Kassa

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BackendSettings(BaseSettings):
    """Remote ledger (Apps Script web app) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="KASSA_BACKEND_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    url: str = Field(
        ...,
        description="Deployed web app URL of the ledger backend"
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Maximum wait for a single request before it counts as a network failure"
    )
    follow_redirects: bool = Field(
        default=True,
        description="Apps Script answers POSTs with a redirect to the result"
    )

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Only http(s) endpoints make sense here."""
        v = v.strip()
        if not v.startswith(("https://", "http://")):
            raise ValueError(f"Backend URL must be http(s): {v}")
        return v


class TelegramSettings(BaseSettings):
    """Host messaging platform configuration."""

    model_config = SettingsConfigDict(
        env_prefix="KASSA_TELEGRAM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    init_data: Optional[str] = Field(
        default=None,
        description="WebApp init data string handed over by the host at startup"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="KASSA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )

    # Currencies
    home_currency: str = Field(
        default="UZS",
        description="Pivot currency that decides the direction of an exchange"
    )
    default_currency: str = Field(
        default="UZS",
        description="Currency preselected for the amount field"
    )
    default_fx_currency: str = Field(
        default="USD",
        description="Currency preselected for the exchange side"
    )

    # List
    history_preview_size: int = Field(
        default=3,
        ge=1,
        le=50,
        description="How many recent transactions the list shows"
    )

    # Photo limits
    max_upload_size_mb: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Maximum attached photo size in MB"
    )

    # Validation thresholds
    max_amount_warning: float = Field(
        default=10_000_000_000.0,
        description="Amounts above this are flagged for a second look"
    )
    future_date_tolerance_days: int = Field(
        default=1,
        ge=0,
        description="How many days in the future a transaction date can be"
    )

    @field_validator('home_currency', 'default_currency', 'default_fx_currency')
    @classmethod
    def validate_currency_code(cls, v: str) -> str:
        """Currency codes are three uppercase letters."""
        v = v.strip().upper()
        if len(v) != 3 or not v.isalpha():
            raise ValueError(f"Not a currency code: {v}")
        return v

    @property
    def max_upload_size_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def backend(self) -> BackendSettings:
        return BackendSettings()

    @property
    def telegram(self) -> TelegramSettings:
        return TelegramSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.backend
        results["backend"] = True
    except Exception as e:
        results["backend"] = False
        results["backend_error"] = str(e)

    try:
        _ = settings.telegram
        results["telegram"] = True
    except Exception as e:
        results["telegram"] = False
        results["telegram_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
