"""Configuration package."""

from kassa.config.settings import (
    AppSettings,
    BackendSettings,
    Settings,
    TelegramSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "BackendSettings",
    "Settings",
    "TelegramSettings",
    "get_settings",
    "validate_all_settings",
]
