"""Configuration package."""

from balance_bot.config.settings import (
    AppSettings,
    HttpSettings,
    Settings,
    StorageSettings,
    get_settings,
    resolve_data_path,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "HttpSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "resolve_data_path",
    "validate_all_settings",
]
