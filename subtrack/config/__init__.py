"""Configuration package."""

from subtrack.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    IconSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "IconSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
