"""
Configuration Management for SubTrack

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here. The scheduling and
aggregation core never reads configuration; only the storage, icon and UI
layers do.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from subtrack.models.subscription import Currency


class StorageSettings(BaseSettings):
    """Where subscriptions are persisted."""

    model_config = SettingsConfigDict(
        env_prefix="SUBTRACK_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: Literal["local", "google_sheets"] = Field(
        default="local",
        description="Storage backend to use"
    )
    data_dir: Path = Field(
        default=Path.home() / ".subtrack",
        description="Directory holding the local key-value store"
    )
    storage_key: str = Field(
        default="subscriptions",
        min_length=1,
        description="Key the serialized subscription list is stored under"
    )

    @property
    def store_path(self) -> Path:
        return self.data_dir / "store.json"


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    subscriptions_sheet_name: str = Field(
        default="Subscriptions",
        description="Name of the sheet for subscriptions"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class IconSettings(BaseSettings):
    """Icon lookup configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SUBTRACK_ICONS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    logo_base_url: str = Field(
        default="https://logo.clearbit.com",
        description="Base URL of the logo service"
    )
    size: int = Field(
        default=64,
        ge=16,
        le=512,
        description="Requested icon size in pixels"
    )
    timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="HTTP timeout for icon checks"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="SUBTRACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Minimum level for local structured logs"
    )
    default_currency: Currency = Field(
        default=Currency.CAD,
        description="Currency preselected for new subscriptions"
    )
    max_reasonable_price: float = Field(
        default=10000.0,
        gt=0,
        description="Prices above this are flagged for review"
    )


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

    # Sub-settings load lazily so a missing Google Sheets setup does not
    # prevent the local backend from working.

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def icons(self) -> IconSettings:
        return IconSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus "<name>_error"
    entries describing failures. Useful for startup checks.
    """
    results = {}
    settings = get_settings()

    for name in ("storage", "google_sheets", "icons", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
