"""
Process Settings for Balance Bot

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: Two layers of configuration exist.
- Process settings (this module): where the data lives, HTTP timeouts,
  log level. Read from the environment once at startup.
- The persisted config document (see services.storage.config_store):
  credentials, notification targets, schedule. Edited at runtime.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Where the JSON documents live."""

    model_config = SettingsConfigDict(
        env_prefix="BALANCE_BOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding config, state and cache documents"
    )
    config_file: str = Field(
        default="config.json",
        description="Config document path, relative to data_dir unless absolute"
    )

    @field_validator("data_dir")
    @classmethod
    def resolve_data_dir(cls, v: Path) -> Path:
        return v.expanduser().resolve()

    @property
    def config_file_path(self) -> Path:
        """Absolute path of the config document."""
        return resolve_data_path(self.config_file, self.data_dir, "config.json")


class HttpSettings(BaseSettings):
    """Timeouts for outbound HTTP calls."""

    model_config = SettingsConfigDict(
        env_prefix="BALANCE_BOT_HTTP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    upstream_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for SimpleFIN balance requests"
    )
    notifier_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        description="Timeout for Apprise notification posts"
    )
    healthchecks_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for healthchecks pings"
    )
    user_agent: str = Field(
        default="balance-bot/1.0",
        description="User-Agent header sent on every request"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="BALANCE_BOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    environment: str = Field(
        default="production",
        description="Application environment"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum log level"
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


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

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def http(self) -> HttpSettings:
        return HttpSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


def resolve_data_path(value: Optional[str], data_dir: Path, fallback: str) -> Path:
    """
    Resolve a configured file path.

    Blank values fall back to `fallback`; relative values are placed
    inside `data_dir`; absolute values are used as-is.
    """
    trimmed = (value or "").strip() or fallback
    path = Path(trimmed).expanduser()
    if path.is_absolute():
        return path
    return data_dir / path


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, Any]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid} plus `<name>_error`
    entries for the failures. Useful for startup checks.
    """
    results: dict[str, Any] = {}
    settings = get_settings()

    for name in ("storage", "http", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
