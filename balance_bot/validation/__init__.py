"""Validation package."""

from balance_bot.validation.config_validator import (
    ConfigurationError,
    validate_access_url,
    validate_cron_expression,
)

__all__ = [
    "ConfigurationError",
    "validate_access_url",
    "validate_cron_expression",
]
