"""Healthchecks ping package."""

from balance_bot.services.healthchecks.client import HealthchecksClient

__all__ = ["HealthchecksClient"]
