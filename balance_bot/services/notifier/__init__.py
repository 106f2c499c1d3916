"""Notification gateway package."""

from balance_bot.services.notifier.apprise import (
    AppriseNotifier,
    NotificationFailedError,
    NotificationValidationError,
)

__all__ = [
    "AppriseNotifier",
    "NotificationFailedError",
    "NotificationValidationError",
]
