"""Services package."""

from balance_bot.services.errors import UpstreamRequestError
from balance_bot.services.storage import (
    BalanceStateInterface,
    ConfigStore,
    CorruptDocumentError,
    DocumentStoreInterface,
    ResponseCache,
    ResponseCacheInterface,
    StateStore,
    StorageError,
)
from balance_bot.services.simplefin import (
    MalformedResponseError,
    SimplefinClient,
    SimplefinRequestError,
)
from balance_bot.services.notifier import (
    AppriseNotifier,
    NotificationFailedError,
    NotificationValidationError,
)
from balance_bot.services.healthchecks import HealthchecksClient

__all__ = [
    "UpstreamRequestError",
    # Storage services
    "BalanceStateInterface",
    "ConfigStore",
    "CorruptDocumentError",
    "DocumentStoreInterface",
    "ResponseCache",
    "ResponseCacheInterface",
    "StateStore",
    "StorageError",
    # Upstream
    "MalformedResponseError",
    "SimplefinClient",
    "SimplefinRequestError",
    # Notifications
    "AppriseNotifier",
    "NotificationFailedError",
    "NotificationValidationError",
    # Monitoring
    "HealthchecksClient",
]
