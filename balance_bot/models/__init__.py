"""
Data Models Package

Pydantic models for upstream accounts, the persisted config document,
run results and audit events.
"""

from balance_bot.models.account import (
    DEFAULT_CURRENCY,
    Account,
    BalanceInfo,
)
from balance_bot.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from balance_bot.models.config import (
    WILDCARD,
    ConfigDocument,
    ConfigKeyDestination,
    Destination,
    NotificationTarget,
    UrlsDestination,
    sanitize_targets,
)
from balance_bot.models.run import (
    MonitorState,
    RunResult,
    RunStatus,
)

__all__ = [
    # Upstream models
    "DEFAULT_CURRENCY",
    "Account",
    "BalanceInfo",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Config models
    "WILDCARD",
    "ConfigDocument",
    "ConfigKeyDestination",
    "Destination",
    "NotificationTarget",
    "UrlsDestination",
    "sanitize_targets",
    # Run models
    "MonitorState",
    "RunResult",
    "RunStatus",
]
