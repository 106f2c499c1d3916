"""
Audit Models for Balance Bot

Scheduled runs have no one watching them. The audit trail of a run is
the only way to tell afterwards why an alert did (or did not) go out.

DESIGN DECISION: Events are structured, not free text. Each step of a run
has its own event type so log queries can filter on it.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Run lifecycle
    RUN_STARTED = "run_started"
    RUN_SKIPPED = "run_skipped"
    RUN_COMPLETED = "run_completed"
    RUN_FAILED = "run_failed"
    NO_ACCOUNTS = "no_accounts"

    # Per account
    ACCOUNT_SKIPPED = "account_skipped"
    BASELINE_STORED = "baseline_stored"
    BALANCE_REFRESHED = "balance_refreshed"
    NOTIFICATION_SENT = "notification_sent"
    ACCOUNT_FAILED = "account_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """A single audit event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    account_id: Optional[str] = Field(
        default=None,
        description="Upstream account this event is about, if any"
    )
    run_id: Optional[UUID] = Field(
        default=None,
        description="Correlates every event of one run"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        log_dict = {
            "event_id": str(self.event_id),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "description": self.description,
        }
        if self.account_id:
            log_dict["account_id"] = self.account_id
        if self.run_id:
            log_dict["run_id"] = str(self.run_id)
        if self.details:
            log_dict["details"] = self.details
        if self.error_message:
            log_dict["error_message"] = self.error_message
        return log_dict


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.baseline_stored(account_id, name, balance, run_id)
    """

    @staticmethod
    def run_started(run_id: UUID, fetch_scope: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RUN_STARTED,
            severity=AuditSeverity.DEBUG,
            run_id=run_id,
            description="Balance check started",
            details={"fetch_scope": fetch_scope},
        )

    @staticmethod
    def run_skipped() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RUN_SKIPPED,
            severity=AuditSeverity.WARNING,
            description="Skipping balance check because the previous run is still running",
        )

    @staticmethod
    def run_completed(run_id: UUID, summary: dict) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RUN_COMPLETED,
            run_id=run_id,
            description="Balance check completed",
            details=summary,
        )

    @staticmethod
    def run_failed(run_id: UUID, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RUN_FAILED,
            severity=AuditSeverity.ERROR,
            run_id=run_id,
            description="Balance check failed",
            error_message=error_message,
        )

    @staticmethod
    def no_accounts(run_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NO_ACCOUNTS,
            severity=AuditSeverity.WARNING,
            run_id=run_id,
            description="SimpleFIN returned no accounts",
        )

    @staticmethod
    def account_skipped(
        run_id: UUID,
        reason: str,
        account_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_SKIPPED,
            severity=AuditSeverity.WARNING,
            run_id=run_id,
            account_id=account_id,
            description=reason,
        )

    @staticmethod
    def baseline_stored(
        account_id: str,
        account_name: str,
        balance: float,
        run_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BASELINE_STORED,
            run_id=run_id,
            account_id=account_id,
            description="Stored baseline balance",
            details={"account_name": account_name, "balance": balance},
        )

    @staticmethod
    def balance_refreshed(
        account_id: str,
        previous: float,
        current: float,
        run_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCE_REFRESHED,
            severity=AuditSeverity.DEBUG,
            run_id=run_id,
            account_id=account_id,
            description="Refreshed stored balance below the change threshold",
            details={"previous": previous, "current": current},
        )

    @staticmethod
    def notification_sent(
        account_id: str,
        account_name: str,
        delta: float,
        new_balance: float,
        target: str,
        run_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NOTIFICATION_SENT,
            run_id=run_id,
            account_id=account_id,
            description="Sent balance update",
            details={
                "account_name": account_name,
                "delta": delta,
                "new_balance": new_balance,
                "target": target,
            },
        )

    @staticmethod
    def account_failed(
        account_id: Optional[str],
        error_message: str,
        run_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_FAILED,
            severity=AuditSeverity.ERROR,
            run_id=run_id,
            account_id=account_id,
            description="Failed to process account",
            error_message=error_message,
        )
