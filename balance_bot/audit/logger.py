"""
Audit Logger

DESIGN DECISION: Every step of a balance run is logged as a structured
event. Runs are scheduled and unattended, so the log is the only place
an operator can see:
1. Which accounts were baselined
2. Which notifications went out, and to which target
3. Which accounts failed, and why
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from balance_bot.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route stdlib logging (and therefore structlog) to stdout at `level`."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )
    # httpx logs every request line at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


class AuditLogger:
    """Central audit logging service for balance runs."""

    def __init__(self, logger: Optional[structlog.stdlib.BoundLogger] = None):
        self._logger = logger or structlog.get_logger("balance_bot.audit")

    def log(self, event: AuditEvent) -> None:
        """Log an audit event at the level matching its severity."""
        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

    def log_run_started(self, run_id: UUID, fetch_scope: str) -> None:
        self.log(AuditEventBuilder.run_started(run_id, fetch_scope))

    def log_run_skipped(self) -> None:
        self.log(AuditEventBuilder.run_skipped())

    def log_run_completed(self, run_id: UUID, summary: dict) -> None:
        self.log(AuditEventBuilder.run_completed(run_id, summary))

    def log_run_failed(self, run_id: UUID, error_message: str) -> None:
        self.log(AuditEventBuilder.run_failed(run_id, error_message))

    def log_no_accounts(self, run_id: UUID) -> None:
        self.log(AuditEventBuilder.no_accounts(run_id))

    def log_account_skipped(
        self,
        run_id: UUID,
        reason: str,
        account_id: Optional[str] = None,
    ) -> None:
        self.log(AuditEventBuilder.account_skipped(run_id, reason, account_id))

    def log_baseline_stored(
        self,
        account_id: str,
        account_name: str,
        balance: float,
        run_id: UUID,
    ) -> None:
        """Log the first observation of an account."""
        self.log(AuditEventBuilder.baseline_stored(
            account_id=account_id,
            account_name=account_name,
            balance=balance,
            run_id=run_id,
        ))

    def log_balance_refreshed(
        self,
        account_id: str,
        previous: float,
        current: float,
        run_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.balance_refreshed(
            account_id=account_id,
            previous=previous,
            current=current,
            run_id=run_id,
        ))

    def log_notification_sent(
        self,
        account_id: str,
        account_name: str,
        delta: float,
        new_balance: float,
        target: str,
        run_id: UUID,
    ) -> None:
        """Log one delivered balance update."""
        self.log(AuditEventBuilder.notification_sent(
            account_id=account_id,
            account_name=account_name,
            delta=delta,
            new_balance=new_balance,
            target=target,
            run_id=run_id,
        ))

    def log_account_failed(
        self,
        account_id: Optional[str],
        error_message: str,
        run_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.account_failed(
            account_id=account_id,
            error_message=error_message,
            run_id=run_id,
        ))


def create_run_id() -> UUID:
    """Create a new id that ties together every event of one run."""
    return uuid4()
