"""Models describing one balance check run."""

from enum import Enum

from pydantic import BaseModel, Field


class MonitorState(str, Enum):
    """Lifecycle of the balance monitor. Only one run may be in flight."""
    IDLE = "idle"
    RUNNING = "running"


class RunStatus(str, Enum):
    """How a run ended."""
    COMPLETED = "completed"      # Accounts fetched and processed
    NO_ACCOUNTS = "no_accounts"  # Upstream returned nothing to do
    SKIPPED = "skipped"          # Another run was still in flight
    FAILED = "failed"            # The fetch raised; only reported to healthchecks


class RunResult(BaseModel):
    """Summary of one run, also sent with healthchecks pings."""

    status: RunStatus
    accounts_fetched: int = Field(default=0, ge=0)
    notified_accounts: int = Field(default=0, ge=0)
    notifications_sent: int = Field(default=0, ge=0)
    failed_accounts: int = Field(default=0, ge=0)
    elapsed_ms: int = Field(default=0, ge=0)

    @property
    def skipped(self) -> bool:
        return self.status == RunStatus.SKIPPED

    @property
    def has_notifications(self) -> bool:
        return self.notifications_sent > 0

    def to_summary(self) -> dict:
        """Counters in the shape healthchecks pings and logs use."""
        return {
            "elapsedMs": self.elapsed_ms,
            "accountsFetched": self.accounts_fetched,
            "notifiedAccounts": self.notified_accounts,
            "notificationsSent": self.notifications_sent,
            "failedAccounts": self.failed_accounts,
        }
