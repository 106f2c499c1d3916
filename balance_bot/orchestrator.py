"""
Main Orchestrator for Balance Bot

This module ties together all the components and defines the
end-to-end flow of one balance check:
    targets → select accounts → fetch → diff against state → notify → persist

DESIGN DECISION: The monitor enforces the boundaries:
- At most one run in flight (explicit Idle/Running state, ticks are dropped)
- No notification for an account seen for the first time (baseline)
- No notification for float noise below CHANGE_THRESHOLD
- The new balance is persisted only after every matched target was notified
- One failing account never aborts the rest of the run

Scheduling is external: whatever drives the ticks calls `run_once()`.
"""

import time
from typing import Any, Optional, Union
from uuid import UUID

import structlog

from balance_bot.audit import AuditLogger, create_run_id
from balance_bot.config import get_settings, resolve_data_path
from balance_bot.formatting import format_balance_update, redact_access_url
from balance_bot.models.account import Account
from balance_bot.models.config import WILDCARD, ConfigDocument, NotificationTarget
from balance_bot.models.run import MonitorState, RunResult, RunStatus
from balance_bot.services.healthchecks import HealthchecksClient
from balance_bot.services.notifier import AppriseNotifier
from balance_bot.services.simplefin import SimplefinClient
from balance_bot.services.storage import (
    BalanceStateInterface,
    ConfigStore,
    DocumentStoreInterface,
    StateStore,
    StorageError,
)
from balance_bot.validation import ConfigurationError, validate_cron_expression


logger = structlog.get_logger(__name__)

# Smaller deltas are float/string-coercion noise, not a balance change.
CHANGE_THRESHOLD = 0.0001


class BalanceMonitor:
    """
    Runs balance checks and sends change notifications.

    Targets come either from a config store (re-read at the start of every
    run, so control-plane edits apply on the next tick) or from a fixed list.
    """

    def __init__(
        self,
        simplefin_client: SimplefinClient,
        notifier: AppriseNotifier,
        state_store: BalanceStateInterface,
        config_store: Optional[DocumentStoreInterface[ConfigDocument]] = None,
        targets: Optional[list[NotificationTarget]] = None,
        healthchecks: Optional[HealthchecksClient] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        if config_store is None and targets is None:
            raise ValueError("Either config_store or targets is required")

        self._simplefin = simplefin_client
        self._notifier = notifier
        self._state_store = state_store
        self._config_store = config_store
        self._targets = list(targets or [])
        self._healthchecks = healthchecks or HealthchecksClient()
        self._audit = audit_logger or AuditLogger()
        self._state = MonitorState.IDLE

    @property
    def state(self) -> MonitorState:
        return self._state

    async def _load_targets(self) -> list[NotificationTarget]:
        if self._config_store is None:
            return self._targets
        document = await self._config_store.get()
        return document.targets

    @staticmethod
    def select_account_ids(targets: list[NotificationTarget]) -> Optional[list[str]]:
        """
        Decide what to fetch.

        Returns None (fetch everything) if any target watches "*" or no
        target names an explicit id; otherwise the union of explicit ids.
        """
        if any(target.is_wildcard for target in targets):
            return None

        ids: list[str] = []
        for target in targets:
            for account_id in target.account_ids:
                if account_id != WILDCARD and account_id not in ids:
                    ids.append(account_id)
        return ids or None

    @staticmethod
    def match_targets(
        targets: list[NotificationTarget],
        account_id: str,
    ) -> list[NotificationTarget]:
        return [target for target in targets if target.matches(account_id)]

    async def run_once(self) -> RunResult:
        """
        Execute one balance check.

        Returns a SKIPPED result without fetching if a run is in flight.

        Raises:
            Whatever the account fetch raises. Per-account errors are
            logged and counted, never raised.
        """
        if self._state == MonitorState.RUNNING:
            self._audit.log_run_skipped()
            return RunResult(status=RunStatus.SKIPPED)

        self._state = MonitorState.RUNNING
        run_id = create_run_id()
        started = time.monotonic()
        counters = {
            "accounts_fetched": 0,
            "notified_accounts": 0,
            "notifications_sent": 0,
            "failed_accounts": 0,
        }

        try:
            await self._healthchecks.notify_start()

            targets = await self._load_targets()
            account_ids = self.select_account_ids(targets)
            self._audit.log_run_started(
                run_id,
                fetch_scope="all" if account_ids is None else ",".join(account_ids),
            )

            accounts = await self._simplefin.fetch_accounts(account_ids)

            if not isinstance(accounts, list) or not accounts:
                self._audit.log_no_accounts(run_id)
                status = RunStatus.NO_ACCOUNTS
            else:
                counters["accounts_fetched"] = len(accounts)
                for account in accounts:
                    account_id = (
                        account.get("id") if isinstance(account, dict)
                        else getattr(account, "id", None)
                    )
                    try:
                        sent = await self._process_account(account, targets, run_id)
                    except Exception as e:
                        counters["failed_accounts"] += 1
                        self._audit.log_account_failed(account_id, str(e), run_id)
                        continue
                    if sent:
                        counters["notified_accounts"] += 1
                        counters["notifications_sent"] += sent
                status = RunStatus.COMPLETED

        except Exception as e:
            failed = RunResult(
                status=RunStatus.FAILED,
                elapsed_ms=_elapsed_ms(started),
                **counters,
            )
            self._audit.log_run_failed(run_id, str(e))
            await self._healthchecks.notify_failure({**failed.to_summary(), "error": str(e)})
            raise

        finally:
            self._state = MonitorState.IDLE

        result = RunResult(status=status, elapsed_ms=_elapsed_ms(started), **counters)
        self._audit.log_run_completed(run_id, result.to_summary())
        await self._healthchecks.notify_success(result.to_summary())
        return result

    async def _process_account(
        self,
        account: Union[Account, dict[str, Any]],
        targets: list[NotificationTarget],
        run_id: UUID,
    ) -> int:
        """Diff one account against stored state. Returns notifications sent."""
        if isinstance(account, dict):
            account = Account.model_validate(account)

        if not account.id:
            self._audit.log_account_skipped(run_id, "Skipping account without id")
            return 0

        matched = self.match_targets(targets, account.id)
        if not matched:
            return 0

        balance = account.resolve_balance()
        if balance is None:
            self._audit.log_account_skipped(
                run_id, "Could not parse account balance", account_id=account.id,
            )
            return 0

        current = balance.amount
        previous = await self._state_store.get_last_balance(account.id)

        if previous is None:
            await self._state_store.set_last_balance(account.id, current)
            self._audit.log_baseline_stored(
                account_id=account.id,
                account_name=account.display_name,
                balance=current,
                run_id=run_id,
            )
            return 0

        delta = current - previous
        if abs(delta) < CHANGE_THRESHOLD:
            if previous != current:
                await self._state_store.set_last_balance(account.id, current)
                self._audit.log_balance_refreshed(account.id, previous, current, run_id)
            return 0

        title, body = format_balance_update(
            account.display_name, delta, current, balance.currency,
        )
        sent = 0
        for target in matched:
            await self._notifier.send(title, body, target.destination)
            sent += 1
            self._audit.log_notification_sent(
                account_id=account.id,
                account_name=account.display_name,
                delta=delta,
                new_balance=current,
                target=target.label,
                run_id=run_id,
            )

        await self._state_store.set_last_balance(account.id, current)
        return sent


def _elapsed_ms(started: float) -> int:
    return max(0, int((time.monotonic() - started) * 1000))


class BalanceBotService:
    """
    Builds the monitor and its collaborators from the config document.

    `reload()` after every config change; `stop()` before exit so the
    last balance state is flushed.
    """

    def __init__(
        self,
        config_store: ConfigStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._config_store = config_store
        self._audit_logger = audit_logger or AuditLogger()
        self._cron_expression: Optional[str] = None

        self._simplefin: Optional[SimplefinClient] = None
        self._notifier: Optional[AppriseNotifier] = None
        self._state_store: Optional[StateStore] = None
        self._healthchecks: Optional[HealthchecksClient] = None
        self._monitor: Optional[BalanceMonitor] = None

    @property
    def is_configured(self) -> bool:
        return self._monitor is not None

    @property
    def monitor(self) -> Optional[BalanceMonitor]:
        return self._monitor

    @property
    def cron_expression(self) -> Optional[str]:
        """Schedule an external scheduler should use, once configured."""
        return self._cron_expression

    async def reload(self) -> bool:
        """
        Rebuild components from the current config document.

        Returns:
            True if the service is ready to run, False if no access URL is set

        Raises:
            ConfigurationError: Invalid access URL or cron expression
        """
        document = await self._config_store.get()
        access_url = document.simplefin.access_url

        if not access_url:
            await self._teardown()
            logger.warning("simplefin_not_configured")
            return False

        cron_expression = validate_cron_expression(document.polling.cron_expression)

        await self._teardown()

        data_dir = get_settings().storage.data_dir
        self._simplefin = SimplefinClient(
            access_url,
            cache_file_path=resolve_data_path(
                document.simplefin.cache_file_path, data_dir, "cache.json",
            ),
            cache_ttl_ms=document.simplefin.cache_ttl_ms,
        )
        self._notifier = AppriseNotifier(document.notifier.apprise_api_url)
        self._state_store = StateStore(
            resolve_data_path(document.storage.state_file_path, data_dir, "state.json"),
        )
        self._healthchecks = HealthchecksClient(document.healthchecks.ping_url)
        self._monitor = BalanceMonitor(
            simplefin_client=self._simplefin,
            notifier=self._notifier,
            state_store=self._state_store,
            config_store=self._config_store,
            healthchecks=self._healthchecks,
            audit_logger=self._audit_logger,
        )
        self._cron_expression = cron_expression

        if not document.targets:
            logger.warning("no_notification_targets")

        logger.info(
            "balance_bot_ready",
            schedule=cron_expression,
            environment=get_settings().app.environment,
            access_url=redact_access_url(access_url),
            targets=len(document.targets),
            cache_ttl_ms=document.simplefin.cache_ttl_ms,
            healthchecks=self._healthchecks.is_enabled,
        )
        return True

    async def run_once(self) -> RunResult:
        if self._monitor is None:
            raise ConfigurationError("SimpleFIN access URL is not configured")
        return await self._monitor.run_once()

    async def fetch_accounts(self) -> list[Account]:
        """Every account visible to the access URL, for the control plane."""
        if self._simplefin is None:
            raise ConfigurationError("SimpleFIN access URL is not configured")
        return await self._simplefin.fetch_accounts()

    async def stop(self) -> None:
        await self._teardown()

    async def _teardown(self) -> None:
        if self._state_store is not None:
            try:
                await self._state_store.save()
            except (OSError, StorageError) as e:
                logger.error(
                    "state_flush_failed",
                    path=str(self._state_store.file_path),
                    error=str(e),
                )

        for client in (self._simplefin, self._notifier, self._healthchecks):
            if client is not None:
                await client.aclose()

        self._simplefin = None
        self._notifier = None
        self._state_store = None
        self._healthchecks = None
        self._monitor = None
        self._cron_expression = None


def create_service(config_file: Optional[str] = None) -> BalanceBotService:
    """
    Factory function to create the service.

    Args:
        config_file: Config document path; defaults to the settings path

    Returns:
        An unconfigured service; call `reload()` before `run_once()`
    """
    return BalanceBotService(ConfigStore(config_file))
