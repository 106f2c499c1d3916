"""
Command-line entry point for Balance Bot

An external scheduler (cron, systemd timer, k8s CronJob) invokes:

    python -m app.main run-once

Each invocation performs exactly one balance check and flushes state
before exiting. `accounts` lists what the access URL can see, and
`check-settings` validates process settings.
"""

import argparse
import asyncio
import json
import sys
from typing import Optional

import structlog

from balance_bot.audit import configure_logging
from balance_bot.config import get_settings, validate_all_settings
from balance_bot.orchestrator import create_service
from balance_bot.validation import ConfigurationError


logger = structlog.get_logger("balance_bot.cli")


async def _run_once(config_file: Optional[str]) -> int:
    service = create_service(config_file)
    try:
        if not await service.reload():
            logger.error("run_aborted", reason="SimpleFIN access URL is not configured")
            return 2
        result = await service.run_once()
    finally:
        await service.stop()

    print(json.dumps({"status": result.status.value, **result.to_summary()}))
    return 0


async def _list_accounts(config_file: Optional[str]) -> int:
    service = create_service(config_file)
    try:
        if not await service.reload():
            logger.error("listing_aborted", reason="SimpleFIN access URL is not configured")
            return 2
        accounts = await service.fetch_accounts()
    finally:
        await service.stop()

    for account in accounts:
        balance = account.resolve_balance()
        amount = f"{balance.amount:.2f} {balance.currency}" if balance else "n/a"
        print(f"{account.id}\t{account.display_name}\t{amount}")
    return 0


def _check_settings() -> int:
    results = validate_all_settings()
    print(json.dumps(results, indent=2))
    return 0 if all(v for k, v in results.items() if not k.endswith("_error")) else 1


def main(argv: Optional[list[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Balance change notifier")
    ap.add_argument("--config", help="Config document path (default: from settings)")
    ap.add_argument("--log-level", help="Override BALANCE_BOT_LOG_LEVEL")
    sub = ap.add_subparsers(dest="cmd", required=True)

    sub.add_parser("run-once", help="Run one balance check")
    sub.add_parser("accounts", help="List accounts visible to the access URL")
    sub.add_parser("check-settings", help="Validate process settings")

    args = ap.parse_args(argv)

    if args.cmd == "check-settings":
        return _check_settings()

    configure_logging(args.log_level or get_settings().app.log_level)

    try:
        if args.cmd == "run-once":
            return asyncio.run(_run_once(args.config))
        return asyncio.run(_list_accounts(args.config))
    except ConfigurationError as e:
        logger.error("invalid_configuration", error=str(e))
        return 2


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
