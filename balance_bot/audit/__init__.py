"""Audit logging package."""

from balance_bot.audit.logger import AuditLogger, configure_logging, create_run_id

__all__ = ["AuditLogger", "configure_logging", "create_run_id"]
