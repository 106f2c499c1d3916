"""
Config Store

Owns the config document. The control plane reads it with `get()` and
changes it only through `update()` or the convenience setters built on it.

DESIGN DECISION: All updates queue behind one asyncio.Lock, so writes
apply in call order and never interleave. This is an in-process guarantee
only: two processes sharing one config file is unsupported.
"""

import asyncio
import inspect
from pathlib import Path
from typing import Any, Optional

import structlog

from balance_bot.config import get_settings
from balance_bot.models.config import ConfigDocument, sanitize_targets
from balance_bot.services.storage.interface import (
    CorruptDocumentError,
    DocumentStoreInterface,
    Mutator,
)
from balance_bot.services.storage.json_file import PathLike, atomic_write_json, read_json_document
from balance_bot.validation import validate_access_url, validate_cron_expression


logger = structlog.get_logger(__name__)


class ConfigStore(DocumentStoreInterface[ConfigDocument]):
    """File-backed store for the config document."""

    def __init__(self, file_path: Optional[PathLike] = None):
        """
        Args:
            file_path: Config document location. Defaults to the path from
                       process settings (BALANCE_BOT_DATA_DIR / config.json).
        """
        if file_path is None:
            file_path = get_settings().storage.config_file_path
        self.file_path = Path(file_path).expanduser().resolve()
        self._lock = asyncio.Lock()

    def _default(self) -> ConfigDocument:
        return ConfigDocument.model_validate({"metadata": {"filePath": str(self.file_path)}})

    async def _read(self) -> ConfigDocument:
        raw = await asyncio.to_thread(read_json_document, self.file_path)
        if raw is None:
            return self._default()
        if not isinstance(raw, dict):
            raise CorruptDocumentError(self.file_path, "config document must be a JSON object")

        document = ConfigDocument.model_validate(raw)
        if not document.metadata.file_path:
            document.metadata.file_path = str(self.file_path)
        return document

    async def _write(self, document: ConfigDocument) -> None:
        await asyncio.to_thread(atomic_write_json, self.file_path, document.to_json_dict())
        logger.info("persisted_configuration", file_path=str(self.file_path))

    async def get(self) -> ConfigDocument:
        """Return the current document, or defaults if none was saved yet."""
        return await self._read()

    async def update(self, mutator: Mutator) -> ConfigDocument:
        """
        Serialized read-modify-write.

        The document handed to `mutator` is a private copy. Whatever comes
        back is sanitised before it is written.
        """
        async with self._lock:
            current = await self._read()
            working = current.model_copy(deep=True)

            result = mutator(working)
            if inspect.isawaitable(result):
                result = await result

            updated = working if result is None else result
            if isinstance(updated, dict):
                updated = ConfigDocument.model_validate(updated)
            elif not isinstance(updated, ConfigDocument):
                raise TypeError(
                    f"Config mutator must return None, a dict or a ConfigDocument, "
                    f"not {type(updated).__name__}"
                )
            updated = updated.sanitized()

            await self._write(updated)
            return updated.model_copy(deep=True)

    async def set_access(self, access_url: Any) -> ConfigDocument:
        """
        Store a new SimpleFIN access URL.

        Raises:
            ConfigurationError: If the URL is blank or malformed (before any I/O)
        """
        trimmed = validate_access_url(access_url)

        def apply(document: ConfigDocument) -> None:
            document.simplefin.access_url = trimmed

        return await self.update(apply)

    async def set_targets(self, targets: Any) -> ConfigDocument:
        """Replace the notification targets with a sanitised copy of `targets`."""
        sanitized = sanitize_targets(targets if isinstance(targets, (list, tuple)) else [])

        def apply(document: ConfigDocument) -> None:
            document.notifications.targets = sanitized

        return await self.update(apply)

    async def set_apprise_api_url(self, apprise_api_url: Any) -> ConfigDocument:
        """Set the Apprise endpoint. A blank value keeps the current one."""
        trimmed = str(apprise_api_url or "").strip()

        def apply(document: ConfigDocument) -> None:
            if trimmed:
                document.notifier.apprise_api_url = trimmed

        return await self.update(apply)

    async def set_cron_expression(self, cron_expression: Any) -> ConfigDocument:
        """
        Set the polling schedule. A blank value keeps the current one.

        Raises:
            ConfigurationError: If the expression is invalid (before any I/O)
        """
        trimmed = str(cron_expression or "").strip()
        if trimmed:
            validate_cron_expression(trimmed)

        def apply(document: ConfigDocument) -> None:
            if trimmed:
                document.polling.cron_expression = trimmed

        return await self.update(apply)

    async def set_config(
        self,
        apprise_api_url: Any = None,
        cron_expression: Any = None,
        targets: Any = None,
    ) -> ConfigDocument:
        """
        Apply the onboarding form in one update.

        Blank endpoint or schedule keep their current values; targets are
        always replaced.
        """
        api_url = str(apprise_api_url or "").strip()
        schedule = str(cron_expression or "").strip()
        if schedule:
            validate_cron_expression(schedule)
        sanitized = sanitize_targets(targets if isinstance(targets, (list, tuple)) else [])

        def apply(document: ConfigDocument) -> None:
            if api_url:
                document.notifier.apprise_api_url = api_url
            if schedule:
                document.polling.cron_expression = schedule
            document.notifications.targets = sanitized

        return await self.update(apply)
