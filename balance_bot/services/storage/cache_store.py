"""
Response Cache

Recently fetched SimpleFIN responses, keyed by the request signature:

    { "entries": { "<key>": { "value": [...], "timestamp": 1700000000000 } } }

Timestamps are epoch milliseconds. An entry expires once it is older than
the TTL the caller asks for. The cache is advisory: balance state is the
source of truth.
"""

import asyncio
import copy
import time
from pathlib import Path
from typing import Any, Callable, Optional

import structlog

from balance_bot.services.storage.interface import CorruptDocumentError, ResponseCacheInterface
from balance_bot.services.storage.json_file import PathLike, atomic_write_json, read_json_document


logger = structlog.get_logger(__name__)


class ResponseCache(ResponseCacheInterface):
    """File-backed response cache with per-read TTL."""

    def __init__(
        self,
        file_path: PathLike,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            file_path: Cache document location
            clock: Seconds since the epoch (injectable for tests)
        """
        self.file_path = Path(file_path)
        self._clock = clock
        self._data: Optional[dict[str, Any]] = None
        self._lock = asyncio.Lock()

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    async def _ensure_loaded(self) -> dict[str, Any]:
        if self._data is None:
            try:
                raw = await asyncio.to_thread(read_json_document, self.file_path)
            except CorruptDocumentError as e:
                # The next set() replaces the bad file
                logger.warning("discarding_corrupt_cache", path=str(self.file_path), error=str(e))
                raw = None
            data = raw if isinstance(raw, dict) else {}
            if not isinstance(data.get("entries"), dict):
                data["entries"] = {}
            self._data = data
        return self._data

    async def get(self, key: str, max_age_ms: int) -> Optional[Any]:
        data = await self._ensure_loaded()
        record = data["entries"].get(key)
        if not isinstance(record, dict):
            return None

        if max_age_ms > 0:
            timestamp = record.get("timestamp")
            if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
                return None
            if self._now_ms() - timestamp > max_age_ms:
                return None

        value = record.get("value")
        return copy.deepcopy(value) if value is not None else None

    async def set(self, key: str, value: Any) -> None:
        async with self._lock:
            data = await self._ensure_loaded()
            data["entries"][key] = {
                "value": copy.deepcopy(value),
                "timestamp": self._now_ms(),
            }
            snapshot = copy.deepcopy(data)
            await asyncio.to_thread(atomic_write_json, self.file_path, snapshot)


def create_cache_key(account_ids: Optional[list[str]]) -> str:
    """
    Canonical key for a requested account-id set.

    Ids are trimmed, deduplicated and sorted; no ids means "all".
    """
    if not account_ids:
        return "accounts:all"
    cleaned = sorted({str(i).strip() for i in account_ids if str(i).strip()})
    if not cleaned:
        return "accounts:all"
    return "accounts:" + ",".join(cleaned)
