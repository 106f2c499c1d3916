"""
Balance State Store

Last observed balance per account:

    { "accounts": { "<id>": { "lastBalance": 123.45 } } }

The document is loaded once and kept in memory. Every `set_last_balance`
writes through; `save()` flushes explicitly and is what shutdown calls.
Entries are never deleted.
"""

import asyncio
import copy
from pathlib import Path
from typing import Any, Optional

from balance_bot.services.storage.interface import BalanceStateInterface
from balance_bot.services.storage.json_file import PathLike, atomic_write_json, read_json_document


class StateStore(BalanceStateInterface):
    """File-backed balance state."""

    def __init__(self, file_path: PathLike):
        self.file_path = Path(file_path)
        self._state: Optional[dict[str, Any]] = None
        self._lock = asyncio.Lock()

    async def _ensure_loaded(self) -> dict[str, Any]:
        if self._state is None:
            raw = await asyncio.to_thread(read_json_document, self.file_path)
            state = raw if isinstance(raw, dict) else {}
            if not isinstance(state.get("accounts"), dict):
                state["accounts"] = {}
            self._state = state
        return self._state

    async def _flush(self) -> None:
        snapshot = copy.deepcopy(self._state)
        await asyncio.to_thread(atomic_write_json, self.file_path, snapshot)

    async def get_last_balance(self, account_id: str) -> Optional[float]:
        state = await self._ensure_loaded()
        entry = state["accounts"].get(account_id)
        if not isinstance(entry, dict):
            return None
        value = entry.get("lastBalance")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return float(value)

    async def set_last_balance(self, account_id: str, balance: float) -> None:
        async with self._lock:
            state = await self._ensure_loaded()
            state["accounts"][account_id] = {"lastBalance": float(balance)}
            await self._flush()

    async def save(self) -> None:
        async with self._lock:
            await self._ensure_loaded()
            await self._flush()
