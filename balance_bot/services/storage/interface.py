"""
Abstract Storage Interface

DESIGN DECISION: Each persisted document (config, balance state, response
cache) is a single JSON file behind a small document-store interface:
`get()` returns a copy, `update(mutator)` performs a serialized
read-modify-write. This allows us to:
1. Keep write ordering part of the contract, not a caller convention
2. Use in-memory stores for testing
3. Swap the file backend without touching the monitor

The interface is intentionally simple - there is no database here.
"""

import os
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union


T = TypeVar("T")

Mutator = Callable[[T], Union[Optional[T], Awaitable[Optional[T]]]]


class DocumentStoreInterface(ABC, Generic[T]):
    """
    A single persisted document with serialized updates.

    Implementations guarantee that concurrent `update` calls apply in
    call order and never interleave.
    """

    @abstractmethod
    async def get(self) -> T:
        """
        Return a deep copy of the current document.

        A missing backing file is not an error: the default document
        is returned.
        """
        pass

    @abstractmethod
    async def update(self, mutator: Mutator) -> T:
        """
        Apply `mutator` to a copy of the current document and persist it.

        The mutator may be sync or async, and may either mutate the copy
        in place (returning None) or return a replacement.

        Returns:
            A deep copy of the persisted document
        """
        pass


class BalanceStateInterface(ABC):
    """Last observed balance per account id."""

    @abstractmethod
    async def get_last_balance(self, account_id: str) -> Optional[float]:
        """Return the stored balance, or None if the account was never seen."""
        pass

    @abstractmethod
    async def set_last_balance(self, account_id: str, balance: float) -> None:
        """Upsert the balance and write it through to storage."""
        pass

    @abstractmethod
    async def save(self) -> None:
        """Flush the current state to storage."""
        pass


class ResponseCacheInterface(ABC):
    """Recently fetched upstream responses keyed by request signature."""

    @abstractmethod
    async def get(self, key: str, max_age_ms: int) -> Optional[Any]:
        """Return the cached value if present and not older than `max_age_ms`."""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store `value` under `key` with the current timestamp."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptDocumentError(StorageError):
    """A document exists but does not contain valid JSON."""

    def __init__(self, path: Union[str, os.PathLike], message: str):
        self.path = str(path)
        super().__init__(f"{self.path}: {message}")
