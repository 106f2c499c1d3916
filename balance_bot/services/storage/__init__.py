"""
Storage Services Package

Abstract document-store interfaces and their JSON-file implementations
for the config document, balance state and the response cache.
"""

from balance_bot.services.storage.interface import (
    BalanceStateInterface,
    CorruptDocumentError,
    DocumentStoreInterface,
    ResponseCacheInterface,
    StorageError,
)
from balance_bot.services.storage.json_file import (
    atomic_write_json,
    read_json_document,
)
from balance_bot.services.storage.config_store import ConfigStore
from balance_bot.services.storage.state_store import StateStore
from balance_bot.services.storage.cache_store import ResponseCache, create_cache_key

__all__ = [
    # Interfaces
    "BalanceStateInterface",
    "DocumentStoreInterface",
    "ResponseCacheInterface",
    # Exceptions
    "CorruptDocumentError",
    "StorageError",
    # JSON file implementation
    "ConfigStore",
    "ResponseCache",
    "StateStore",
    "atomic_write_json",
    "create_cache_key",
    "read_json_document",
]
