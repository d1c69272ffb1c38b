# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""Cache and storage primitives."""

from investwatch.core.data.cache_manager import (
    CACHE_KEY_PREFIX,
    DEFAULT_CACHE_DURATION_MIN,
    CacheEntry,
    CacheManager,
    CacheWriteFailed,
    make_cache_key,
)
from investwatch.core.data.durable_store import (
    DurableStoreError,
    KeyValueStore,
    MemoryStore,
    SqliteStore,
    StoreQuotaExceededError,
)

__all__ = [
    "CACHE_KEY_PREFIX",
    "DEFAULT_CACHE_DURATION_MIN",
    "CacheEntry",
    "CacheManager",
    "CacheWriteFailed",
    "make_cache_key",
    "DurableStoreError",
    "KeyValueStore",
    "MemoryStore",
    "SqliteStore",
    "StoreQuotaExceededError",
]
