# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""
Two-tier response cache: in-process dict + durable key/value store.

Entries are tagged with an absolute expiry (ms since epoch). Expiry is only
checked on access (lazy eviction); there is no background sweeper.

Durable keys live under a reserved prefix (``api_cache_<key>``) and are
serialized as ``{"data": ..., "timestamp": ms, "expiresAt": ms}``. Durable
tier failures are logged and swallowed; the in-process tier is the source of
truth for the current process.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from investwatch.core.data.durable_store import DurableStoreError, KeyValueStore, StoreQuotaExceededError

logger = logging.getLogger(__name__)

# 300 minutes = 5 hours
DEFAULT_CACHE_DURATION_MIN = 300
CACHE_KEY_PREFIX = "api_cache_"
MS_PER_MINUTE = 60 * 1000

_STORE_ERRORS = (DurableStoreError, sqlite3.Error, OSError, TypeError, ValueError)


class CacheWriteFailed(Exception):
    """Durable-tier write failure. Recorded and logged, never raised to callers."""

    def __init__(self, key: str, cause: BaseException) -> None:
        self.key = key
        self.cause = cause
        super().__init__(f"Durable cache write failed for {key!r}: {cause}")


@dataclass
class CacheEntry:
    """One cached response. Valid while ``now_ms <= expires_at``."""
    data: Any
    timestamp: int
    expires_at: int

    def is_valid(self, now_ms: int) -> bool:
        return now_ms <= self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        return {"data": self.data, "timestamp": self.timestamp, "expiresAt": self.expires_at}

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "CacheEntry":
        if not isinstance(raw, Mapping) or "data" not in raw:
            raise ValueError("cache entry missing 'data'")
        return cls(
            data=raw["data"],
            timestamp=int(raw.get("timestamp") or 0),
            expires_at=int(raw["expiresAt"]),
        )


def make_cache_key(endpoint: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """Deterministic key: ``<endpoint>_<json of params sorted by name>``.

    Parameter insertion order never changes the key.
    """
    ordered = {name: params[name] for name in sorted(params or {})}
    return f"{endpoint}_{json.dumps(ordered, separators=(',', ':'), sort_keys=True, default=str)}"


class CacheManager:
    """Owns both cache tiers. Construct once per process and pass it around.

    Parameters
    ----------
    durable:
        Backing :class:`KeyValueStore`. ``None`` disables the durable tier.
    default_duration_minutes:
        Lifetime used by :meth:`set` when no duration is given.
    prefix:
        Namespace prefix for durable keys.
    clock:
        Seconds-since-epoch source; injectable for tests.
    """

    def __init__(
        self,
        durable: Optional[KeyValueStore] = None,
        *,
        default_duration_minutes: int = DEFAULT_CACHE_DURATION_MIN,
        prefix: str = CACHE_KEY_PREFIX,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.durable = durable
        self.default_duration_minutes = default_duration_minutes
        self.prefix = prefix
        self._clock = clock
        self._lock = threading.RLock()
        self._memory: Dict[str, CacheEntry] = {}
        self.last_write_error: Optional[CacheWriteFailed] = None

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _durable_key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def _durable_write(self, key: str, entry: CacheEntry) -> None:
        if self.durable is None:
            return
        try:
            raw = json.dumps(entry.to_dict())
            try:
                self.durable.set_item(self._durable_key(key), raw)
            except StoreQuotaExceededError:
                if not self.purge_expired():
                    raise
                self.durable.set_item(self._durable_key(key), raw)
        except _STORE_ERRORS as e:
            self.last_write_error = CacheWriteFailed(key, e)
            logger.warning("[CACHE] durable write failed key=%s error=%s", key[:80], e)

    def _durable_read(self, key: str) -> Optional[CacheEntry]:
        if self.durable is None:
            return None
        try:
            raw = self.durable.get_item(self._durable_key(key))
            if raw is None:
                return None
            return CacheEntry.from_dict(json.loads(raw))
        except (_STORE_ERRORS + (KeyError,)) as e:
            logger.warning("[CACHE] durable read failed key=%s error=%s", key[:80], e)
            return None

    def _durable_remove(self, key: str) -> None:
        if self.durable is None:
            return
        try:
            self.durable.remove_item(self._durable_key(key))
        except _STORE_ERRORS as e:
            logger.warning("[CACHE] durable delete failed key=%s error=%s", key[:80], e)

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    def set(self, key: str, data: Any, duration_minutes: Optional[int] = None) -> bool:
        """Store ``data`` under ``key`` in both tiers.

        Returns False when the key is empty, ``data`` is None or the duration
        is not positive. A durable-tier failure does not make this return False.
        """
        if not key or data is None:
            return False
        minutes = self.default_duration_minutes if duration_minutes is None else duration_minutes
        if minutes <= 0:
            logger.warning("[CACHE] rejected non-positive duration key=%s minutes=%s", key[:80], minutes)
            return False
        now = self._now_ms()
        entry = CacheEntry(data=data, timestamp=now, expires_at=now + int(minutes * MS_PER_MINUTE))
        with self._lock:
            self._memory[key] = entry
        self._durable_write(key, entry)
        return True

    def get(self, key: str) -> Any:
        """Return cached data, or None on miss or expiry.

        A durable hit is promoted into the in-process tier. An expired entry is
        deleted from both tiers.
        """
        if not key:
            return None
        with self._lock:
            entry = self._memory.get(key)
        if entry is None:
            entry = self._durable_read(key)
            if entry is None:
                return None
            with self._lock:
                self._memory[key] = entry
        if not entry.is_valid(self._now_ms()):
            logger.debug("[CACHE] expired key=%s", key[:80])
            with self._lock:
                self._memory.pop(key, None)
            self._durable_remove(key)
            return None
        return entry.data

    def has(self, key: str) -> bool:
        """True if a valid entry exists. Same eviction side effects as :meth:`get`."""
        return self.get(key) is not None

    def clear(self, key: Optional[str] = None) -> None:
        """Delete one key from both tiers, or everything under the cache prefix."""
        if key:
            with self._lock:
                self._memory.pop(key, None)
            self._durable_remove(key)
            return
        with self._lock:
            self._memory = {}
        if self.durable is None:
            return
        try:
            stale = self.durable.keys_with_prefix(self.prefix)
        except _STORE_ERRORS as e:
            logger.warning("[CACHE] durable scan failed during clear: %s", e)
            return
        for durable_key in stale:
            try:
                self.durable.remove_item(durable_key)
            except _STORE_ERRORS as e:
                logger.warning("[CACHE] durable delete failed key=%s error=%s", durable_key[:80], e)
        logger.info("[CACHE] cleared entries=%d", len(stale))

    def purge_expired(self) -> int:
        """Delete expired durable entries under the prefix. Returns how many went."""
        if self.durable is None:
            return 0
        now = self._now_ms()
        try:
            durable_keys = self.durable.keys_with_prefix(self.prefix)
        except _STORE_ERRORS as e:
            logger.warning("[CACHE] durable scan failed during purge: %s", e)
            return 0
        removed = 0
        for durable_key in durable_keys:
            try:
                raw = self.durable.get_item(durable_key)
                if raw is not None and CacheEntry.from_dict(json.loads(raw)).is_valid(now):
                    continue
                self.durable.remove_item(durable_key)
            except (_STORE_ERRORS + (KeyError,)) as e:
                logger.warning("[CACHE] purge skipped key=%s error=%s", durable_key[:80], e)
                continue
            removed += 1
        with self._lock:
            self._memory = {k: v for k, v in self._memory.items() if v.is_valid(now)}
        if removed:
            logger.info("[CACHE] purged expired entries=%d", removed)
        return removed

    def remaining_minutes(self, key: str) -> int:
        """Whole minutes until expiry. Reads the in-process tier only (no promotion)."""
        with self._lock:
            entry = self._memory.get(key)
        now = self._now_ms()
        if entry is None or not entry.is_valid(now):
            return 0
        return (entry.expires_at - now) // MS_PER_MINUTE

    @staticmethod
    def make_key(endpoint: str, params: Optional[Mapping[str, Any]] = None) -> str:
        return make_cache_key(endpoint, params)

    def drop_memory_tier(self) -> None:
        """Forget the in-process tier only, as a process restart would."""
        with self._lock:
            self._memory = {}

    def stats(self) -> Dict[str, Any]:
        """Admin view of durable entries, soonest-expiring first.

        ``time_remaining`` comes from :meth:`remaining_minutes`, so entries not
        yet promoted into this process report 0.
        """
        items: List[Dict[str, Any]] = []
        durable_keys: List[str] = []
        if self.durable is not None:
            try:
                durable_keys = self.durable.keys_with_prefix(self.prefix)
            except _STORE_ERRORS as e:
                logger.warning("[CACHE] durable scan failed during stats: %s", e)
        for durable_key in durable_keys:
            real_key = durable_key[len(self.prefix):]
            try:
                raw = self.durable.get_item(durable_key)
                if raw is None:
                    continue
                entry = CacheEntry.from_dict(json.loads(raw))
            except (_STORE_ERRORS + (KeyError,)) as e:
                logger.warning("[CACHE] unreadable entry key=%s error=%s", real_key[:80], e)
                continue
            items.append({
                "key": real_key,
                "time_remaining": self.remaining_minutes(real_key),
                "expires_at": datetime.fromtimestamp(entry.expires_at / 1000, tz=timezone.utc).isoformat(),
                "data_size": len(json.dumps(entry.data, default=str)),
            })
        items.sort(key=lambda item: item["time_remaining"])
        with self._lock:
            memory_count = len(self._memory)
        return {
            "count": len(durable_keys),
            "memory_count": memory_count,
            "items": items,
            "last_write_error": str(self.last_write_error) if self.last_write_error else None,
        }


__all__ = [
    "CACHE_KEY_PREFIX",
    "DEFAULT_CACHE_DURATION_MIN",
    "CacheEntry",
    "CacheManager",
    "CacheWriteFailed",
    "make_cache_key",
]
