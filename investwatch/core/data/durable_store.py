# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""String key/value stores backing the response cache and session overrides.

Two implementations share one small interface:
- SqliteStore: durable, survives process restarts (one ``kv`` table).
- MemoryStore: process-scoped; used for session credential overrides and tests.

Values are opaque strings; callers own serialization.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class DurableStoreError(Exception):
    """Raised when the backing store cannot be read or written."""


class StoreQuotaExceededError(DurableStoreError):
    """Raised when a write would push the store past its byte quota."""

    def __init__(self, key: str, needed: int, quota: int) -> None:
        self.key = key
        self.needed = needed
        self.quota = quota
        super().__init__(f"Store quota exceeded writing {key!r}: {needed} > {quota} bytes")


class KeyValueStore(ABC):
    """Persistent string store with a localStorage-like surface."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored string or None."""
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Insert or replace a value."""
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Delete a key. Missing keys are ignored."""
        ...

    @abstractmethod
    def keys(self) -> List[str]:
        """Return every stored key."""
        ...

    def keys_with_prefix(self, prefix: str) -> List[str]:
        return [k for k in self.keys() if k.startswith(prefix)]


class MemoryStore(KeyValueStore):
    """Dict-backed store. Contents die with the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._lock = threading.Lock()
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise DurableStoreError(f"Value for {key!r} must be str, got {type(value).__name__}")
        with self._lock:
            self._items[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._items)


class SqliteStore(KeyValueStore):
    """SQLite-backed durable store.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file. Parent directories are created.
    quota_bytes:
        Optional cap on the total size of stored values. A write that would
        exceed it raises :class:`StoreQuotaExceededError` and leaves the store
        unchanged.
    quota_prefix:
        When set, the quota covers only keys under this prefix; other keys
        (the watchlist) are neither counted nor refused.
    """

    _SCHEMA = """
    CREATE TABLE IF NOT EXISTS kv (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL
    );
    """

    def __init__(
        self,
        db_path: Path,
        quota_bytes: Optional[int] = None,
        quota_prefix: Optional[str] = None,
    ) -> None:
        self.db_path = Path(db_path)
        self.quota_bytes = quota_bytes
        self.quota_prefix = quota_prefix
        self._lock = threading.Lock()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _get_conn(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.db_path), check_same_thread=False)

    def _counts_toward_quota(self, key: str) -> bool:
        if self.quota_bytes is None:
            return False
        return self.quota_prefix is None or key.startswith(self.quota_prefix)

    def _init_db(self) -> None:
        with self._lock:
            conn = self._get_conn()
            try:
                conn.executescript(self._SCHEMA)
                conn.commit()
            finally:
                conn.close()

    # ------------------------------------------------------------------ #
    # KeyValueStore
    # ------------------------------------------------------------------ #
    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            conn = self._get_conn()
            try:
                row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            except sqlite3.Error as e:
                raise DurableStoreError(f"Read failed for {key!r}: {e}") from e
            finally:
                conn.close()
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise DurableStoreError(f"Value for {key!r} must be str, got {type(value).__name__}")
        with self._lock:
            conn = self._get_conn()
            try:
                if self._counts_toward_quota(key):
                    used = conn.execute(
                        "SELECT COALESCE(SUM(LENGTH(value)), 0) FROM kv WHERE key != ? AND substr(key, 1, ?) = ?",
                        (key, len(self.quota_prefix or ""), self.quota_prefix or ""),
                    ).fetchone()[0]
                    needed = int(used) + len(value)
                    if needed > self.quota_bytes:
                        raise StoreQuotaExceededError(key, needed, self.quota_bytes)
                conn.execute(
                    "INSERT INTO kv (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    (key, value),
                )
                conn.commit()
            except sqlite3.Error as e:
                raise DurableStoreError(f"Write failed for {key!r}: {e}") from e
            finally:
                conn.close()

    def remove_item(self, key: str) -> None:
        with self._lock:
            conn = self._get_conn()
            try:
                conn.execute("DELETE FROM kv WHERE key = ?", (key,))
                conn.commit()
            except sqlite3.Error as e:
                raise DurableStoreError(f"Delete failed for {key!r}: {e}") from e
            finally:
                conn.close()

    def keys(self) -> List[str]:
        with self._lock:
            conn = self._get_conn()
            try:
                rows = conn.execute("SELECT key FROM kv ORDER BY rowid").fetchall()
            except sqlite3.Error as e:
                raise DurableStoreError(f"Key scan failed: {e}") from e
            finally:
                conn.close()
        return [r[0] for r in rows]


__all__ = [
    "DurableStoreError",
    "StoreQuotaExceededError",
    "KeyValueStore",
    "MemoryStore",
    "SqliteStore",
]
