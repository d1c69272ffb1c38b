# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""Ordered record lists persisted as one JSON value per namespace.

Records are dicts keyed by ``id``; list order is insertion order. Backed by any
:class:`KeyValueStore`, so the same code runs on SQLite or in memory.
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from investwatch.core.data.durable_store import KeyValueStore

logger = logging.getLogger(__name__)

NAMESPACE_PREFIX = "list_"
DEFAULT_WATCHLIST = ("bitcoin", "ethereum", "dogecoin")


class KeyedListStore:
    """CRUD over one namespace of records."""

    def __init__(self, store: KeyValueStore, namespace: str) -> None:
        if not namespace:
            raise ValueError("namespace is required")
        self.store = store
        self.namespace = namespace
        self._lock = threading.Lock()

    @property
    def storage_key(self) -> str:
        return f"{NAMESPACE_PREFIX}{self.namespace}"

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _load(self) -> Optional[List[Dict[str, Any]]]:
        """Stored records, or None if the namespace was never written."""
        raw = self.store.get_item(self.storage_key)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning("[STORE] unreadable namespace=%s error=%s", self.namespace, e)
            return []
        return [d for d in data if isinstance(d, dict)] if isinstance(data, list) else []

    def _save(self, records: List[Dict[str, Any]]) -> None:
        self.store.set_item(self.storage_key, json.dumps(records, default=str))

    # ------------------------------------------------------------------ #
    # CRUD
    # ------------------------------------------------------------------ #
    def exists(self) -> bool:
        return self.store.get_item(self.storage_key) is not None

    def list(self) -> List[Dict[str, Any]]:
        return self._load() or []

    def get(self, record_id: str) -> Optional[Dict[str, Any]]:
        for r in self.list():
            if r.get("id") == record_id:
                return r
        return None

    def create(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """Append a record. A missing id is generated; a duplicate id raises ValueError."""
        record = dict(record)
        record.setdefault("id", uuid.uuid4().hex)
        record.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        with self._lock:
            records = self.list()
            if any(r.get("id") == record["id"] for r in records):
                raise ValueError(f"{self.namespace} record {record['id']} already exists")
            records.append(record)
            self._save(records)
        logger.info("[STORE] created namespace=%s id=%s", self.namespace, record["id"])
        return record

    def update(self, record_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Merge ``updates`` into a record. Returns the record, or None if not found."""
        with self._lock:
            records = self.list()
            for r in records:
                if r.get("id") == record_id:
                    r.update({k: v for k, v in updates.items() if k != "id"})
                    r["updated_at"] = datetime.now(timezone.utc).isoformat()
                    self._save(records)
                    return r
        return None

    def delete(self, record_id: str) -> bool:
        with self._lock:
            records = self.list()
            kept = [r for r in records if r.get("id") != record_id]
            if len(kept) == len(records):
                return False
            self._save(kept)
        logger.info("[STORE] deleted namespace=%s id=%s", self.namespace, record_id)
        return True

    def replace_all(self, records: Iterable[Dict[str, Any]]) -> None:
        with self._lock:
            self._save([dict(r) for r in records])


class Watchlist:
    """Coin ids the user follows. Seeded with defaults on first use; no duplicates."""

    def __init__(self, store: KeyValueStore, defaults: Iterable[str] = DEFAULT_WATCHLIST) -> None:
        self._records = KeyedListStore(store, "watchlist")
        if not self._records.exists():
            self._records.replace_all({"id": coin_id} for coin_id in defaults)

    def coins(self) -> List[str]:
        return [r["id"] for r in self._records.list()]

    def add(self, coin_id: str) -> List[str]:
        coin_id = (coin_id or "").strip().lower()
        if coin_id and self._records.get(coin_id) is None:
            self._records.create({"id": coin_id})
        return self.coins()

    def remove(self, coin_id: str) -> List[str]:
        self._records.delete((coin_id or "").strip().lower())
        return self.coins()

    def __contains__(self, coin_id: str) -> bool:
        return self._records.get(coin_id) is not None


__all__ = ["DEFAULT_WATCHLIST", "KeyedListStore", "Watchlist"]
