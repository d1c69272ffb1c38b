# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""Keyed list store CRUD and the coin watchlist."""

from __future__ import annotations

from pathlib import Path

import pytest

from investwatch.core.data.durable_store import MemoryStore, SqliteStore
from investwatch.core.storage.keyed_list_store import KeyedListStore, Watchlist


def test_crud_keeps_insertion_order():
    store = KeyedListStore(MemoryStore(), "portfolios")
    store.create({"id": "b", "name": "Second"})
    store.create({"id": "a", "name": "First"})
    created = store.create({"name": "Generated"})
    assert created["id"]
    assert [r["id"] for r in store.list()] == ["b", "a", created["id"]]

    updated = store.update("a", {"name": "Renamed", "id": "ignored"})
    assert updated["name"] == "Renamed"
    assert updated["id"] == "a"
    assert [r["id"] for r in store.list()] == ["b", "a", created["id"]]

    assert store.delete("b") is True
    assert store.delete("b") is False
    assert store.get("b") is None
    assert store.update("missing", {"x": 1}) is None


def test_duplicate_id_rejected():
    store = KeyedListStore(MemoryStore(), "portfolios")
    store.create({"id": "a"})
    with pytest.raises(ValueError):
        store.create({"id": "a"})


def test_namespaces_are_independent():
    kv = MemoryStore()
    KeyedListStore(kv, "one").create({"id": "x"})
    assert KeyedListStore(kv, "two").list() == []


def test_persisted_across_instances(tmp_path: Path):
    path = tmp_path / "lists.db"
    KeyedListStore(SqliteStore(path), "portfolios").create({"id": "p1"})
    assert KeyedListStore(SqliteStore(path), "portfolios").get("p1")["id"] == "p1"


def test_corrupt_namespace_reads_empty():
    kv = MemoryStore({"list_portfolios": "{oops"})
    assert KeyedListStore(kv, "portfolios").list() == []


def test_watchlist_defaults_and_no_duplicates():
    watchlist = Watchlist(MemoryStore())
    assert watchlist.coins() == ["bitcoin", "ethereum", "dogecoin"]
    assert watchlist.add("Solana") == ["bitcoin", "ethereum", "dogecoin", "solana"]
    assert watchlist.add("bitcoin") == ["bitcoin", "ethereum", "dogecoin", "solana"]
    assert watchlist.remove("ethereum") == ["bitcoin", "dogecoin", "solana"]
    assert "solana" in watchlist


def test_watchlist_writes_past_a_full_cache(tmp_path: Path):
    kv = SqliteStore(tmp_path / "kv.db", quota_bytes=200, quota_prefix="api_cache_")
    kv.set_item("api_cache_prices", "x" * 200)
    watchlist = Watchlist(kv)
    assert watchlist.add("solana")[-1] == "solana"
    assert Watchlist(kv).coins()[-1] == "solana"


def test_watchlist_emptied_stays_empty():
    kv = MemoryStore()
    watchlist = Watchlist(kv)
    for coin in list(watchlist.coins()):
        watchlist.remove(coin)
    assert Watchlist(kv).coins() == []
