# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""API tests for /api/admin/*, /api/market/*, /api/watchlist and /api/prices/latest."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests

from investwatch.core.data.durable_store import MemoryStore
from investwatch.core.settings import (
    CacheConfig,
    FetchConfig,
    InvestWatchConfig,
    PollerConfig,
    ProviderConfig,
)
from investwatch.market.factory import build_services


def _config(cache: CacheConfig = CacheConfig(300, "api_cache_", "unused.db", False, None)) -> InvestWatchConfig:
    proxy = "https://corsproxy.io/?"
    return InvestWatchConfig(
        cache=cache,
        fetch=FetchConfig(max_retries=2, retry_delay_sec=0.0, timeout_sec=5.0),
        crypto=ProviderConfig("https://api.coingecko.com/api/v3", proxy),
        stock=ProviderConfig("https://www.alphavantage.co/query", proxy),
        forex=ProviderConfig("https://v6.exchangerate-api.com/v6", proxy, ("https://open.er-api.com/v6/latest",)),
        poller=PollerConfig(enabled=False, interval_sec=60, currencies=("usd", "mxn")),
        debug=False,
    )


@pytest.fixture
def services(monkeypatch, clock):
    monkeypatch.delenv("ALPHA_VANTAGE_API_KEY", raising=False)
    monkeypatch.delenv("EXCHANGE_RATE_API_KEY", raising=False)
    http = MagicMock(spec=requests.Session)
    built = build_services(_config(), durable=MemoryStore(), http_session=http, sleep=lambda _s: None, clock=clock)
    built.http = http
    from investwatch.api.deps import set_services

    set_services(built)
    yield built
    set_services(None)


@pytest.fixture
def api(services):
    pytest.importorskip("fastapi")
    from fastapi.testclient import TestClient
    from investwatch.api.server import app

    return TestClient(app)


def test_health(api):
    r = api.get("/health")
    assert r.status_code == 200
    assert r.json()["ok"] is True


def test_cache_stats_and_clear(api, services):
    services.cache.set("k1", {"v": 1}, 10)
    services.cache.set("k2", {"v": 2}, 5)
    r = api.get("/api/admin/cache")
    assert r.status_code == 200
    data = r.json()
    assert data["count"] == 2
    assert [i["key"] for i in data["items"]] == ["k2", "k1"]
    assert "network_attempts" in data["fetch"]

    r = api.delete("/api/admin/cache/k1")
    assert r.json() == {"cleared": True, "key": "k1"}
    assert services.cache.get("k1") is None

    api.delete("/api/admin/cache")
    assert services.cache.get("k2") is None


def test_credentials_put_clears_cache(api, services):
    services.cache.set("k", "v")
    r = api.put("/api/admin/credentials", json={"exchangerate": "abcdef123456"})
    assert r.status_code == 200
    data = r.json()
    assert data["cache_cleared"] is True
    assert data["credentials"]["exchangerate"] == {"source": "session", "value": "********3456"}
    assert services.credentials.resolve("exchangerate") == "abcdef123456"
    assert services.cache.get("k") is None


def test_credentials_put_rejects_unknown(api):
    r = api.put("/api/admin/credentials", json={"nope": "x"})
    assert r.status_code == 400


def test_credentials_delete_restores_defaults(api, services):
    services.credentials.set_override("alphavantage", "mine")
    r = api.delete("/api/admin/credentials")
    assert r.status_code == 200
    assert r.json()["credentials"]["alphavantage"]["source"] == "default"


def test_stock_test_with_demo_key_is_warning(api, services):
    r = api.post("/api/admin/test/stock")
    assert r.status_code == 200
    assert r.json()["status"] == "warning"
    services.http.get.assert_not_called()


def test_forex_test_without_key_is_error(api, services):
    r = api.post("/api/admin/test/forex")
    assert r.json()["status"] == "error"
    services.http.get.assert_not_called()


def test_crypto_test_success(api, services, make_response):
    services.http.get.return_value = make_response(200, [{"id": "bitcoin"}])
    r = api.post("/api/admin/test/crypto")
    assert r.json() == {"asset": "crypto", "status": "success", "message": "Connected. Received 1 coins"}


def test_unknown_asset_404(api):
    assert api.post("/api/admin/test/bonds").status_code == 404


def test_probe_forex_uses_resolved_key(api, services):
    services.credentials.set_override("exchangerate", "abcdef123456")
    with patch("investwatch.api.admin_routes.probe_exchange_rate") as probe:
        probe.return_value = {"ok": True}
        r = api.post("/api/admin/probe/forex?base=EUR")
    assert r.json() == {"ok": True}
    probe.assert_called_once_with(
        "https://v6.exchangerate-api.com/v6", "abcdef123456", base="EUR", timeout=5.0
    )


def test_market_coins_fallback_envelope(api, services):
    services.http.get.side_effect = requests.ConnectionError("offline")
    r = api.get("/api/market/coins")
    assert r.status_code == 200
    body = r.json()
    assert body["using_fallback"] is True
    assert body["message"]
    assert body["data"][0]["id"] == "bitcoin"
    assert services.http.get.call_count == 3


def test_market_prices_requires_ids(api):
    assert api.get("/api/market/prices?ids=").status_code == 400


def test_market_quote_includes_parsed(api, services):
    services.http.get.side_effect = requests.ConnectionError("offline")
    body = api.get("/api/market/stocks/aapl/quote").json()
    assert body["quote"]["symbol"] == "AAPL"
    assert body["quote"]["price"] == 175.34


def test_market_convert_without_key(api):
    body = api.get("/api/market/forex/convert?from=USD&to=MXN&amount=2").json()
    assert body["data"]["result"] == pytest.approx(35.0)
    assert body["using_fallback"] is True


def test_watchlist_crud(api):
    assert api.get("/api/watchlist").json() == {"coins": ["bitcoin", "ethereum", "dogecoin"]}
    r = api.post("/api/watchlist", json={"coin_id": "solana"})
    assert r.json()["coins"][-1] == "solana"
    r = api.post("/api/watchlist", json={"coin_id": "solana"})
    assert r.json()["coins"].count("solana") == 1
    assert api.post("/api/watchlist", json={}).status_code == 400
    r = api.delete("/api/watchlist/bitcoin")
    assert "bitcoin" not in r.json()["coins"]


def test_prices_latest_after_poll(api, services, make_response):
    services.http.get.return_value = make_response(200, {"bitcoin": {"usd": 1.0}})
    assert api.get("/api/prices/latest").json()["updated_at"] is None
    services.poller.poll()
    body = api.get("/api/prices/latest").json()
    assert body["prices"] == {"bitcoin": {"usd": 1.0}}
    assert body["using_fallback"] is False


def test_watchlist_add_with_full_durable_cache(tmp_path, clock):
    pytest.importorskip("fastapi")
    from fastapi.testclient import TestClient
    from investwatch.api.deps import set_services
    from investwatch.api.server import app

    config = _config(CacheConfig(300, "api_cache_", str(tmp_path / "store.db"), True, 300))
    built = build_services(config, http_session=MagicMock(spec=requests.Session), sleep=lambda _s: None, clock=clock)
    built.cache.set("big", "x" * 200)
    assert built.cache.last_write_error is None
    assert built.cache.stats()["count"] == 1
    set_services(built)
    try:
        r = TestClient(app).post("/api/watchlist", json={"coin_id": "solana"})
    finally:
        set_services(None)
    assert r.status_code == 200
    assert r.json()["coins"][-1] == "solana"
