# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""Resilient fetch: cache first, bounded retry chain, fast-fail errors, fallback."""

from __future__ import annotations

import threading

import requests

from investwatch.market.endpoints import Endpoint
from investwatch.market.errors import RateLimitedError, UnauthorizedError
from investwatch.market.resilient_client import FetchStatus, ResilientFetchClient

BASE = "https://api.example.test/v1"
CHAIN = [Endpoint(BASE, "primary"), Endpoint(f"https://proxy.test/?{BASE}", "proxy")]
FALLBACK = [{"id": "fallback"}]


def _fallback():
    return [dict(x) for x in FALLBACK]


def _called_urls(http):
    return [c.args[0] for c in http.get.call_args_list]


def test_success_is_cached_and_returned(client, http, make_response, cache):
    http.get.return_value = make_response(200, [{"id": "live"}])
    status = FetchStatus()
    out = client.fetch(BASE, "/items", {"page": 1}, CHAIN, _fallback, status=status)
    assert out == [{"id": "live"}]
    assert status.using_fallback is False
    assert status.source == "network"
    assert cache.get(cache.make_key(f"{BASE}/items", {"page": 1})) == [{"id": "live"}]
    http.get.assert_called_once_with(f"{BASE}/items", params={"page": 1}, timeout=15.0)


def test_valid_cache_entry_makes_zero_network_calls(client, http, cache):
    cache.set(cache.make_key(f"{BASE}/items", {"page": 1}), ["cached"])
    status = FetchStatus()
    assert client.fetch(BASE, "/items", {"page": 1}, CHAIN, _fallback, status=status) == ["cached"]
    http.get.assert_not_called()
    assert status.source == "cache"
    assert client.stats()["cache_hits"] == 1


def test_repeat_calls_hit_network_once(client, http, make_response):
    http.get.return_value = make_response(200, {"ok": True})
    for _ in range(3):
        client.fetch(BASE, "/items", {"a": 1, "b": 2}, CHAIN, _fallback)
    client.fetch(BASE, "/items", {"b": 2, "a": 1}, CHAIN, _fallback)
    assert http.get.call_count == 1
    client.fetch(BASE, "/items", {"a": 1, "b": 3}, CHAIN, _fallback)
    assert http.get.call_count == 2


def test_always_failing_primary_three_attempts_then_fallback(client, http, sleeps, cache):
    http.get.side_effect = requests.ConnectionError("down")
    status = FetchStatus()
    out = client.fetch(BASE, "/items", {}, CHAIN, _fallback, status=status, advisory="demo data")
    assert out == FALLBACK
    assert http.get.call_count == 3
    assert status.using_fallback is True
    assert status.message == "demo data"
    assert status.source == "fallback"
    # primary, proxy, proxy again
    assert _called_urls(http) == [f"{BASE}/items", f"https://proxy.test/?{BASE}/items", f"https://proxy.test/?{BASE}/items"]
    assert sleeps == [1.0, 1.0]
    # fallback data is never cached
    assert cache.get(cache.make_key(f"{BASE}/items", {})) is None


def test_retry_recovers_on_proxy(client, http, make_response):
    http.get.side_effect = [make_response(503, text="busy"), make_response(200, {"ok": 1})]
    status = FetchStatus()
    assert client.fetch(BASE, "/items", {}, CHAIN, _fallback, status=status) == {"ok": 1}
    assert http.get.call_count == 2
    assert status.using_fallback is False


def test_malformed_json_is_retried(client, http, make_response):
    http.get.side_effect = [make_response(200, None, "<html>"), make_response(200, {"ok": 1})]
    assert client.fetch(BASE, "/items", {}, CHAIN, _fallback) == {"ok": 1}


def test_rate_limit_status_fails_fast(client, http, make_response, sleeps):
    http.get.return_value = make_response(429, {"error": "slow down"})
    status = FetchStatus()
    assert client.fetch(BASE, "/items", {}, CHAIN, _fallback, status=status) == FALLBACK
    assert http.get.call_count == 1
    assert sleeps == []
    assert status.using_fallback is True


def test_unauthorized_fails_fast(client, http, make_response):
    http.get.return_value = make_response(401, {"error": "bad key"})
    assert client.fetch(BASE, "/items", {}, CHAIN, _fallback) == FALLBACK
    assert http.get.call_count == 1


def test_inspector_rate_limit_in_body_fails_fast(client, http, make_response):
    http.get.return_value = make_response(200, {"Note": "API call frequency exceeded"})

    def inspect(body, url):
        if "Note" in body:
            raise RateLimitedError("throttled", url)

    assert client.fetch(BASE, "", {}, CHAIN, _fallback, inspect=inspect) == FALLBACK
    assert http.get.call_count == 1


def test_not_found_tries_alternates_once_each(client, http, make_response):
    alternates = [Endpoint("https://alt1.test", "alt1"), Endpoint("https://alt2.test", "alt2")]
    http.get.side_effect = [make_response(404, {})] * 3 + [
        make_response(500, {}),
        make_response(200, {"rates": {"EUR": 0.9}}),
    ]
    out = client.fetch(BASE, "/latest/USD", {}, CHAIN, _fallback, alternates=alternates)
    assert out == {"rates": {"EUR": 0.9}}
    assert _called_urls(http)[3:] == ["https://alt1.test/latest/USD", "https://alt2.test/latest/USD"]


def test_alternates_skipped_when_chain_did_not_end_on_404(client, http):
    http.get.side_effect = requests.Timeout("slow")
    alternates = [Endpoint("https://alt1.test", "alt1")]
    client.fetch(BASE, "/latest/USD", {}, CHAIN, _fallback, alternates=alternates)
    assert http.get.call_count == 3


def test_unauthorized_alternate_stops_alternate_list(client, http, make_response):
    alternates = [Endpoint("https://alt1.test", "alt1"), Endpoint("https://alt2.test", "alt2")]
    http.get.side_effect = [make_response(404, {})] * 3 + [make_response(403, {})]
    assert client.fetch(BASE, "/latest/USD", {}, CHAIN, _fallback, alternates=alternates) == FALLBACK
    assert http.get.call_count == 4


def test_normalize_applied_before_caching(client, http, make_response, cache):
    http.get.return_value = make_response(200, {"conversion_rates": {"EUR": 0.9}, "base_code": "USD"})

    def normalize(body):
        return {"rates": body["conversion_rates"], "base": body["base_code"]}

    out = client.fetch(BASE, "/latest/USD", {}, CHAIN, _fallback, normalize=normalize)
    assert out == {"rates": {"EUR": 0.9}, "base": "USD"}
    assert cache.get(cache.make_key(f"{BASE}/latest/USD", {})) == out


def test_secret_params_not_in_cache_key(client, http, make_response, cache):
    http.get.return_value = make_response(200, {"ok": 1})
    client.fetch(BASE, "", {"function": "GLOBAL_QUOTE", "apikey": "s3cret"}, CHAIN, _fallback)
    assert http.get.call_args.kwargs["params"]["apikey"] == "s3cret"
    stats = cache.stats()
    assert all("s3cret" not in item["key"] for item in stats["items"])
    # Same request with another key is served from cache
    client.fetch(BASE, "", {"function": "GLOBAL_QUOTE", "apikey": "other"}, CHAIN, _fallback)
    assert http.get.call_count == 1


def test_custom_cache_minutes(client, http, make_response, cache, clock):
    http.get.return_value = make_response(200, {"ok": 1})
    client.fetch(BASE, "/p", {}, CHAIN, _fallback, cache_minutes=1)
    clock.advance(minutes=1, seconds=1)
    client.fetch(BASE, "/p", {}, CHAIN, _fallback, cache_minutes=1)
    assert http.get.call_count == 2


def test_max_retries_zero_single_attempt(cache, http, sleeps):
    http.get.side_effect = requests.ConnectionError("down")
    client = ResilientFetchClient(cache, session=http, max_retries=0, sleep=sleeps.append)
    client.fetch(BASE, "/items", {}, CHAIN, _fallback)
    assert http.get.call_count == 1
    assert sleeps == []


def test_fallback_now_makes_no_request(client, http):
    status = FetchStatus()
    assert client.fallback_now("/latest/USD", _fallback, status, "no key") == FALLBACK
    http.get.assert_not_called()
    assert status.using_fallback is True
    assert status.message == "no key"


def test_status_object_is_duck_typed(client, http):
    http.get.side_effect = requests.ConnectionError("down")

    class Sink:
        def __init__(self):
            self.calls = []

        def set_using_fallback(self, value):
            self.calls.append(("fallback", value))

        def set_message(self, message):
            self.calls.append(("message", message))

    sink = Sink()
    client.fetch(BASE, "/items", {}, CHAIN, _fallback, status=sink, advisory="offline")
    assert sink.calls == [("fallback", True), ("message", "offline")]


def test_error_types_are_not_retryable():
    assert UnauthorizedError("x").retryable is False
    assert RateLimitedError("x").retryable is False


def test_success_after_fallback_clears_advisory(client, http, make_response):
    status = FetchStatus()
    http.get.side_effect = requests.ConnectionError("down")
    client.fetch(BASE, "/items", {}, CHAIN, _fallback, status=status, advisory="demo data")
    assert status.message == "demo data"
    http.get.side_effect = None
    http.get.return_value = make_response(200, {"ok": 1})
    client.fetch(BASE, "/items", {}, CHAIN, _fallback, status=status, advisory="demo data")
    assert status.using_fallback is False
    assert status.message == ""
    assert status.source == "network"


def test_stats_counters_are_thread_safe(client, http, make_response):
    http.get.return_value = make_response(200, {"ok": 1})
    client.fetch(BASE, "/shared", {}, CHAIN, _fallback)

    def hit_cache():
        for _ in range(200):
            client.fetch(BASE, "/shared", {}, CHAIN, _fallback)

    workers = [threading.Thread(target=hit_cache) for _ in range(8)]
    for w in workers:
        w.start()
    for w in workers:
        w.join()
    assert client.stats()["cache_hits"] == 1600
    assert client.stats()["successes"] == 1
