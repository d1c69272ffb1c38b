# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""CLI commands against an offline service graph."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from investwatch.cli import build_parser, run_command
from investwatch.core.data.durable_store import MemoryStore
from investwatch.core.settings import CacheConfig, FetchConfig, InvestWatchConfig, PollerConfig, ProviderConfig
from investwatch.market.factory import build_services


@pytest.fixture
def offline(monkeypatch):
    monkeypatch.delenv("ALPHA_VANTAGE_API_KEY", raising=False)
    monkeypatch.delenv("EXCHANGE_RATE_API_KEY", raising=False)
    http = MagicMock(spec=requests.Session)
    http.get.side_effect = requests.ConnectionError("offline")
    config = InvestWatchConfig(
        cache=CacheConfig(300, "api_cache_", "unused.db", False, None),
        fetch=FetchConfig(2, 0.0, 5.0),
        crypto=ProviderConfig("https://api.coingecko.com/api/v3", ""),
        stock=ProviderConfig("https://www.alphavantage.co/query", ""),
        forex=ProviderConfig("https://v6.exchangerate-api.com/v6", ""),
        poller=PollerConfig(False, 60, ("usd",)),
        debug=False,
    )
    return build_services(config, durable=MemoryStore(), http_session=http, sleep=lambda _s: None)


def _run(argv, services):
    return run_command(build_parser().parse_args(argv), services=services)


def test_convert_prints_fallback_result(offline, capsys):
    assert _run(["convert", "USD", "MXN", "10"], offline) == 0
    captured = capsys.readouterr()
    assert "175.0000 MXN" in captured.out
    assert "NOTE:" in captured.err


def test_quote_prints_fallback_quote(offline, capsys):
    assert _run(["quote", "msft"], offline) == 0
    assert "MSFT 338.47" in capsys.readouterr().out


def test_coins_limit(offline, capsys):
    assert _run(["coins", "--limit", "2"], offline) == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("BTC")


def test_cache_clear_and_stats(offline, capsys):
    offline.cache.set("k", 1)
    assert _run(["cache-clear", "--key", "k"], offline) == 0
    assert offline.cache.get("k") is None
    assert _run(["cache-stats"], offline) == 0
    assert '"count": 0' in capsys.readouterr().out


def test_connection_test_exit_codes(offline, capsys):
    assert _run(["test", "stock"], offline) == 0
    assert "[WARNING]" in capsys.readouterr().out
    assert _run(["test", "forex"], offline) == 2


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])
