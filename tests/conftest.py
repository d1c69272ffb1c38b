# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""Shared fixtures: fake clock, recorded sleeps, mocked HTTP session."""

from __future__ import annotations

import json
from typing import Any, List
from unittest.mock import MagicMock

import pytest
import requests

from investwatch.core.config.credentials import CredentialResolver
from investwatch.core.data.cache_manager import CacheManager
from investwatch.core.data.durable_store import MemoryStore
from investwatch.core.settings import ProviderConfig
from investwatch.market.resilient_client import ResilientFetchClient


class FakeClock:
    """Seconds since epoch; only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, minutes: float = 0, seconds: float = 0) -> None:
        self.now += minutes * 60 + seconds


def _make_response(status: int = 200, body: Any = None, text: str = "") -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    if body is not None:
        resp.json.return_value = body
        resp.text = json.dumps(body)
    else:
        resp.json.side_effect = ValueError("No JSON object could be decoded")
        resp.text = text
    return resp


@pytest.fixture
def make_response():
    return _make_response


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def durable() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def cache(durable, clock) -> CacheManager:
    return CacheManager(durable, clock=clock)


@pytest.fixture
def http() -> MagicMock:
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(cache, http, sleeps) -> ResilientFetchClient:
    return ResilientFetchClient(cache, session=http, sleep=sleeps.append)


@pytest.fixture
def credentials(monkeypatch) -> CredentialResolver:
    monkeypatch.delenv("ALPHA_VANTAGE_API_KEY", raising=False)
    monkeypatch.delenv("EXCHANGE_RATE_API_KEY", raising=False)
    return CredentialResolver(MemoryStore())


@pytest.fixture
def crypto_config() -> ProviderConfig:
    return ProviderConfig(primary="https://api.coingecko.com/api/v3", proxy_prefix="https://corsproxy.io/?")


@pytest.fixture
def stock_config() -> ProviderConfig:
    return ProviderConfig(primary="https://www.alphavantage.co/query", proxy_prefix="https://corsproxy.io/?")


@pytest.fixture
def forex_config() -> ProviderConfig:
    return ProviderConfig(
        primary="https://v6.exchangerate-api.com/v6",
        proxy_prefix="https://corsproxy.io/?",
        backups=("https://v6.exchangerate-api.com/v6", "https://open.er-api.com/v6/latest"),
    )
