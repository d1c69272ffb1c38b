# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""Builds the process-wide service graph from configuration.

One :class:`CacheManager`, one credential resolver and one fetch client are
shared by all services; the CLI and the API server both go through here.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import requests

from investwatch.core.config.credentials import ALPHA_VANTAGE, CredentialResolver
from investwatch.core.data.cache_manager import CacheManager
from investwatch.core.data.durable_store import KeyValueStore, MemoryStore, SqliteStore
from investwatch.core.settings import InvestWatchConfig, get_store_path, load_config
from investwatch.core.storage.keyed_list_store import Watchlist
from investwatch.market.providers.crypto_provider import CryptoService
from investwatch.market.providers.forex_provider import ForexService
from investwatch.market.providers.stock_provider import DEMO_KEY, StockService
from investwatch.market.refresher import PricePoller
from investwatch.market.resilient_client import ResilientFetchClient

logger = logging.getLogger(__name__)

ASSET_CLASSES = ("crypto", "stock", "forex")


@dataclass
class MarketServices:
    config: InvestWatchConfig
    cache: CacheManager
    credentials: CredentialResolver
    client: ResilientFetchClient
    crypto: CryptoService
    stock: StockService
    forex: ForexService
    watchlist: Watchlist
    poller: PricePoller

    def service(self, asset: str):
        if asset not in ASSET_CLASSES:
            raise KeyError(asset)
        return getattr(self, asset)


def build_services(
    config: Optional[InvestWatchConfig] = None,
    *,
    durable: Optional[KeyValueStore] = None,
    session_store: Optional[KeyValueStore] = None,
    http_session: Optional[requests.Session] = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.time,
) -> MarketServices:
    """Wire stores, cache, client and services.

    ``durable`` defaults to the configured SQLite file (or memory when
    ``cache.persist`` is off). ``session_store`` holds credential overrides and
    is always process-scoped unless given.
    """
    config = config or load_config()
    if durable is None:
        if config.cache.persist:
            path = Path(config.cache.store_path)
            if not path.is_absolute():
                path = get_store_path()
            durable = SqliteStore(
                path,
                quota_bytes=config.cache.quota_bytes,
                quota_prefix=config.cache.key_prefix,
            )
            logger.info("[SERVICES] durable store path=%s", path)
        else:
            durable = MemoryStore()

    cache = CacheManager(
        durable,
        default_duration_minutes=config.cache.duration_minutes,
        prefix=config.cache.key_prefix,
        clock=clock,
    )
    credentials = CredentialResolver(session_store if session_store is not None else MemoryStore())
    client = ResilientFetchClient(
        cache,
        session=http_session,
        max_retries=config.fetch.max_retries,
        retry_delay_sec=config.fetch.retry_delay_sec,
        timeout_sec=config.fetch.timeout_sec,
        sleep=sleep,
    )
    crypto = CryptoService(client, config.crypto, credentials)
    stock = StockService(client, config.stock, credentials)
    forex = ForexService(client, config.forex, credentials)
    watchlist = Watchlist(durable)
    poller = PricePoller(crypto, watchlist, config.poller.interval_sec, config.poller.currencies)
    return MarketServices(
        config=config,
        cache=cache,
        credentials=credentials,
        client=client,
        crypto=crypto,
        stock=stock,
        forex=forex,
        watchlist=watchlist,
        poller=poller,
    )


def run_connection_test(services: MarketServices, asset: str) -> Dict[str, Any]:
    """Admin connection test: ``{"asset", "status": success|warning|error, "message"}``.

    A stock test with the demo key is a warning and makes no request.
    """
    if asset == "stock" and services.credentials.resolve(ALPHA_VANTAGE) in ("", DEMO_KEY):
        return {
            "asset": asset,
            "status": "warning",
            "message": "Using the demo key. Set your own Alpha Vantage key for full access.",
        }
    ok, detail = services.service(asset).health_check()
    return {"asset": asset, "status": "success" if ok else "error", "message": detail}


__all__ = ["ASSET_CLASSES", "MarketServices", "build_services", "run_connection_test"]
