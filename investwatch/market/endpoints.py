# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""
Endpoint chains per asset class; single source of truth for upstream hosts and paths.

A chain is primary first, then the CORS-proxy mirror of the primary. Forex
additionally has alternate hosts, tried only when the chain ends on 404.
The ExchangeRate-API key is part of the URL path, so forex endpoints are built
at call time and labelled for logging without the key.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from investwatch.core.settings import ProviderConfig

# CoinGecko
PATH_COINS_MARKETS = "/coins/markets"
PATH_SIMPLE_PRICE = "/simple/price"
PATH_COIN_DETAIL = "/coins/{coin_id}"

# Alpha Vantage: everything goes through the query root with function=...
PATH_AV_QUERY = ""

# ExchangeRate-API
PATH_LATEST = "/latest/{base}"

OPEN_ER_HOST = "open.er-api.com"


@dataclass(frozen=True)
class Endpoint:
    """One host in a chain.

    ``strip_prefix`` is removed from the request path before joining, for
    hosts that fold part of the path into their base URL.
    """
    base_url: str
    label: str = "primary"
    strip_prefix: str = ""

    def url_for(self, path: str) -> str:
        if self.strip_prefix and path.startswith(self.strip_prefix):
            path = path[len(self.strip_prefix):]
        return f"{self.base_url}{path}" if path else self.base_url

    def describe(self, path: str) -> str:
        """Loggable form: label + path (no credentials)."""
        return f"{self.label}:{path or '/'}"


def standard_chain(config: ProviderConfig) -> List[Endpoint]:
    """Primary, then proxy mirror when configured."""
    chain = [Endpoint(config.primary, "primary")]
    if config.proxy:
        chain.append(Endpoint(config.proxy, "proxy"))
    return chain


def forex_chain(config: ProviderConfig, api_key: str) -> List[Endpoint]:
    primary = f"{config.primary}/{api_key}"
    chain = [Endpoint(primary, "primary")]
    if config.proxy_prefix:
        chain.append(Endpoint(f"{config.proxy_prefix}{primary}", "proxy"))
    return chain


def forex_alternates(config: ProviderConfig, api_key: str) -> List[Endpoint]:
    """Backup hosts for forex. Keyed v6 hosts get the key appended; open.er-api needs none."""
    out: List[Endpoint] = []
    for i, base in enumerate(config.backups):
        base = base.rstrip("/")
        if OPEN_ER_HOST in base:
            # https://open.er-api.com/v6/latest + /USD
            out.append(Endpoint(base, f"backup{i}:{OPEN_ER_HOST}", strip_prefix="/latest"))
        else:
            out.append(Endpoint(f"{base}/{api_key}", f"backup{i}"))
    return out


def coin_detail_path(coin_id: str) -> str:
    return PATH_COIN_DETAIL.format(coin_id=coin_id)


def latest_rates_path(base: str) -> str:
    return PATH_LATEST.format(base=base.upper())


__all__ = [
    "Endpoint",
    "PATH_COINS_MARKETS",
    "PATH_SIMPLE_PRICE",
    "PATH_COIN_DETAIL",
    "PATH_AV_QUERY",
    "PATH_LATEST",
    "standard_chain",
    "forex_chain",
    "forex_alternates",
    "coin_detail_path",
    "latest_rates_path",
]
