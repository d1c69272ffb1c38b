# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""CoinGecko crypto service (public API, no key)."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from investwatch.core.data.cache_policy import get_ttl_minutes
from investwatch.market.endpoints import (
    PATH_COINS_MARKETS,
    PATH_SIMPLE_PRICE,
    coin_detail_path,
)
from investwatch.market.errors import MalformedResponseError
from investwatch.market.providers.base import AssetServiceInterface
from investwatch.market.resilient_client import FetchStatus

logger = logging.getLogger(__name__)

ADVISORY = "CoinGecko is unavailable; showing demo crypto prices."


def _expect_list(body: Any, url: str) -> None:
    if not isinstance(body, list):
        raise MalformedResponseError("expected a list of coins", url)


def _expect_dict(body: Any, url: str) -> None:
    if not isinstance(body, dict):
        raise MalformedResponseError("expected a JSON object", url)
    if "error" in body and len(body) == 1:
        raise MalformedResponseError(f"provider error: {str(body['error'])[:120]}", url)


class CryptoService(AssetServiceInterface):
    """Market list, spot prices and coin details from CoinGecko."""

    name = "crypto"

    def get_coins(self, status: Any = None) -> List[Dict[str, Any]]:
        params = {
            "vs_currency": "usd",
            "order": "market_cap_desc",
            "per_page": 250,
            "page": 1,
            "sparkline": "false",
        }
        return self._fetch(
            PATH_COINS_MARKETS, params, self.fallback.coin_list,
            status=status, advisory=ADVISORY, inspect=_expect_list,
        )

    def get_prices(
        self,
        coin_ids: Iterable[str],
        currencies: Sequence[str] = ("usd", "mxn"),
        status: Any = None,
    ) -> Dict[str, Dict[str, float]]:
        """``{coin_id: {currency: price}}``."""
        ids = [c for c in coin_ids if c]
        if not ids:
            return {}
        params = {"ids": ",".join(ids), "vs_currencies": ",".join(currencies)}
        return self._fetch(
            PATH_SIMPLE_PRICE, params,
            lambda: self.fallback.coin_prices(ids, currencies),
            status=status, advisory=ADVISORY, inspect=_expect_dict,
            cache_minutes=get_ttl_minutes("prices"),
        )

    def get_coin_details(self, coin_id: str, status: Any = None) -> Dict[str, Any]:
        params = {
            "localization": "false",
            "tickers": "false",
            "market_data": "true",
            "community_data": "false",
            "developer_data": "false",
        }
        return self._fetch(
            coin_detail_path(coin_id), params,
            lambda: self.fallback.coin_details(coin_id),
            status=status, advisory=ADVISORY, inspect=_expect_dict,
        )

    def health_check(self) -> Tuple[bool, str]:
        status = FetchStatus()
        coins = self.get_coins(status=status)
        if status.using_fallback:
            return False, "CoinGecko unreachable; fallback data in use"
        if not coins:
            return False, "CoinGecko returned an empty coin list"
        return True, f"Connected. Received {len(coins)} coins"


__all__ = ["CryptoService", "ADVISORY"]
