# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""Alpha Vantage stock service.

Every call goes through the query root with ``function=...``. Alpha Vantage
reports throttling and bad symbols inside a 200 body, so the inspector turns
those into typed errors before anything is cached.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from investwatch.core.config.credentials import ALPHA_VANTAGE
from investwatch.market.endpoints import PATH_AV_QUERY
from investwatch.market.errors import MalformedResponseError, RateLimitedError, UnauthorizedError
from investwatch.market.providers.base import AssetServiceInterface
from investwatch.market.resilient_client import FetchStatus

logger = logging.getLogger(__name__)

ADVISORY = "Alpha Vantage is unavailable or rate limited; showing demo stock data."
DEMO_KEY = "demo"
PROBE_SYMBOL = "MSFT"


def inspect_alpha_vantage(body: Any, url: str) -> None:
    """Raise for Alpha Vantage's in-body errors."""
    if not isinstance(body, dict):
        raise MalformedResponseError("expected a JSON object", url)
    for notice in ("Note", "Information"):
        if notice in body:
            raise RateLimitedError(f"Alpha Vantage notice: {str(body[notice])[:160]}", url, 200, str(body[notice]))
    if "Error Message" in body:
        message = str(body["Error Message"])
        # a rejected key comes back as a 200 with an Error Message naming apikey
        if "apikey" in message.lower():
            raise UnauthorizedError(f"Alpha Vantage rejected the key: {message[:160]}", url, 200)
        raise MalformedResponseError(f"Alpha Vantage error: {message[:160]}", url, 200)


def inspect_global_quote(body: Any, url: str) -> None:
    inspect_alpha_vantage(body, url)
    if not body.get("Global Quote"):
        raise MalformedResponseError("empty Global Quote", url, 200)


def _to_float(raw: Any) -> float:
    if raw is None:
        return 0.0
    text = str(raw).strip().rstrip("%")
    try:
        return float(text)
    except ValueError:
        return 0.0


@dataclass(frozen=True)
class StockQuote:
    symbol: str
    price: float
    change: float
    change_percent: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "price": self.price,
            "change": self.change,
            "changePercent": self.change_percent,
        }


def parse_quote(payload: Mapping[str, Any]) -> Optional[StockQuote]:
    """GLOBAL_QUOTE body -> StockQuote. None if there is no quote."""
    quote = (payload or {}).get("Global Quote") or {}
    if not quote:
        return None
    return StockQuote(
        symbol=str(quote.get("01. symbol", "")).upper(),
        price=_to_float(quote.get("05. price")),
        change=_to_float(quote.get("09. change")),
        change_percent=_to_float(quote.get("10. change percent")),
    )


class StockService(AssetServiceInterface):
    """Symbol search, quotes and daily history from Alpha Vantage."""

    name = "stock"

    def _api_key(self) -> str:
        return self.credentials.resolve(ALPHA_VANTAGE) or DEMO_KEY

    def search_symbols(self, keywords: str, status: Any = None) -> Dict[str, Any]:
        params = {"function": "SYMBOL_SEARCH", "keywords": keywords, "apikey": self._api_key()}
        return self._fetch(
            PATH_AV_QUERY, params, lambda: self.fallback.symbol_search(keywords),
            status=status, advisory=ADVISORY, inspect=inspect_alpha_vantage,
        )

    def get_stock_quote(self, symbol: str, status: Any = None) -> Dict[str, Any]:
        params = {"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": self._api_key()}
        return self._fetch(
            PATH_AV_QUERY, params, lambda: self.fallback.global_quote(symbol),
            status=status, advisory=ADVISORY, inspect=inspect_global_quote,
        )

    def get_historical_data(self, symbol: str, status: Any = None) -> Dict[str, Any]:
        params = {
            "function": "TIME_SERIES_DAILY",
            "symbol": symbol,
            "outputsize": "compact",
            "apikey": self._api_key(),
        }
        return self._fetch(
            PATH_AV_QUERY, params, lambda: self.fallback.daily_series(symbol),
            status=status, advisory=ADVISORY, inspect=inspect_alpha_vantage,
        )

    def get_popular_stocks(self, status: Any = None) -> List[Dict[str, Any]]:
        """Curated list. One MSFT quote decides whether the provider is live."""
        probe = FetchStatus()
        self.get_stock_quote(PROBE_SYMBOL, status=probe)
        if status is not None:
            status.set_using_fallback(probe.using_fallback)
            if probe.using_fallback:
                status.set_message(probe.message)
        return self.fallback.popular_stocks()

    def parse_quote(self, payload: Mapping[str, Any]) -> Optional[StockQuote]:
        return parse_quote(payload)

    def health_check(self) -> Tuple[bool, str]:
        if self._api_key() == DEMO_KEY:
            return False, "Using the demo key; configure an Alpha Vantage key for full access"
        status = FetchStatus()
        quote = parse_quote(self.get_stock_quote(PROBE_SYMBOL, status=status))
        if status.using_fallback or quote is None:
            return False, "Alpha Vantage unreachable, rate limited or key rejected"
        return True, f"Connected. Received {quote.symbol or PROBE_SYMBOL} quote"


__all__ = [
    "ADVISORY",
    "DEMO_KEY",
    "StockQuote",
    "StockService",
    "inspect_alpha_vantage",
    "inspect_global_quote",
    "parse_quote",
]
