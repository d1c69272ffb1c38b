# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""Static fallback data (LAST RESORT) used when every live endpoint has failed.

Every accessor returns a fresh copy shaped like the matching provider
response, so callers render fallback and live data the same way. Unknown coin
ids and stock symbols get a random demo price; it is not stable between calls.
"""

from __future__ import annotations

import copy
import random
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional

FALLBACK_COINS: List[Dict[str, Any]] = [
    {"id": "bitcoin", "symbol": "btc", "name": "Bitcoin",
     "image": "https://assets.coingecko.com/coins/images/1/large/bitcoin.png", "current_price": 38245.32},
    {"id": "ethereum", "symbol": "eth", "name": "Ethereum",
     "image": "https://assets.coingecko.com/coins/images/279/large/ethereum.png", "current_price": 2345.67},
    {"id": "ripple", "symbol": "xrp", "name": "XRP",
     "image": "https://assets.coingecko.com/coins/images/44/large/xrp-symbol-white-128.png", "current_price": 0.5634},
    {"id": "cardano", "symbol": "ada", "name": "Cardano",
     "image": "https://assets.coingecko.com/coins/images/975/large/cardano.png", "current_price": 0.4876},
    {"id": "solana", "symbol": "sol", "name": "Solana",
     "image": "https://assets.coingecko.com/coins/images/4128/large/solana.png", "current_price": 142.56},
    {"id": "polkadot", "symbol": "dot", "name": "Polkadot",
     "image": "https://assets.coingecko.com/coins/images/12171/large/polkadot.png", "current_price": 6.78},
    {"id": "dogecoin", "symbol": "doge", "name": "Dogecoin",
     "image": "https://assets.coingecko.com/coins/images/5/large/dogecoin.png", "current_price": 0.0872},
    {"id": "litecoin", "symbol": "ltc", "name": "Litecoin",
     "image": "https://assets.coingecko.com/coins/images/2/large/litecoin.png", "current_price": 73.45},
    {"id": "chainlink", "symbol": "link", "name": "Chainlink",
     "image": "https://assets.coingecko.com/coins/images/877/large/chainlink-new-logo.png", "current_price": 16.54},
    {"id": "tether", "symbol": "usdt", "name": "Tether",
     "image": "https://assets.coingecko.com/coins/images/325/large/Tether-logo.png", "current_price": 1.0},
]

STOCK_QUOTES: Dict[str, Dict[str, float]] = {
    "AAPL": {"price": 175.34, "change": 1.23, "changePercent": 0.71},
    "MSFT": {"price": 338.47, "change": -0.67, "changePercent": -0.20},
    "GOOGL": {"price": 125.23, "change": 2.14, "changePercent": 1.74},
    "AMZN": {"price": 139.56, "change": 3.45, "changePercent": 2.54},
    "TSLA": {"price": 238.72, "change": -5.32, "changePercent": -2.18},
}

STOCK_SEARCH: List[Dict[str, str]] = [
    {"symbol": "AAPL", "name": "Apple Inc.", "type": "stock", "region": "United States"},
    {"symbol": "MSFT", "name": "Microsoft Corporation", "type": "stock", "region": "United States"},
    {"symbol": "GOOGL", "name": "Alphabet Inc.", "type": "stock", "region": "United States"},
    {"symbol": "AMZN", "name": "Amazon.com Inc.", "type": "stock", "region": "United States"},
    {"symbol": "TSLA", "name": "Tesla, Inc.", "type": "stock", "region": "United States"},
]

POPULAR_STOCKS: List[Dict[str, Any]] = [
    {"symbol": "AAPL", "name": "Apple Inc.", "price": 175.34, "change": 1.23, "changePercent": 0.71, "sector": "Technology"},
    {"symbol": "MSFT", "name": "Microsoft Corporation", "price": 338.47, "change": -0.67, "changePercent": -0.20, "sector": "Technology"},
    {"symbol": "GOOGL", "name": "Alphabet Inc.", "price": 125.23, "change": 2.14, "changePercent": 1.74, "sector": "Technology"},
    {"symbol": "AMZN", "name": "Amazon.com Inc.", "price": 139.56, "change": 3.45, "changePercent": 2.54, "sector": "Consumer Cyclical"},
    {"symbol": "TSLA", "name": "Tesla, Inc.", "price": 238.72, "change": -5.32, "changePercent": -2.18, "sector": "Automotive"},
    {"symbol": "META", "name": "Meta Platforms, Inc.", "price": 327.56, "change": 4.28, "changePercent": 1.32, "sector": "Technology"},
    {"symbol": "NVDA", "name": "NVIDIA Corporation", "price": 437.82, "change": 12.67, "changePercent": 2.98, "sector": "Technology"},
    {"symbol": "JPM", "name": "JPMorgan Chase & Co.", "price": 182.34, "change": -0.45, "changePercent": -0.25, "sector": "Financial Services"},
    {"symbol": "V", "name": "Visa Inc.", "price": 267.23, "change": 1.56, "changePercent": 0.59, "sector": "Financial Services"},
    {"symbol": "WMT", "name": "Walmart Inc.", "price": 59.87, "change": 0.32, "changePercent": 0.54, "sector": "Consumer Defensive"},
    {"symbol": "KO", "name": "The Coca-Cola Company", "price": 61.42, "change": 0.18, "changePercent": 0.29, "sector": "Consumer Defensive"},
    {"symbol": "PG", "name": "Procter & Gamble", "price": 162.80, "change": 1.10, "changePercent": 0.68, "sector": "Consumer Defensive"},
    {"symbol": "DIS", "name": "The Walt Disney Company", "price": 102.56, "change": -0.87, "changePercent": -0.84, "sector": "Communication Services"},
]

# Units per 1 USD
FOREX_RATES: Dict[str, float] = {
    "USD": 1.0,
    "EUR": 0.92,
    "JPY": 151.67,
    "GBP": 0.79,
    "AUD": 1.52,
    "CAD": 1.36,
    "CHF": 0.91,
    "CNY": 7.24,
    "MXN": 17.5,
    "BRL": 5.07,
}

CURRENCY_NAMES: Dict[str, str] = {
    "USD": "US Dollar",
    "EUR": "Euro",
    "JPY": "Japanese Yen",
    "GBP": "British Pound",
    "AUD": "Australian Dollar",
    "CAD": "Canadian Dollar",
    "CHF": "Swiss Franc",
    "CNY": "Chinese Yuan",
    "MXN": "Mexican Peso",
    "BRL": "Brazilian Real",
}


def currency_name(code: str) -> str:
    return CURRENCY_NAMES.get(code.upper(), code.upper())


class FallbackDataset:
    """Read-only demo data for crypto, stocks and forex.

    Parameters
    ----------
    rng:
        Source of the random prices handed out for unknown ids/symbols.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    # ------------------------------------------------------------------ #
    # Crypto
    # ------------------------------------------------------------------ #
    def coin_list(self) -> List[Dict[str, Any]]:
        return copy.deepcopy(FALLBACK_COINS)

    def _usd_price(self, coin_id: str) -> float:
        for coin in FALLBACK_COINS:
            if coin["id"] == coin_id:
                return float(coin["current_price"])
        return round(self._rng.uniform(0, 100), 2)

    def coin_prices(
        self,
        coin_ids: Iterable[str],
        currencies: Iterable[str] = ("usd", "mxn"),
    ) -> Dict[str, Dict[str, float]]:
        """``{id: {currency: price}}`` like CoinGecko /simple/price.

        Currencies missing from the forex table are omitted.
        """
        currencies = [c.lower() for c in currencies]
        out: Dict[str, Dict[str, float]] = {}
        for coin_id in coin_ids:
            if not coin_id:
                continue
            usd = self._usd_price(coin_id)
            row: Dict[str, float] = {}
            for cur in currencies:
                rate = FOREX_RATES.get(cur.upper())
                if rate is not None:
                    row[cur] = usd * rate
            out[coin_id] = row
        return out

    def coin_details(self, coin_id: str) -> Dict[str, Any]:
        """Minimal CoinGecko /coins/{id} document."""
        coin = next((c for c in FALLBACK_COINS if c["id"] == coin_id), None)
        usd = self._usd_price(coin_id)
        return {
            "id": coin_id,
            "symbol": coin["symbol"] if coin else coin_id[:4],
            "name": coin["name"] if coin else coin_id.replace("-", " ").title(),
            "image": {"large": coin["image"] if coin else None},
            "market_data": {
                "current_price": {cur.lower(): usd * rate for cur, rate in FOREX_RATES.items()},
            },
        }

    # ------------------------------------------------------------------ #
    # Stocks
    # ------------------------------------------------------------------ #
    def stock_quote(self, symbol: str) -> Dict[str, float]:
        """``{"price", "change", "changePercent"}``; random for unknown symbols."""
        known = STOCK_QUOTES.get(symbol.upper())
        if known:
            return dict(known)
        price = round(self._rng.uniform(50, 250), 2)
        change = round(self._rng.uniform(-5, 5), 2)
        return {
            "price": price,
            "change": change,
            "changePercent": round(change / price * 100, 2),
        }

    def global_quote(self, symbol: str) -> Dict[str, Any]:
        """Alpha Vantage GLOBAL_QUOTE shape."""
        q = self.stock_quote(symbol)
        return {
            "Global Quote": {
                "01. symbol": symbol.upper(),
                "05. price": f"{q['price']:.4f}",
                "09. change": f"{q['change']:.4f}",
                "10. change percent": f"{q['changePercent']:.4f}%",
            }
        }

    def symbol_search(self, keywords: str) -> Dict[str, Any]:
        """Alpha Vantage SYMBOL_SEARCH shape, filtered on symbol or name."""
        needle = (keywords or "").strip().lower()
        matches = [
            s for s in STOCK_SEARCH
            if not needle or needle in s["symbol"].lower() or needle in s["name"].lower()
        ]
        return {
            "bestMatches": [
                {
                    "1. symbol": s["symbol"],
                    "2. name": s["name"],
                    "3. type": s["type"],
                    "4. region": s["region"],
                }
                for s in matches
            ]
        }

    def daily_series(self, symbol: str, days: int = 30, today: Optional[date] = None) -> Dict[str, Any]:
        """Alpha Vantage TIME_SERIES_DAILY shape: a flat series at the quote price over recent weekdays."""
        q = self.stock_quote(symbol)
        price = f"{q['price']:.4f}"
        series: Dict[str, Dict[str, str]] = {}
        day = today or date.today()
        while len(series) < days:
            if day.weekday() < 5:
                series[day.isoformat()] = {
                    "1. open": price,
                    "2. high": price,
                    "3. low": price,
                    "4. close": price,
                    "5. volume": "0",
                }
            day -= timedelta(days=1)
        return {
            "Meta Data": {
                "1. Information": "Daily Prices (open, high, low, close) and Volumes",
                "2. Symbol": symbol.upper(),
            },
            "Time Series (Daily)": series,
        }

    def popular_stocks(self) -> List[Dict[str, Any]]:
        return copy.deepcopy(POPULAR_STOCKS)

    # ------------------------------------------------------------------ #
    # Forex
    # ------------------------------------------------------------------ #
    def exchange_rates(self, base: str = "USD") -> Dict[str, Any]:
        """``{"base", "rates"}`` with the table re-based on ``base``.

        An unknown base gets the USD table labelled ``"USD"``.
        """
        base = base.upper()
        pivot = FOREX_RATES.get(base)
        if pivot is None:
            return {"base": "USD", "rates": dict(FOREX_RATES)}
        return {"base": base, "rates": {code: rate / pivot for code, rate in FOREX_RATES.items()}}

    def convert(self, from_code: str, to_code: str, amount: float) -> float:
        """Convert through USD: ``amount / rate_from * rate_to``. Unknown codes count as 1."""
        rate_from = FOREX_RATES.get(from_code.upper(), 1.0)
        rate_to = FOREX_RATES.get(to_code.upper(), 1.0)
        return amount / rate_from * rate_to

    def rate(self, from_code: str, to_code: str) -> float:
        return self.convert(from_code, to_code, 1.0)

    def currencies(self) -> List[Dict[str, str]]:
        return [{"code": code, "name": currency_name(code)} for code in FOREX_RATES]


FALLBACK = FallbackDataset()

__all__ = [
    "FALLBACK",
    "FALLBACK_COINS",
    "FOREX_RATES",
    "POPULAR_STOCKS",
    "STOCK_QUOTES",
    "STOCK_SEARCH",
    "CURRENCY_NAMES",
    "FallbackDataset",
    "currency_name",
]
