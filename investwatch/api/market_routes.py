# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""Market read API: /api/market/*, /api/watchlist, /api/prices/latest.

Every market payload is wrapped as ``{"data", "using_fallback", "message"}``
so clients can show the demo-data advisory.
"""

from __future__ import annotations

from typing import Any, Callable, Dict

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from investwatch.market.factory import MarketServices
from investwatch.market.providers.stock_provider import parse_quote
from investwatch.market.resilient_client import FetchStatus

from investwatch.api.deps import get_services

router = APIRouter(prefix="/api", tags=["market"])


def _envelope(call: Callable[[FetchStatus], Any]) -> Dict[str, Any]:
    status = FetchStatus()
    data = call(status)
    return {
        "data": data,
        "using_fallback": status.using_fallback,
        "message": status.message,
        "source": status.source,
    }


def _split(raw: str) -> list:
    return [p.strip() for p in (raw or "").split(",") if p.strip()]


# ---------------------------------------------------------------------------
# Crypto
# ---------------------------------------------------------------------------


@router.get("/market/coins")
def market_coins(services: MarketServices = Depends(get_services)) -> Dict[str, Any]:
    return _envelope(lambda s: services.crypto.get_coins(status=s))


@router.get("/market/prices")
def market_prices(
    ids: str = Query(..., description="Comma-separated coin ids"),
    currencies: str = Query("usd,mxn", description="Comma-separated quote currencies"),
    services: MarketServices = Depends(get_services),
) -> Dict[str, Any]:
    coin_ids = _split(ids)
    if not coin_ids:
        raise HTTPException(status_code=400, detail="ids is required")
    return _envelope(lambda s: services.crypto.get_prices(coin_ids, _split(currencies) or ["usd"], status=s))


@router.get("/market/coins/{coin_id}")
def market_coin_details(coin_id: str, services: MarketServices = Depends(get_services)) -> Dict[str, Any]:
    return _envelope(lambda s: services.crypto.get_coin_details(coin_id, status=s))


# ---------------------------------------------------------------------------
# Stocks
# ---------------------------------------------------------------------------


@router.get("/market/stocks/search")
def market_stock_search(
    keywords: str = Query(..., min_length=1),
    services: MarketServices = Depends(get_services),
) -> Dict[str, Any]:
    return _envelope(lambda s: services.stock.search_symbols(keywords, status=s))


@router.get("/market/stocks/popular")
def market_popular_stocks(services: MarketServices = Depends(get_services)) -> Dict[str, Any]:
    return _envelope(lambda s: services.stock.get_popular_stocks(status=s))


@router.get("/market/stocks/{symbol}/quote")
def market_stock_quote(symbol: str, services: MarketServices = Depends(get_services)) -> Dict[str, Any]:
    """Raw GLOBAL_QUOTE plus the parsed quote."""
    out = _envelope(lambda s: services.stock.get_stock_quote(symbol.upper(), status=s))
    quote = parse_quote(out["data"])
    out["quote"] = quote.to_dict() if quote else None
    return out


@router.get("/market/stocks/{symbol}/history")
def market_stock_history(symbol: str, services: MarketServices = Depends(get_services)) -> Dict[str, Any]:
    return _envelope(lambda s: services.stock.get_historical_data(symbol.upper(), status=s))


# ---------------------------------------------------------------------------
# Forex
# ---------------------------------------------------------------------------


@router.get("/market/forex/rates")
def market_forex_rates(
    base: str = Query("USD"),
    services: MarketServices = Depends(get_services),
) -> Dict[str, Any]:
    return _envelope(lambda s: services.forex.get_exchange_rates(base, status=s))


@router.get("/market/forex/convert")
def market_forex_convert(
    from_code: str = Query(..., alias="from"),
    to_code: str = Query(..., alias="to"),
    amount: float = Query(...),
    services: MarketServices = Depends(get_services),
) -> Dict[str, Any]:
    return _envelope(lambda s: services.forex.convert_currency(from_code, to_code, amount, status=s))


@router.get("/market/forex/currencies")
def market_forex_currencies(services: MarketServices = Depends(get_services)) -> Dict[str, Any]:
    return _envelope(lambda s: services.forex.get_currencies(status=s))


# ---------------------------------------------------------------------------
# Watchlist & poller
# ---------------------------------------------------------------------------


@router.get("/watchlist")
def watchlist_get(services: MarketServices = Depends(get_services)) -> Dict[str, Any]:
    return {"coins": services.watchlist.coins()}


@router.post("/watchlist")
async def watchlist_add(request: Request, services: MarketServices = Depends(get_services)) -> Dict[str, Any]:
    """Body ``{"coin_id": "solana"}``. Adding a coin already listed is a no-op."""
    try:
        body = await request.json()
    except ValueError:
        body = {}
    coin_id = (body or {}).get("coin_id") if isinstance(body, dict) else None
    if not coin_id or not isinstance(coin_id, str):
        raise HTTPException(status_code=400, detail="coin_id is required")
    return {"coins": services.watchlist.add(coin_id)}


@router.delete("/watchlist/{coin_id}")
def watchlist_remove(coin_id: str, services: MarketServices = Depends(get_services)) -> Dict[str, Any]:
    return {"coins": services.watchlist.remove(coin_id)}


@router.get("/prices/latest")
def prices_latest(services: MarketServices = Depends(get_services)) -> Dict[str, Any]:
    """Last poller snapshot; empty until the first poll."""
    return services.poller.latest()
