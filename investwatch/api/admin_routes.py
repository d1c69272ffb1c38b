# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""Admin API: /api/admin/*: cache inspection, credential overrides, connection tests."""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from investwatch.core.config.credentials import EXCHANGE_RATE, PROVIDER_KEYS
from investwatch.market.factory import ASSET_CLASSES, MarketServices, run_connection_test
from investwatch.market.probe import probe_exchange_rate

from investwatch.api.deps import get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


@router.get("/cache")
def admin_cache_stats(services: MarketServices = Depends(get_services)) -> Dict[str, Any]:
    """Durable cache entries (soonest-expiring first) and fetch counters."""
    stats = services.cache.stats()
    stats["fetch"] = services.client.stats()
    return stats


@router.delete("/cache")
def admin_cache_clear(services: MarketServices = Depends(get_services)) -> Dict[str, Any]:
    services.cache.clear()
    return {"cleared": True, "key": None}


@router.delete("/cache/{key:path}")
def admin_cache_clear_key(key: str, services: MarketServices = Depends(get_services)) -> Dict[str, Any]:
    services.cache.clear(key)
    return {"cleared": True, "key": key}


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


@router.get("/credentials")
def admin_credentials(services: MarketServices = Depends(get_services)) -> Dict[str, Any]:
    """Masked active keys and where each comes from."""
    return {"credentials": services.credentials.snapshot()}


@router.put("/credentials")
async def admin_credentials_set(
    request: Request,
    services: MarketServices = Depends(get_services),
) -> Dict[str, Any]:
    """Body ``{"alphavantage": "...", "exchangerate": "..."}``. Empty values remove the override.

    The cache is cleared so no response fetched with the previous key is served.
    """
    try:
        body = await request.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Body must be a JSON object")
    unknown = [k for k in body if k not in PROVIDER_KEYS]
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown credential(s): {', '.join(sorted(unknown))}")
    for name, value in body.items():
        services.credentials.set_override(name, value if isinstance(value, str) else "")
    services.cache.clear()
    return {"credentials": services.credentials.snapshot(), "cache_cleared": True}


@router.delete("/credentials")
def admin_credentials_clear(services: MarketServices = Depends(get_services)) -> Dict[str, Any]:
    services.credentials.clear_override()
    services.cache.clear()
    return {"credentials": services.credentials.snapshot(), "cache_cleared": True}


# ---------------------------------------------------------------------------
# Connection tests
# ---------------------------------------------------------------------------


@router.post("/test/{asset}")
def admin_test_asset(asset: str, services: MarketServices = Depends(get_services)) -> Dict[str, Any]:
    """Run one provider health check: status is success, warning or error."""
    if asset not in ASSET_CLASSES:
        raise HTTPException(status_code=404, detail=f"Unknown asset class: {asset}")
    return run_connection_test(services, asset)


@router.post("/probe/forex")
def admin_probe_forex(
    base: str = Query("USD", description="Base currency code"),
    services: MarketServices = Depends(get_services),
) -> Dict[str, Any]:
    """One raw ExchangeRate-API request (no cache, no retry, no fallback)."""
    return probe_exchange_rate(
        services.config.forex.primary,
        services.credentials.resolve(EXCHANGE_RATE),
        base=base,
        timeout=services.config.fetch.timeout_sec,
    )


@router.get("/poller")
def admin_poller_status(services: MarketServices = Depends(get_services)) -> Dict[str, Any]:
    return services.poller.task.status()
