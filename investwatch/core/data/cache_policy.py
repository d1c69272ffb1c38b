# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""
Per-operation cache lifetimes (minutes).

Operations not listed use the CacheManager default (300 minutes). Spot prices
are polled every minute, so they get a one-minute lifetime.
"""

from __future__ import annotations

from typing import Optional

CACHE_TTL_MINUTES = {
    "prices": 1,
}


def get_ttl_minutes(operation: str) -> Optional[int]:
    """Return lifetime for an operation, or None for the manager default."""
    if not operation:
        return None
    return CACHE_TTL_MINUTES.get(operation.strip().lower())


__all__ = ["CACHE_TTL_MINUTES", "get_ttl_minutes"]
