# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""Market data: resilient fetching, providers, fallback data and polling."""

from __future__ import annotations

from investwatch.market.errors import (
    FetchError,
    MalformedResponseError,
    NotFoundError,
    RateLimitedError,
    UnauthorizedError,
    UnreachableError,
)
from investwatch.market.resilient_client import FetchStatus, ResilientFetchClient

__all__ = [
    "FetchError",
    "FetchStatus",
    "MalformedResponseError",
    "NotFoundError",
    "RateLimitedError",
    "ResilientFetchClient",
    "UnauthorizedError",
    "UnreachableError",
]
