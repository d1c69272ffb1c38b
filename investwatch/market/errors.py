# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""Fetch failure taxonomy shared by every provider.

Only Unreachable / NotFound / MalformedResponse are retried. Unauthorized and
RateLimited end the chain at once ("fail fast, don't hammer").
"""

from __future__ import annotations

from typing import Optional


class FetchError(Exception):
    """Base class for a failed upstream read.

    ``url`` holds the endpoint label and path, never a URL carrying an API key.
    """

    retryable = True
    kind = "fetch_error"

    def __init__(
        self,
        message: str,
        url: str = "",
        http_status: Optional[int] = None,
        response_snippet: str = "",
    ) -> None:
        self.url = url
        self.http_status = http_status
        self.response_snippet = (response_snippet or "")[:500]
        super().__init__(message)


class UnreachableError(FetchError):
    """Network error, timeout or upstream 5xx."""
    kind = "unreachable"


class NotFoundError(FetchError):
    """Endpoint no longer valid (HTTP 404)."""
    kind = "not_found"


class MalformedResponseError(FetchError):
    """Body is not JSON or not the expected shape."""
    kind = "malformed_response"


class UnauthorizedError(FetchError):
    """Missing or rejected credential."""
    retryable = False
    kind = "unauthorized"


class RateLimitedError(FetchError):
    """Provider signalled quota or call-frequency exhaustion."""
    retryable = False
    kind = "rate_limited"


def error_for_status(status_code: int, url: str = "", body: str = "") -> Optional[FetchError]:
    """Map a non-2xx HTTP status to the taxonomy. Returns None for 2xx."""
    if 200 <= status_code < 300:
        return None
    snippet = (body or "")[:300]
    if status_code in (401, 403):
        return UnauthorizedError(f"HTTP {status_code}: credential rejected", url, status_code, snippet)
    if status_code == 404:
        return NotFoundError(f"HTTP {status_code}: endpoint not found", url, status_code, snippet)
    if status_code == 429:
        return RateLimitedError(f"HTTP {status_code}: rate limit exceeded", url, status_code, snippet)
    return UnreachableError(f"HTTP {status_code}", url, status_code, snippet)


__all__ = [
    "FetchError",
    "UnreachableError",
    "NotFoundError",
    "MalformedResponseError",
    "UnauthorizedError",
    "RateLimitedError",
    "error_for_status",
]
