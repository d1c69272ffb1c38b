# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""Direct, uncached forex probe for diagnosing key and host problems.

Bypasses the cache, the retry chain and the fallback: one GET, and the raw
outcome is reported. The key is masked in everything returned.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from investwatch.core.config.credentials import mask_key
from investwatch.market.endpoints import latest_rates_path

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0


def probe_exchange_rate(
    primary: str,
    api_key: str,
    base: str = "USD",
    timeout: float = DEFAULT_TIMEOUT,
    client: Optional[httpx.Client] = None,
) -> Dict[str, Any]:
    """GET ``<primary>/<key>/latest/<base>`` once. Do not raise."""
    path = latest_rates_path(base)
    shown_url = f"{primary}/{mask_key(api_key)}{path}"
    if not api_key:
        return {"ok": False, "url": shown_url, "error": {"message": "No API key configured", "code": "NO_KEY"}}

    own_client = client is None
    http = client or httpx.Client(timeout=timeout)
    try:
        r = http.get(f"{primary}/{api_key}{path}")
    except httpx.RequestError as e:
        logger.warning("[PROBE] request failed: %s", type(e).__name__)
        return {
            "ok": False,
            "url": shown_url,
            "error": {"message": str(e).replace(api_key, mask_key(api_key)), "code": type(e).__name__},
        }
    finally:
        if own_client:
            http.close()

    try:
        body: Any = r.json()
    except ValueError:
        body = (r.text or "")[:500]
    if r.status_code == 200 and not (isinstance(body, dict) and body.get("result") == "error"):
        return {"ok": True, "url": shown_url, "status": r.status_code, "data": body}
    return {
        "ok": False,
        "url": shown_url,
        "error": {
            "message": f"HTTP {r.status_code}",
            "code": body.get("error-type", "HTTP_ERROR") if isinstance(body, dict) else "HTTP_ERROR",
            "status": r.status_code,
            "status_text": r.reason_phrase,
            "data": body,
        },
    }


__all__ = ["probe_exchange_rate"]
