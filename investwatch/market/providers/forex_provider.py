# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""ExchangeRate-API forex service.

The key is part of the URL path, so the chain is rebuilt on every call from the
currently resolved key. Without a key no request is made. When the whole chain
ends on 404 the backup hosts are tried once each.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from investwatch.core.config.credentials import EXCHANGE_RATE
from investwatch.market.endpoints import forex_alternates, forex_chain, latest_rates_path
from investwatch.market.errors import MalformedResponseError, RateLimitedError, UnauthorizedError
from investwatch.market.fallback_data import currency_name
from investwatch.market.providers.base import AssetServiceInterface
from investwatch.market.resilient_client import FetchStatus

logger = logging.getLogger(__name__)

ADVISORY = "ExchangeRate-API is unavailable; showing demo exchange rates."
NO_KEY_ADVISORY = "No ExchangeRate-API key configured; showing demo exchange rates."

_AUTH_ERROR_TYPES = ("invalid-key", "inactive-account")
_QUOTA_ERROR_TYPES = ("quota-reached",)


def inspect_exchange_rate(body: Any, url: str) -> None:
    """Raise for ``{"result": "error", "error-type": ...}`` bodies and rate-less payloads."""
    if not isinstance(body, dict):
        raise MalformedResponseError("expected a JSON object", url)
    if body.get("result") == "error":
        error_type = str(body.get("error-type") or "unknown")
        if error_type in _AUTH_ERROR_TYPES:
            raise UnauthorizedError(f"ExchangeRate-API: {error_type}", url, 200, error_type)
        if error_type in _QUOTA_ERROR_TYPES:
            raise RateLimitedError(f"ExchangeRate-API: {error_type}", url, 200, error_type)
        raise MalformedResponseError(f"ExchangeRate-API: {error_type}", url, 200, error_type)
    rates = body.get("conversion_rates") or body.get("rates")
    if not isinstance(rates, dict) or not rates:
        raise MalformedResponseError("response has no rates", url, 200)


def normalize_rates(body: Dict[str, Any]) -> Dict[str, Any]:
    """v6 (``conversion_rates``/``base_code``) or open.er-api (``rates``) -> ``{"rates", "base"}``."""
    return {
        "rates": body.get("conversion_rates") or body.get("rates") or {},
        "base": body.get("base_code") or body.get("base") or "",
    }


class ForexService(AssetServiceInterface):
    """Latest rates, conversion and currency list."""

    name = "forex"

    def _api_key(self) -> str:
        return self.credentials.resolve(EXCHANGE_RATE)

    def get_exchange_rates(self, base: str = "USD", status: Any = None) -> Dict[str, Any]:
        base = (base or "USD").upper()
        path = latest_rates_path(base)
        key = self._api_key()
        fallback = lambda: self.fallback.exchange_rates(base)  # noqa: E731
        if not key:
            logger.warning("[FOREX] no API key configured; using fallback rates")
            return self.client.fallback_now(path, fallback, status, NO_KEY_ADVISORY)
        return self.client.fetch(
            self.config.primary,
            path,
            {},
            forex_chain(self.config, key),
            fallback,
            normalize=normalize_rates,
            inspect=inspect_exchange_rate,
            alternates=forex_alternates(self.config, key),
            status=status,
            advisory=ADVISORY,
        )

    def convert_currency(
        self,
        from_code: str,
        to_code: str,
        amount: float,
        status: Any = None,
    ) -> Dict[str, float]:
        """``{"result", "rate"}``; static table when the rates lack ``to_code`` or ``from_code``."""
        from_code, to_code = from_code.upper(), to_code.upper()
        payload = self.get_exchange_rates(from_code, status=status)
        rates = payload.get("rates") or {}
        # rates for an unknown base come back keyed to USD
        rate: Optional[float] = rates.get(to_code) if (payload.get("base") or from_code).upper() == from_code else None
        if rate:
            return {"result": amount * rate, "rate": rate}
        logger.warning("[FOREX] no rate %s->%s; converting with fallback table", from_code, to_code)
        if status is not None:
            status.set_using_fallback(True)
            status.set_message(ADVISORY)
        return {
            "result": self.fallback.convert(from_code, to_code, amount),
            "rate": self.fallback.rate(from_code, to_code),
        }

    def get_currencies(self, status: Any = None) -> List[Dict[str, str]]:
        rates = self.get_exchange_rates("USD", status=status).get("rates") or {}
        if not rates:
            return self.fallback.currencies()
        return [{"code": code, "name": currency_name(code)} for code in rates]

    def health_check(self) -> Tuple[bool, str]:
        if not self._api_key():
            return False, "No ExchangeRate-API key configured"
        status = FetchStatus()
        rates = self.get_exchange_rates("USD", status=status).get("rates") or {}
        if status.using_fallback:
            return False, "ExchangeRate-API unreachable or key rejected"
        return True, f"Connected. Received {len(rates)} rates"


__all__ = [
    "ADVISORY",
    "NO_KEY_ADVISORY",
    "ForexService",
    "inspect_exchange_rate",
    "normalize_rates",
]
