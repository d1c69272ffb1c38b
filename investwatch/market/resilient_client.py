# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""Cache-first fetch with a bounded retry chain and a static fallback.

One client serves every asset class; providers inject the endpoint chain, a
body inspector (provider-specific error detection), a normalizer and a
fallback supplier. Nothing raised inside the chain escapes :meth:`fetch`.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import requests

from investwatch.core.data.cache_manager import CacheManager
from investwatch.market.endpoints import Endpoint
from investwatch.market.errors import (
    FetchError,
    MalformedResponseError,
    NotFoundError,
    UnreachableError,
    error_for_status,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 2
DEFAULT_RETRY_DELAY_SEC = 1.0
DEFAULT_TIMEOUT_SEC = 15.0

# Never part of a cache key or a log line
SECRET_PARAMS = frozenset({"apikey", "token"})


@dataclass
class FetchStatus:
    """Out-of-band fallback flag and advisory for one consumer.

    Any object with ``set_using_fallback(bool)`` and ``set_message(str)`` can
    be passed instead.
    """
    using_fallback: bool = False
    message: str = ""
    source: str = ""

    def set_using_fallback(self, value: bool) -> None:
        self.using_fallback = bool(value)

    def set_message(self, message: str) -> None:
        self.message = message or ""

    def reset(self) -> None:
        self.using_fallback = False
        self.message = ""
        self.source = ""


@dataclass
class FetchAttempt:
    """Transient state of one chain run."""
    endpoint_order: List[str]
    retries_remaining: int
    last_error: Optional[FetchError] = None
    attempts: int = 0
    tried: List[str] = field(default_factory=list)


def public_params(params: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Params with credentials removed."""
    return {k: v for k, v in (params or {}).items() if k.lower() not in SECRET_PARAMS}


class ResilientFetchClient:
    """Shared fetch engine.

    Parameters
    ----------
    cache:
        The process :class:`CacheManager`.
    session:
        ``requests.Session`` (or a stand-in with ``get``); one is created if omitted.
    max_retries:
        Retries after the first attempt; total attempts = ``max_retries + 1``.
    retry_delay_sec:
        Fixed pause between failed attempts.
    timeout_sec:
        Per-request timeout.
    sleep:
        Injectable sleep used for the backoff.
    """

    def __init__(
        self,
        cache: CacheManager,
        *,
        session: Optional[requests.Session] = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay_sec: float = DEFAULT_RETRY_DELAY_SEC,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.cache = cache
        self.session = session or requests.Session()
        self.max_retries = max(0, int(max_retries))
        self.retry_delay_sec = retry_delay_sec
        self.timeout_sec = timeout_sec
        self._sleep = sleep
        self._stats = {"network_attempts": 0, "cache_hits": 0, "fallbacks": 0, "successes": 0}
        self._stats_lock = threading.Lock()

    # ------------------------------------------------------------------ #
    # Public
    # ------------------------------------------------------------------ #
    def fetch(
        self,
        cache_base: str,
        path: str,
        params: Optional[Mapping[str, Any]],
        endpoints: Sequence[Endpoint],
        fallback: Callable[[], Any],
        *,
        normalize: Optional[Callable[[Any], Any]] = None,
        inspect: Optional[Callable[[Any, str], None]] = None,
        alternates: Sequence[Endpoint] = (),
        status: Any = None,
        advisory: str = "",
        cache_minutes: Optional[int] = None,
    ) -> Any:
        """Return cached, live or fallback data for ``path``.

        ``inspect(body, url_label)`` raises a :class:`FetchError` for
        provider-level errors carried in a 200 body. ``normalize`` shapes the
        body before it is cached.
        """
        params = dict(params or {})
        key = self.cache.make_key(f"{cache_base}{path}", public_params(params))

        cached = self.cache.get(key)
        if cached is not None:
            self._count("cache_hits")
            logger.debug("[FETCH] cache hit key=%s", key[:80])
            self._mark(status, "cache")
            return cached

        try:
            body = self._run_chain(path, params, endpoints, alternates, inspect)
            data = normalize(body) if normalize else body
        except FetchError as e:
            return self._use_fallback(path, e, fallback, status, advisory)

        self._count("successes")
        self.cache.set(key, data, cache_minutes)
        self._mark(status, "network")
        return data

    def stats(self) -> Dict[str, int]:
        with self._stats_lock:
            return dict(self._stats)

    def _count(self, name: str) -> None:
        with self._stats_lock:
            self._stats[name] += 1

    # ------------------------------------------------------------------ #
    # Chain
    # ------------------------------------------------------------------ #
    def _run_chain(
        self,
        path: str,
        params: Dict[str, Any],
        endpoints: Sequence[Endpoint],
        alternates: Sequence[Endpoint],
        inspect: Optional[Callable[[Any, str], None]],
    ) -> Any:
        if not endpoints:
            raise UnreachableError("no endpoints configured", path)
        state = FetchAttempt(
            endpoint_order=[e.label for e in endpoints],
            retries_remaining=self.max_retries,
        )
        for i in range(self.max_retries + 1):
            endpoint = endpoints[min(i, len(endpoints) - 1)]
            try:
                return self._attempt(endpoint, path, params, inspect, state)
            except FetchError as e:
                state.last_error = e
                state.retries_remaining = self.max_retries - i
                logger.warning(
                    "[FETCH] attempt=%d endpoint=%s kind=%s error=%s",
                    i + 1, e.url, e.kind, e,
                )
                if not e.retryable:
                    raise
                if i < self.max_retries:
                    self._sleep(self.retry_delay_sec)

        if isinstance(state.last_error, NotFoundError) and alternates:
            for alt in alternates:
                try:
                    return self._attempt(alt, path, params, inspect, state)
                except FetchError as e:
                    state.last_error = e
                    logger.warning("[FETCH] alternate=%s kind=%s error=%s", e.url, e.kind, e)
                    if not e.retryable:
                        raise

        assert state.last_error is not None
        raise state.last_error

    def _attempt(
        self,
        endpoint: Endpoint,
        path: str,
        params: Dict[str, Any],
        inspect: Optional[Callable[[Any, str], None]],
        state: FetchAttempt,
    ) -> Any:
        label = endpoint.describe(path)
        state.attempts += 1
        state.tried.append(label)
        self._count("network_attempts")
        try:
            resp = self.session.get(endpoint.url_for(path), params=params or None, timeout=self.timeout_sec)
        except requests.RequestException as e:
            raise UnreachableError(f"request failed: {type(e).__name__}", label) from e

        err = error_for_status(resp.status_code, label, resp.text or "")
        if err is not None:
            raise err
        try:
            body = resp.json()
        except ValueError as e:
            raise MalformedResponseError("response is not JSON", label, resp.status_code, resp.text or "") from e
        if inspect is not None:
            inspect(body, label)
        logger.debug("[FETCH] ok endpoint=%s", label)
        return body

    # ------------------------------------------------------------------ #
    # Fallback
    # ------------------------------------------------------------------ #
    def _use_fallback(
        self,
        path: str,
        error: Optional[FetchError],
        fallback: Callable[[], Any],
        status: Any,
        advisory: str,
    ) -> Any:
        self._count("fallbacks")
        logger.warning(
            "[FALLBACK] path=%s kind=%s",
            path or "/", error.kind if error is not None else "skipped",
        )
        if status is not None:
            status.set_using_fallback(True)
            if advisory:
                status.set_message(advisory)
            if hasattr(status, "source"):
                status.source = "fallback"
        return fallback()

    def fallback_now(self, path: str, fallback: Callable[[], Any], status: Any = None, advisory: str = "") -> Any:
        """Skip the network entirely (e.g. no credential configured)."""
        return self._use_fallback(path, None, fallback, status, advisory)

    @staticmethod
    def _mark(status: Any, source: str) -> None:
        if status is None:
            return
        status.set_using_fallback(False)
        status.set_message("")
        if hasattr(status, "source"):
            status.source = source


__all__ = [
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_RETRY_DELAY_SEC",
    "DEFAULT_TIMEOUT_SEC",
    "SECRET_PARAMS",
    "FetchAttempt",
    "FetchStatus",
    "ResilientFetchClient",
    "public_params",
]
