# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""Fixed-interval background work (price polling).

A :class:`PeriodicTask` owns one daemon thread and a stop event; ``stop()``
signals and joins it. Errors raised by the job are logged and the loop keeps
going.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Sequence

from investwatch.core.storage.keyed_list_store import Watchlist
from investwatch.market.providers.crypto_provider import CryptoService
from investwatch.market.resilient_client import FetchStatus

logger = logging.getLogger(__name__)

STOP_JOIN_TIMEOUT_SEC = 5.0


class PeriodicTask:
    """Run ``fn`` every ``interval_sec`` seconds on a background thread."""

    def __init__(
        self,
        name: str,
        interval_sec: float,
        fn: Callable[[], Any],
        run_immediately: bool = True,
    ) -> None:
        if interval_sec <= 0:
            raise ValueError("interval_sec must be positive")
        self.name = name
        self.interval_sec = interval_sec
        self.fn = fn
        self.run_immediately = run_immediately
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self.runs = 0
        self.errors = 0
        self.last_run_at: Optional[str] = None
        self.last_error: Optional[str] = None

    def _run_once(self) -> None:
        try:
            self.fn()
        except Exception as e:
            self.errors += 1
            self.last_error = str(e)
            logger.exception("[%s] run failed: %s", self.name.upper(), e)
        finally:
            self.runs += 1
            self.last_run_at = datetime.now(timezone.utc).isoformat()

    def _loop(self, stop_event: threading.Event) -> None:
        logger.info("[%s] started interval=%ss", self.name.upper(), self.interval_sec)
        if self.run_immediately and not stop_event.is_set():
            self._run_once()
        while not stop_event.wait(self.interval_sec):
            self._run_once()
        logger.info("[%s] stopped", self.name.upper())

    def start(self) -> None:
        if self.is_running():
            logger.warning("[%s] already running", self.name.upper())
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._loop,
            args=(self._stop_event,),
            daemon=True,
            name=self.name,
        )
        self._thread.start()

    def stop(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=STOP_JOIN_TIMEOUT_SEC)
            if self._thread.is_alive():
                logger.warning("[%s] thread did not stop within timeout", self.name.upper())
        self._stop_event = None
        self._thread = None

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def status(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "running": self.is_running(),
            "interval_sec": self.interval_sec,
            "runs": self.runs,
            "errors": self.errors,
            "last_run_at": self.last_run_at,
            "last_error": self.last_error,
        }


class PricePoller:
    """Keeps the latest watchlist prices, refreshed by a :class:`PeriodicTask`."""

    def __init__(
        self,
        crypto: CryptoService,
        watchlist: Watchlist,
        interval_sec: float = 60,
        currencies: Sequence[str] = ("usd", "mxn"),
    ) -> None:
        self.crypto = crypto
        self.watchlist = watchlist
        self.currencies = tuple(currencies)
        self._lock = threading.Lock()
        self._snapshot: Dict[str, Any] = {"prices": {}, "using_fallback": False, "message": "", "updated_at": None}
        self.task = PeriodicTask("poller", interval_sec, self.poll)

    def poll(self) -> Dict[str, Any]:
        """Fetch prices for the current watchlist and store the snapshot."""
        status = FetchStatus()
        coins = self.watchlist.coins()
        prices = self.crypto.get_prices(coins, self.currencies, status=status) if coins else {}
        snapshot = {
            "prices": prices,
            "using_fallback": status.using_fallback,
            "message": status.message,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        with self._lock:
            self._snapshot = snapshot
        logger.info("[POLLER] coins=%d fallback=%s", len(coins), status.using_fallback)
        return snapshot

    def latest(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._snapshot)

    def start(self) -> None:
        self.task.start()

    def stop(self) -> None:
        self.task.stop()


__all__ = ["PeriodicTask", "PricePoller"]
