# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""Process-wide service graph for the HTTP layer."""

from __future__ import annotations

import threading
from typing import Optional

from investwatch.market.factory import MarketServices, build_services

_LOCK = threading.Lock()
_SERVICES: Optional[MarketServices] = None


def get_services() -> MarketServices:
    """Built lazily on first use from the loaded configuration."""
    global _SERVICES
    with _LOCK:
        if _SERVICES is None:
            _SERVICES = build_services()
        return _SERVICES


def set_services(services: Optional[MarketServices]) -> None:
    """Install a prebuilt graph (tests), or None to rebuild on next use."""
    global _SERVICES
    with _LOCK:
        _SERVICES = services


__all__ = ["get_services", "set_services"]
