# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""Centralized configuration loader for InvestWatch.

Loads config.yaml from the repository root and provides typed access to settings.
Falls back to sensible defaults if config.yaml is missing or incomplete.
Environment variables override config.yaml values.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import yaml

_CONFIG_CACHE: Optional["InvestWatchConfig"] = None

DEFAULT_PROXY_PREFIX = "https://corsproxy.io/?"


def _repo_root() -> Path:
    """Return the repository root."""
    # investwatch/core/settings.py -> repo root
    return Path(__file__).resolve().parents[2]


@dataclass(frozen=True)
class CacheConfig:
    """Response cache configuration."""
    duration_minutes: int
    key_prefix: str
    store_path: str
    persist: bool
    quota_bytes: Optional[int]


@dataclass(frozen=True)
class FetchConfig:
    """Retry chain configuration shared by every provider."""
    max_retries: int
    retry_delay_sec: float
    timeout_sec: float


@dataclass(frozen=True)
class ProviderConfig:
    """Upstream API hosts for one asset class."""
    primary: str
    proxy_prefix: str
    backups: Tuple[str, ...] = ()

    @property
    def proxy(self) -> str:
        return f"{self.proxy_prefix}{self.primary}" if self.proxy_prefix else ""


@dataclass(frozen=True)
class PollerConfig:
    """Background price polling."""
    enabled: bool
    interval_sec: int
    currencies: Tuple[str, ...]


@dataclass(frozen=True)
class InvestWatchConfig:
    """Root configuration object."""
    cache: CacheConfig
    fetch: FetchConfig
    crypto: ProviderConfig
    stock: ProviderConfig
    forex: ProviderConfig
    poller: PollerConfig
    debug: bool


def _load_yaml_config() -> dict:
    """Load config.yaml from repo root. Returns empty dict if not found."""
    config_path = Path(os.getenv("INVESTWATCH_CONFIG", "") or (_repo_root() / "config.yaml"))
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError):
        return {}


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name, "").lower().strip()
    if v in ("true", "1", "yes"):
        return True
    if v in ("false", "0", "no"):
        return False
    return default


def _csv(raw, default: Tuple[str, ...]) -> Tuple[str, ...]:
    if raw is None:
        return default
    if isinstance(raw, str):
        items = [p.strip() for p in raw.split(",")]
    else:
        items = [str(p).strip() for p in raw]
    return tuple(p for p in items if p)


def load_config(*, reload: bool = False) -> InvestWatchConfig:
    """Load and return the InvestWatch configuration.

    Priority order (highest to lowest):
    1. Environment variables (CACHE_DURATION_MINUTES, FETCH_MAX_RETRIES, STORE_PATH, etc.)
    2. config.yaml values
    3. Built-in defaults

    Parameters
    ----------
    reload : bool
        If True, force reload from disk. Otherwise use cached config.

    Returns
    -------
    InvestWatchConfig
        The loaded configuration.
    """
    global _CONFIG_CACHE

    if _CONFIG_CACHE is not None and not reload:
        return _CONFIG_CACHE

    raw = _load_yaml_config()

    # Cache: 300 minutes keeps Alpha Vantage's free tier (25 calls/day) usable
    cache_raw = raw.get("cache", {}) or {}
    quota_raw = os.getenv("CACHE_QUOTA_BYTES", str(cache_raw.get("quota_bytes", 5 * 1024 * 1024)))
    quota_bytes = int(quota_raw) if quota_raw and int(quota_raw) > 0 else None
    cache_config = CacheConfig(
        duration_minutes=int(os.getenv(
            "CACHE_DURATION_MINUTES",
            str(cache_raw.get("duration_minutes", 300))
        )),
        key_prefix=str(cache_raw.get("key_prefix", "api_cache_")),
        store_path=os.getenv(
            "STORE_PATH",
            cache_raw.get("store_path", "out/investwatch.db")
        ),
        persist=_env_bool("CACHE_PERSIST", bool(cache_raw.get("persist", True))),
        quota_bytes=quota_bytes,
    )

    fetch_raw = raw.get("fetch", {}) or {}
    fetch_config = FetchConfig(
        max_retries=max(0, int(os.getenv(
            "FETCH_MAX_RETRIES",
            str(fetch_raw.get("max_retries", 2))
        ))),
        retry_delay_sec=float(os.getenv(
            "FETCH_RETRY_DELAY_SEC",
            str(fetch_raw.get("retry_delay_sec", 1.0))
        )),
        timeout_sec=float(os.getenv(
            "FETCH_TIMEOUT_SEC",
            str(fetch_raw.get("timeout_sec", 15.0))
        )),
    )

    providers_raw = raw.get("providers", {}) or {}
    proxy_prefix = os.getenv("PROXY_PREFIX", providers_raw.get("proxy_prefix", DEFAULT_PROXY_PREFIX))
    crypto_raw = providers_raw.get("crypto", {}) or {}
    stock_raw = providers_raw.get("stock", {}) or {}
    forex_raw = providers_raw.get("forex", {}) or {}

    crypto_config = ProviderConfig(
        primary=os.getenv("COINGECKO_API_BASE", crypto_raw.get("primary", "https://api.coingecko.com/api/v3")).rstrip("/"),
        proxy_prefix=proxy_prefix,
    )
    stock_config = ProviderConfig(
        primary=os.getenv("ALPHA_VANTAGE_API_BASE", stock_raw.get("primary", "https://www.alphavantage.co/query")).rstrip("/"),
        proxy_prefix=proxy_prefix,
    )
    # Forex primary is completed with the API key at call time: <primary>/<key>
    forex_config = ProviderConfig(
        primary=os.getenv("EXCHANGE_RATE_API_BASE", forex_raw.get("primary", "https://v6.exchangerate-api.com/v6")).rstrip("/"),
        proxy_prefix=proxy_prefix,
        backups=_csv(
            os.getenv("EXCHANGE_RATE_BACKUPS") or forex_raw.get("backups"),
            ("https://v6.exchangerate-api.com/v6", "https://open.er-api.com/v6/latest"),
        ),
    )

    poller_raw = raw.get("poller", {}) or {}
    poller_config = PollerConfig(
        enabled=_env_bool("PRICE_POLL_ENABLED", bool(poller_raw.get("enabled", False))),
        interval_sec=max(1, int(os.getenv(
            "PRICE_POLL_INTERVAL_SEC",
            str(poller_raw.get("interval_sec", 60))
        ))),
        currencies=_csv(os.getenv("PRICE_POLL_CURRENCIES") or poller_raw.get("currencies"), ("usd", "mxn")),
    )

    app_raw = raw.get("app", {}) or {}
    debug = _env_bool("INVESTWATCH_DEBUG", bool(app_raw.get("debug", False)))

    config = InvestWatchConfig(
        cache=cache_config,
        fetch=fetch_config,
        crypto=crypto_config,
        stock=stock_config,
        forex=forex_config,
        poller=poller_config,
        debug=debug,
    )

    _CONFIG_CACHE = config
    return config


def get_store_path() -> Path:
    """Convenience: absolute path of the durable store (relative paths resolve from repo root)."""
    path = Path(load_config().cache.store_path)
    return path if path.is_absolute() else _repo_root() / path


def get_cache_duration_minutes() -> int:
    """Convenience: return default cache lifetime in minutes."""
    return load_config().cache.duration_minutes


def get_poll_interval_sec() -> int:
    """Convenience: return price poller interval."""
    return load_config().poller.interval_sec


__all__ = [
    "CacheConfig",
    "FetchConfig",
    "ProviderConfig",
    "PollerConfig",
    "InvestWatchConfig",
    "load_config",
    "get_store_path",
    "get_cache_duration_minutes",
    "get_poll_interval_sec",
]
