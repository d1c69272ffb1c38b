# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""API credential resolution.

Order per provider key, evaluated on every call:
1. Session override (``api_key_<name>`` in the session store; set/removed by the admin surface)
2. Environment default (ALPHA_VANTAGE_API_KEY / EXCHANGE_RATE_API_KEY)
3. Built-in default ("demo" for Alpha Vantage, none for ExchangeRate-API)

Never log key values.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Optional, Tuple

from investwatch.core.data.durable_store import KeyValueStore, MemoryStore

logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "api_key_"

ALPHA_VANTAGE = "alphavantage"
EXCHANGE_RATE = "exchangerate"

# name -> (env var, built-in default)
PROVIDER_KEYS: Dict[str, Tuple[str, str]] = {
    ALPHA_VANTAGE: ("ALPHA_VANTAGE_API_KEY", "demo"),
    EXCHANGE_RATE: ("EXCHANGE_RATE_API_KEY", ""),
}


def mask_key(value: str) -> str:
    """Show only the last 4 characters."""
    if not value:
        return ""
    if len(value) <= 4:
        return "*" * len(value)
    return "*" * (len(value) - 4) + value[-4:]


class CredentialResolver:
    """Resolves provider API keys at call time so overrides apply without restart."""

    def __init__(self, session_store: Optional[KeyValueStore] = None) -> None:
        self.session_store = session_store if session_store is not None else MemoryStore()

    def _session_key(self, name: str) -> str:
        return f"{SESSION_KEY_PREFIX}{name}"

    def resolve(self, name: str) -> str:
        """Return the active key for ``name`` ("" when none is configured)."""
        override = self.session_store.get_item(self._session_key(name))
        if override:
            return override
        env_var, default = PROVIDER_KEYS.get(name, ("", ""))
        if env_var:
            value = (os.getenv(env_var) or "").strip()
            if value:
                return value
        return default

    def source(self, name: str) -> str:
        """Where the active key comes from: session, env, default or none."""
        if self.session_store.get_item(self._session_key(name)):
            return "session"
        env_var, default = PROVIDER_KEYS.get(name, ("", ""))
        if env_var and (os.getenv(env_var) or "").strip():
            return "env"
        return "default" if default else "none"

    def set_override(self, name: str, value: Optional[str]) -> None:
        """Set a session override; an empty value removes it."""
        value = (value or "").strip()
        if value:
            self.session_store.set_item(self._session_key(name), value)
            logger.info("[CREDENTIALS] session override set name=%s", name)
        else:
            self.clear_override(name)

    def clear_override(self, name: Optional[str] = None) -> None:
        """Remove one override, or all of them."""
        names = [name] if name else list(PROVIDER_KEYS)
        for n in names:
            self.session_store.remove_item(self._session_key(n))
        logger.info("[CREDENTIALS] session override cleared names=%s", ",".join(names))

    def snapshot(self) -> Dict[str, Dict[str, str]]:
        """Masked view for admin screens."""
        return {
            name: {"source": self.source(name), "value": mask_key(self.resolve(name))}
            for name in PROVIDER_KEYS
        }


__all__ = [
    "ALPHA_VANTAGE",
    "EXCHANGE_RATE",
    "PROVIDER_KEYS",
    "SESSION_KEY_PREFIX",
    "CredentialResolver",
    "mask_key",
]
