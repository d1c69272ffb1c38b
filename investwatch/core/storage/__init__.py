# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""Record storage on top of the key/value stores."""

from investwatch.core.storage.keyed_list_store import DEFAULT_WATCHLIST, KeyedListStore, Watchlist

__all__ = ["DEFAULT_WATCHLIST", "KeyedListStore", "Watchlist"]
