# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""InvestWatch: market data client with a two-tier response cache and retry/fallback fetching."""

__version__ = "0.1.0"
