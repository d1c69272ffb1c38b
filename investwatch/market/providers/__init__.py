# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""Per-asset-class services over the resilient fetch client."""

from investwatch.market.providers.base import AssetServiceInterface
from investwatch.market.providers.crypto_provider import CryptoService
from investwatch.market.providers.forex_provider import ForexService
from investwatch.market.providers.stock_provider import StockQuote, StockService

__all__ = [
    "AssetServiceInterface",
    "CryptoService",
    "ForexService",
    "StockQuote",
    "StockService",
]
