# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""Asset service interface shared by the crypto, stock and forex providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Tuple

from investwatch.core.config.credentials import CredentialResolver
from investwatch.core.settings import ProviderConfig
from investwatch.market.endpoints import Endpoint, standard_chain
from investwatch.market.fallback_data import FALLBACK, FallbackDataset
from investwatch.market.resilient_client import ResilientFetchClient


class AssetServiceInterface(ABC):
    """One upstream market data source behind the resilient client.

    Operations never raise on upstream failure; they return fallback data and
    report through the optional ``status`` sink.
    """

    name = "asset"

    def __init__(
        self,
        client: ResilientFetchClient,
        config: ProviderConfig,
        credentials: Optional[CredentialResolver] = None,
        fallback: Optional[FallbackDataset] = None,
    ) -> None:
        self.client = client
        self.config = config
        self.credentials = credentials or CredentialResolver()
        self.fallback = fallback or FALLBACK

    def endpoints(self) -> List[Endpoint]:
        return standard_chain(self.config)

    def _fetch(
        self,
        path: str,
        params: dict,
        fallback: Callable[[], Any],
        status: Any = None,
        advisory: str = "",
        **kwargs: Any,
    ) -> Any:
        return self.client.fetch(
            self.config.primary,
            path,
            params,
            self.endpoints(),
            fallback,
            status=status,
            advisory=advisory,
            **kwargs,
        )

    @abstractmethod
    def health_check(self) -> Tuple[bool, str]:
        """Check if the provider serves live data. Do not raise.

        Returns:
            (ok, detail): ok True if live data came back, detail short message for UI/log.
        """
        ...


__all__ = ["AssetServiceInterface"]
