# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""Configuration package for InvestWatch.

- credentials: provider API key resolution (session override > env > default)

Typed settings loaded from config.yaml live in investwatch.core.settings.
"""

from __future__ import annotations

from . import credentials  # noqa: F401

__all__ = ["credentials"]
