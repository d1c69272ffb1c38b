# Copyright 2026 InvestWatch
# SPDX-License-Identifier: MIT
"""Credential resolution: session override > env > built-in default, at call time."""

from __future__ import annotations

from investwatch.core.config.credentials import ALPHA_VANTAGE, EXCHANGE_RATE, mask_key


def test_defaults_without_env(credentials):
    assert credentials.resolve(ALPHA_VANTAGE) == "demo"
    assert credentials.resolve(EXCHANGE_RATE) == ""
    assert credentials.source(ALPHA_VANTAGE) == "default"
    assert credentials.source(EXCHANGE_RATE) == "none"


def test_env_read_at_call_time(credentials, monkeypatch):
    assert credentials.resolve(EXCHANGE_RATE) == ""
    monkeypatch.setenv("EXCHANGE_RATE_API_KEY", "envkey")
    assert credentials.resolve(EXCHANGE_RATE) == "envkey"
    assert credentials.source(EXCHANGE_RATE) == "env"


def test_session_override_wins_and_clears(credentials, monkeypatch):
    monkeypatch.setenv("ALPHA_VANTAGE_API_KEY", "envkey")
    credentials.set_override(ALPHA_VANTAGE, "sessionkey")
    assert credentials.resolve(ALPHA_VANTAGE) == "sessionkey"
    assert credentials.session_store.get_item("api_key_alphavantage") == "sessionkey"
    credentials.set_override(ALPHA_VANTAGE, "  ")
    assert credentials.resolve(ALPHA_VANTAGE) == "envkey"


def test_clear_all_overrides(credentials):
    credentials.set_override(ALPHA_VANTAGE, "a")
    credentials.set_override(EXCHANGE_RATE, "b")
    credentials.clear_override()
    assert credentials.resolve(ALPHA_VANTAGE) == "demo"
    assert credentials.resolve(EXCHANGE_RATE) == ""


def test_snapshot_is_masked(credentials):
    credentials.set_override(EXCHANGE_RATE, "abcdef123456")
    snap = credentials.snapshot()
    assert snap[EXCHANGE_RATE] == {"source": "session", "value": "********3456"}
    assert "abcdef123456" not in str(snap)


def test_mask_key():
    assert mask_key("") == ""
    assert mask_key("abc") == "***"
    assert mask_key("abcdefgh") == "****efgh"
