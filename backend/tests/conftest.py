"""Pytest configuration and fixtures."""

import pytest


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep feed and credential variables from the host out of every test."""
    for name in ("PRICE_FEED", "SIMULATOR_INTERVAL", "BINANCE_WS_URL", "AIRTABLE_TOKEN", "AIRTABLE_BASE_ID"):
        monkeypatch.delenv(name, raising=False)
