"""Shared pytest configuration."""

import os

import pytest

from finance_engine.config import get_settings


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Each test sees default settings unless it sets env vars itself."""
    for name in list(os.environ):
        if name.startswith(("SETTLEMENT_", "BUDGET_", "ANALYTICS_")):
            monkeypatch.delenv(name, raising=False)
    for name in ("REPORTING_CURRENCY", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
