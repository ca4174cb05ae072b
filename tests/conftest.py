"""Shared fixtures: every test starts from default settings."""

import os

import pytest

from ptacore.config import get_settings
from ptacore.models.currency import get_currency_registry


@pytest.fixture(autouse=True)
def default_settings(monkeypatch):
    """Drop PTA_* overrides from the environment and reset cached settings."""
    for name in list(os.environ):
        if name.startswith("PTA_"):
            monkeypatch.delenv(name)

    get_settings.cache_clear()
    get_currency_registry.cache_clear()
    yield
    get_settings.cache_clear()
    get_currency_registry.cache_clear()
