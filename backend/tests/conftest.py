"""Shared fixtures: isolated settings per test."""

from __future__ import annotations

import pytest

from signalscope.config import get_settings


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Settings are lru_cached; drop the cache around every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Point DATA_DIR at an empty temp directory."""
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.setenv("DEFAULT_TICKER", "TQQQ")
    get_settings.cache_clear()
    return tmp_path
