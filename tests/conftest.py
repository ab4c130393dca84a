"""
Pytest configuration and fixtures for cache controller tests.
"""

from __future__ import annotations

from typing import Generator

import pytest

from fakes import ORIGIN, FakeClock, FakeFetcher
from sw.cache.memory import InMemoryCacheStorage
from sw.config import Settings, clear_settings_cache
from sw.context import RuntimeContext


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Automatically reset settings cache before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings() -> Settings:
    """Default settings on the test origin, ignoring any .env file."""
    return Settings(_env_file=None, ORIGIN=ORIGIN, CACHE_VERSION="wedding-v2")


@pytest.fixture
def fetcher() -> FakeFetcher:
    """Network serving the shell assets."""
    fake = FakeFetcher()
    fake.serve("/", "<html>root</html>")
    fake.serve("/index.html", "<html>index</html>")
    fake.serve("/config.yaml", "couple: A & B\n")
    fake.serve("/sw.js", "// worker")
    return fake


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage() -> InMemoryCacheStorage:
    return InMemoryCacheStorage()


@pytest.fixture
def ctx(
    settings: Settings,
    storage: InMemoryCacheStorage,
    fetcher: FakeFetcher,
    clock: FakeClock,
) -> RuntimeContext:
    """Runtime context over in-memory storage and the fake network."""
    return RuntimeContext(settings=settings, storage=storage, fetcher=fetcher, clock=clock)
