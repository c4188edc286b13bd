import asyncio
import os
from pathlib import Path
from typing import Any, Dict, Optional

import pytest
from typer.testing import CliRunner

from throughcache.core.cache_manager import CacheManager
from throughcache.infrastructure.backing.in_memory_source import InMemoryBackingSource
from throughcache.infrastructure.cli.display import ConsoleDisplay
from throughcache.infrastructure.config import settings


class ManualClock:
    """Deterministic clock for TTL tests."""
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class BlockingSource(InMemoryBackingSource):
    """In-memory source whose fetches read the value, then wait for ``release``.

    Must be created inside a running event loop.
    """
    def __init__(self, initial: Optional[Dict[Any, Any]] = None):
        super().__init__(initial)
        self.fetch_started = asyncio.Event()
        self.release = asyncio.Event()

    async def fetch(self, key):
        value = await super().fetch(key)
        self.fetch_started.set()
        await self.release.wait()
        return value


@pytest.fixture
def clock():
    return ManualClock()

@pytest.fixture
def source():
    """Backing source pre-populated with a few records."""
    return InMemoryBackingSource({"a": "alpha", "b": "beta", "c": "gamma", 1: "one", 2: "two"})

@pytest.fixture
def make_manager(source):
    """Factory building a CacheManager over the shared in-memory source."""
    def _make(capacity: int = 4, **kwargs: Any) -> CacheManager:
        return CacheManager(kwargs.pop("backing", source), capacity=capacity, **kwargs)
    return _make

@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path: Path):
    """Keeps user configuration, .env files and THROUGHCACHE_* variables out of tests."""
    for name in list(os.environ):
        if name.startswith(settings.ENV_PREFIX):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    settings.reset_configuration()
    yield
    settings.reset_configuration()

@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()

@pytest.fixture
def mock_console_display(mocker):
    """Mocks the ConsoleDisplay used by the CLI to capture output easily."""
    mock = mocker.MagicMock(spec=ConsoleDisplay)
    mocker.patch('throughcache.main.ConsoleDisplay', return_value=mock)
    return mock

@pytest.fixture
def cli_env(tmp_path: Path):
    """Paths for an isolated CLI run: a store file and a non-existent config file."""
    return {
        "store": tmp_path / "store.json",
        "config": tmp_path / "missing-config.yaml",
    }

@pytest.fixture
def blocking_source_cls():
    """The BlockingSource class; instantiate it inside the event loop."""
    return BlockingSource
