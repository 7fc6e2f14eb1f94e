"""Shared fixtures: fake clock, cache store and configurable stub sources."""

import asyncio
import copy
from typing import Any, Optional

import httpx
import pytest

from topicfeed.config.settings import APIConfig, CacheConfig, Config, HTTPConfig, SystemConfig
from topicfeed.data.base import Priority, Source, SourceDescriptor
from topicfeed.data.cache import CacheStore
from topicfeed.utils.rate_limiter import RateLimitBudget


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class StubSource(Source):
    """Source whose fetch() returns a canned payload or raises a canned error."""

    def __init__(
        self,
        name: str,
        priority: Priority = Priority.PRIMARY,
        payload: Any = None,
        error: Optional[Exception] = None,
        fresh_ttl: float = 300,
        stale_ttl: float = 3600,
        max_requests: int = 10,
        delay: float = 0.0,
        **kwargs
    ):
        super().__init__(SourceDescriptor(
            name=name,
            priority=priority,
            fresh_ttl=fresh_ttl,
            stale_ttl=stale_ttl,
            rate_limit=RateLimitBudget(max_requests=max_requests, window_seconds=60)
        ), **kwargs)
        self.payload = payload
        self.error = error
        self.delay = delay
        self.calls = 0

    async def fetch(self, topic: str):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return copy.deepcopy(self.payload)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return CacheStore(clock=clock)


@pytest.fixture
def config(tmp_path):
    """Isolated configuration that never touches the real environment."""
    return Config(
        api=APIConfig(),
        http=HTTPConfig(timeout_seconds=5.0, user_agent="topicfeed-tests"),
        cache=CacheConfig(persist=False, snapshot_file=tmp_path / "snapshot.json"),
        system=SystemConfig(project_root=tmp_path)
    )


@pytest.fixture
def make_source(clock, config):
    """Factory for stub sources sharing the test clock and config."""
    def _make(name: str, **kwargs) -> StubSource:
        kwargs.setdefault('clock', clock)
        kwargs.setdefault('config', config)
        return StubSource(name, **kwargs)
    return _make


@pytest.fixture
def mock_client():
    """Factory for AsyncClients that answer every request through a handler."""
    def _client(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return _client
