"""
Shared test fixtures.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from html_showing.app import create_app
from html_showing.config import PreviewConfig
from html_showing.store import MemoryKVStore


class FakeClock:
    """Settable UTC clock for deterministic timestamps."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def config():
    return PreviewConfig()


@pytest.fixture
def store():
    return MemoryKVStore()


@pytest.fixture
def client(config, store, clock):
    """Test client against an app backed by an in-memory store."""
    app = create_app(config=config, store=store, clock=clock)
    return TestClient(app)
