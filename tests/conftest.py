"""Pytest fixtures for dotdotdot tests."""

import os

import pytest

from dotdotdot.store.memory import InMemoryStore


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Set up test environment variables before any imports.

    Ensures Settings never picks up a developer's summarizer key or a
    Redis backend while tests run.
    """
    os.environ.setdefault("ENVIRONMENT", "test")
    os.environ.setdefault("KV_BACKEND", "memory")
    os.environ.setdefault("CSRF_SECRET", "test-csrf-secret")

    from dotdotdot.config import get_settings

    get_settings.cache_clear()

    yield

    get_settings.cache_clear()


@pytest.fixture
def clock() -> FakeClock:
    """A fake clock shared by the store and the component under test."""
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> InMemoryStore:
    """In-memory store driven by the fake clock."""
    return InMemoryStore(key_prefix="test", clock=clock)
