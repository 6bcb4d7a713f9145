"""
Shared pytest fixtures for kvsession tests.

This module provides common fixtures including:
- FakeClock: controllable epoch clock for timeout tests
- In-memory store and signed cookie carrier
- Redis mocks for store adapter tests
"""

import os
import sys
from unittest.mock import AsyncMock

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from kvsession.modules.carrier import SignedCookieCarrier
from kvsession.modules.session import SessionModule
from kvsession.modules.storage import MemoryStore

# HS256 keys shorter than 32 bytes trigger PyJWT warnings
SECRET = "test-secret-key-that-is-long-enough-for-hs256"
TIMEOUT = 3600
EXPIRATION = 86400


class FakeClock:
    """Epoch clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store(clock):
    return MemoryStore(clock=clock)


@pytest.fixture
def carrier():
    return SignedCookieCarrier({}, SECRET)


@pytest.fixture
def make_session(memory_store, clock):
    """
    Factory for sessions sharing one store and clock.

    Each call simulates a different client unless a carrier is passed in.
    """

    def _make(carrier=None, **kwargs):
        kwargs.setdefault("timeout", TIMEOUT)
        kwargs.setdefault("expiration", EXPIRATION)
        return SessionModule(
            carrier or SignedCookieCarrier({}, SECRET),
            memory_store,
            clock=clock,
            **kwargs,
        )

    return _make


@pytest.fixture
def session(make_session, carrier):
    return make_session(carrier)


# =============================================================================
# Redis Mocking Infrastructure
# =============================================================================

@pytest.fixture
def mock_redis():
    """Create a mock async Redis client."""
    redis = AsyncMock()
    redis.setex = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.delete = AsyncMock(return_value=1)
    redis.aclose = AsyncMock()
    return redis
