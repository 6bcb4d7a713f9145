"""
Store adapters implementing the set/get/delete-many contract.

The session module only talks to the SessionStore protocol below, so any
backend that can set a string with an expiry, read it back and delete a batch
of keys can be dropped in.
"""

import threading
import time
from typing import Callable, Dict, Protocol, Tuple

import redis.asyncio as redis
from redis.exceptions import RedisError

from .errors import NotFoundError, StoreError


class SessionStore(Protocol):
    """Protocol for key-value backends used by the session module."""

    async def set(self, key: str, value: str, ttl: int) -> None:
        """
        Write value under key, expiring ttl seconds from now.

        Overwrites any prior value and resets its TTL.

        Raises:
            StoreError: If the backend cannot be reached
        """
        ...

    async def get(self, key: str) -> str:
        """
        Read the current value of key.

        Raises:
            NotFoundError: If the key is absent or expired
            StoreError: If the backend cannot be reached
        """
        ...

    async def delete(self, *keys: str) -> None:
        """Remove keys. Absent keys are not an error."""
        ...


class RedisStore:
    """SessionStore backed by an async Redis client."""

    def __init__(self, redis_client: redis.Redis):
        """
        Initialize Redis store.

        Args:
            redis_client: Async Redis client, shared across requests
        """
        self.redis = redis_client

    async def set(self, key: str, value: str, ttl: int) -> None:
        try:
            await self.redis.setex(key, ttl, value)
        except RedisError as e:
            raise StoreError(f"Failed to set {key}: {e}") from e

    async def get(self, key: str) -> str:
        try:
            value = await self.redis.get(key)
        except RedisError as e:
            raise StoreError(f"Failed to get {key}: {e}") from e

        if value is None:
            raise NotFoundError(key)

        # Clients created without decode_responses hand back bytes
        if isinstance(value, bytes):
            try:
                value = value.decode("utf-8")
            except UnicodeDecodeError as e:
                raise StoreError(f"Value under {key} is not valid UTF-8") from e

        return value

    async def delete(self, *keys: str) -> None:
        if not keys:
            return

        try:
            await self.redis.delete(*keys)
        except RedisError as e:
            raise StoreError(f"Failed to delete {len(keys)} keys: {e}") from e


class MemoryStore:
    """
    Process-local SessionStore with TTL semantics.

    Suitable for development and tests only: entries are lost on restart and
    are not shared between processes. Expired entries are dropped when read
    and swept from the whole store on every write, so abandoned sessions do
    not accumulate.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        """
        Initialize memory store.

        Args:
            clock: Returns the current epoch time in seconds
        """
        self.clock = clock
        self._lock = threading.Lock()
        self._data: Dict[str, Tuple[str, float]] = {}

    async def set(self, key: str, value: str, ttl: int) -> None:
        now = self.clock()
        with self._lock:
            self._evict_expired(now)
            self._data[key] = (value, now + ttl)

    async def get(self, key: str) -> str:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                raise NotFoundError(key)

            value, expires_at = entry
            if expires_at <= self.clock():
                del self._data[key]
                raise NotFoundError(key)

            return value

    async def delete(self, *keys: str) -> None:
        with self._lock:
            for key in keys:
                self._data.pop(key, None)

    def _evict_expired(self, now: float) -> None:
        # Caller holds the lock
        expired = [key for key, (_, expires_at) in self._data.items() if expires_at <= now]
        for key in expired:
            del self._data[key]

    def __len__(self) -> int:
        """Number of live entries."""
        now = self.clock()
        with self._lock:
            return sum(1 for _, expires_at in self._data.values() if expires_at > now)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._data.get(key)
        return entry is not None and entry[1] > self.clock()
