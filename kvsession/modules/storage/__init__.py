"""
Storage Module - Black Box Interface

Purpose: Abstract all data persistence
Interface: SessionStore (set(), get(), delete()), get_redis_client()
Hidden: Redis specifics, connection pooling, expiry bookkeeping

Can be replaced with any storage backend without affecting other modules.
"""

import logging
from typing import Optional

import redis.asyncio as redis

from .errors import NotFoundError, StoreError
from .store import MemoryStore, RedisStore, SessionStore

logger = logging.getLogger(__name__)


class StorageModule:
    """Owns the shared Redis connection used by RedisStore."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
    ):
        """Initialize storage with connection settings."""
        # Password is passed separately to avoid URL encoding issues
        self.url = f"redis://{host}:{port}/{db}"
        self.password = password
        self._client: Optional[redis.Redis] = None

    async def connect(self) -> redis.Redis:
        """Get storage connection."""
        if not self._client:
            logger.info(f"Connecting to Redis at {self.url}")
            self._client = redis.from_url(
                self.url,
                password=self.password,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    async def create_store(self) -> RedisStore:
        """Build a RedisStore on top of the shared connection."""
        return RedisStore(await self.connect())

    async def disconnect(self) -> None:
        """Close storage connection."""
        if self._client:
            await self._client.aclose()
            self._client = None


__all__ = [
    "StorageModule",
    "SessionStore",
    "RedisStore",
    "MemoryStore",
    "StoreError",
    "NotFoundError",
]
