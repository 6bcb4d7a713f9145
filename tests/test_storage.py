from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from kvsession.modules.storage import (
    MemoryStore,
    NotFoundError,
    RedisStore,
    StorageModule,
    StoreError,
)


@pytest.fixture
def redis_store(mock_redis):
    return RedisStore(mock_redis)


@pytest.mark.asyncio
async def test_redis_set_uses_setex(redis_store, mock_redis):
    await redis_store.set("session:abc", "123", 86400)

    mock_redis.setex.assert_called_once_with("session:abc", 86400, "123")


@pytest.mark.asyncio
async def test_redis_get_returns_value(redis_store, mock_redis):
    mock_redis.get.return_value = "3 items"

    assert await redis_store.get("session:abc:key:cart") == "3 items"
    mock_redis.get.assert_called_once_with("session:abc:key:cart")


@pytest.mark.asyncio
async def test_redis_get_decodes_bytes(redis_store, mock_redis):
    mock_redis.get.return_value = "café".encode("utf-8")

    assert await redis_store.get("k") == "café"


@pytest.mark.asyncio
async def test_redis_get_missing_raises_not_found(redis_store, mock_redis):
    mock_redis.get.return_value = None

    with pytest.raises(NotFoundError) as exc_info:
        await redis_store.get("session:abc:last")
    assert exc_info.value.key == "session:abc:last"


@pytest.mark.asyncio
async def test_redis_delete_many(redis_store, mock_redis):
    await redis_store.delete("a", "b", "c")

    mock_redis.delete.assert_called_once_with("a", "b", "c")


@pytest.mark.asyncio
async def test_redis_delete_nothing_skips_call(redis_store, mock_redis):
    await redis_store.delete()

    mock_redis.delete.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("operation, args", [
    ("set", ("k", "v", 10)),
    ("get", ("k",)),
    ("delete", ("k",)),
])
async def test_redis_errors_become_store_errors(redis_store, mock_redis, operation, args):
    failure = RedisConnectionError("connection refused")
    mock_redis.setex.side_effect = failure
    mock_redis.get.side_effect = failure
    mock_redis.delete.side_effect = failure

    with pytest.raises(StoreError) as exc_info:
        await getattr(redis_store, operation)(*args)
    assert exc_info.value.__cause__ is failure


@pytest.mark.asyncio
async def test_memory_store_round_trip(memory_store):
    await memory_store.set("k", "v", 10)

    assert await memory_store.get("k") == "v"
    assert "k" in memory_store


@pytest.mark.asyncio
async def test_memory_store_overwrite_resets_ttl(memory_store, clock):
    await memory_store.set("k", "v1", 10)
    clock.advance(8)
    await memory_store.set("k", "v2", 10)
    clock.advance(8)

    assert await memory_store.get("k") == "v2"


@pytest.mark.asyncio
async def test_memory_store_expires_entries(memory_store, clock):
    await memory_store.set("k", "v", 10)

    clock.advance(10)

    with pytest.raises(NotFoundError):
        await memory_store.get("k")
    assert len(memory_store) == 0


@pytest.mark.asyncio
async def test_memory_store_write_sweeps_expired_entries(memory_store, clock):
    """Test entries that are never read again do not pile up."""
    for i in range(1000):
        await memory_store.set(f"session:{i}", "1", 10)
    await memory_store.set("long-lived", "v", 100)

    clock.advance(11)
    await memory_store.set("fresh", "v", 10)

    assert len(memory_store._data) == len(memory_store) == 2
    assert "long-lived" in memory_store
    assert "session:0" not in memory_store._data


@pytest.mark.asyncio
async def test_memory_store_delete_ignores_missing(memory_store):
    await memory_store.set("a", "1", 10)

    await memory_store.delete("a", "missing")

    assert len(memory_store) == 0


@pytest.mark.asyncio
async def test_memory_store_missing_key(memory_store):
    with pytest.raises(NotFoundError):
        await memory_store.get("missing")


@pytest.mark.asyncio
async def test_storage_module_reuses_client(mock_redis):
    with patch("kvsession.modules.storage.redis.from_url", return_value=mock_redis) as from_url:
        storage = StorageModule(host="redis", port=6380, db=2, password="pw")

        first = await storage.connect()
        second = await storage.connect()

    assert first is second is mock_redis
    from_url.assert_called_once_with(
        "redis://redis:6380/2", password="pw", encoding="utf-8", decode_responses=True
    )


@pytest.mark.asyncio
async def test_storage_module_creates_store_and_disconnects(mock_redis):
    with patch("kvsession.modules.storage.redis.from_url", return_value=mock_redis):
        storage = StorageModule()
        store = await storage.create_store()

    assert isinstance(store, RedisStore)
    assert store.redis is mock_redis

    await storage.disconnect()
    mock_redis.aclose.assert_awaited_once()

    # Second disconnect is a no-op
    await storage.disconnect()
    mock_redis.aclose.assert_awaited_once()
