"""RedisCacheBackend against a mocked redis.asyncio client."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
import redis.asyncio as redis

from taskflow.infrastructure.cache.redis_cache import RedisCacheBackend


def _client() -> MagicMock:
    client = MagicMock()
    client.get = AsyncMock(return_value=None)
    client.setex = AsyncMock(return_value=True)
    client.delete = AsyncMock(return_value=1)
    client.unlink = AsyncMock(side_effect=lambda *keys: len(keys))
    client.aclose = AsyncMock()
    return client


async def _scan(keys):
    for key in keys:
        yield key


async def test_get_decodes_json(settings):
    """Stored JSON strings come back as Python values."""
    client = _client()
    client.get.return_value = json.dumps({"id": "task-1"})
    backend = RedisCacheBackend(redis_client=client, settings=settings)

    assert await backend.get("taskflow:entity:task:task-1") == {"id": "task-1"}


async def test_missing_key_is_none(settings):
    """A missing key reads as None."""
    backend = RedisCacheBackend(redis_client=_client(), settings=settings)
    assert await backend.get("nope") is None


async def test_set_serializes_with_ttl(settings):
    """set() stores JSON with SETEX and the given TTL."""
    client = _client()
    backend = RedisCacheBackend(redis_client=client, settings=settings)

    assert await backend.set("k", [1, 2], ttl=60) is True
    client.setex.assert_awaited_once_with("k", 60, "[1, 2]")


async def test_redis_error_is_a_miss(settings):
    """Non-connection Redis errors degrade to a miss without raising."""
    client = _client()
    client.get.side_effect = redis.ResponseError("WRONGTYPE")
    client.setex.side_effect = redis.ResponseError("OOM")
    backend = RedisCacheBackend(redis_client=client, settings=settings)

    assert await backend.get("k") is None
    assert await backend.set("k", 1) is False


async def test_connection_loss_without_reconnect_is_a_miss(settings, monkeypatch):
    """When reconnecting fails the backend reports a miss and becomes unavailable."""
    client = _client()
    client.get.side_effect = redis.ConnectionError("gone")
    backend = RedisCacheBackend(redis_client=client, settings=settings)
    monkeypatch.setattr(backend, "connect", AsyncMock())

    assert await backend.get("k") is None
    assert backend.is_available() is False
    client.aclose.assert_awaited_once()


async def test_unavailable_backend_skips_redis(settings):
    """Without a client nothing is sent and the fallbacks are returned."""
    backend = RedisCacheBackend(settings=settings)

    assert backend.is_available() is False
    assert await backend.get("k") is None
    assert await backend.set("k", 1) is False
    assert await backend.delete("k") is False
    assert await backend.delete_pattern("taskflow:*") == 0


async def test_delete_pattern_unlinks_in_batches(settings, monkeypatch):
    """Matches are unlinked in batches and the total is returned."""
    monkeypatch.setattr("taskflow.infrastructure.cache.redis_cache._UNLINK_BATCH", 2)
    client = _client()
    client.scan_iter = MagicMock(return_value=_scan(["a", "b", "c"]))
    backend = RedisCacheBackend(redis_client=client, settings=settings)

    assert await backend.delete_pattern("taskflow:entity:task:*") == 3
    assert client.unlink.await_count == 2
    client.scan_iter.assert_called_once_with(match="taskflow:entity:task:*")


async def test_disconnect_closes_client(settings):
    """disconnect() closes the client and marks the backend unavailable."""
    client = _client()
    backend = RedisCacheBackend(redis_client=client, settings=settings)

    await backend.disconnect()

    client.aclose.assert_awaited_once()
    assert backend.is_available() is False
