"""Redis cache backend shared by all workers.

Entries are JSON strings with a TTL. A dead Redis is never fatal: every
operation reconnects once and otherwise reports a miss, so EntityCache falls
through to the repositories.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import redis.asyncio as redis

from taskflow.core.config import Settings, get_settings
from taskflow.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

R = TypeVar("R")

# Keys removed per UNLINK round trip during pattern invalidation
_UNLINK_BATCH = 500
_TRANSIENT_ERRORS = (redis.ConnectionError, redis.TimeoutError)


class RedisCacheBackend:
    """CacheProtocol over redis.asyncio.

    The lifespan calls connect() on startup and disconnect() on shutdown. A
    client passed in directly (tests) counts as connected.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.redis = redis_client
        self.settings = settings or get_settings()
        self._connected = redis_client is not None

    def _new_client(self) -> redis.Redis:
        password = self.settings.redis_password
        return redis.Redis(
            host=self.settings.redis_host,
            port=self.settings.redis_port,
            db=self.settings.redis_db,
            password=password.get_secret_value() if password else None,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_keepalive=True,
        )

    async def connect(self) -> None:
        if self.redis is not None:
            return
        client = self._new_client()
        try:
            await client.ping()
        except _TRANSIENT_ERRORS as e:
            logger.warning(
                "Redis at %s:%s unreachable (%s); workflow cache disabled",
                self.settings.redis_host,
                self.settings.redis_port,
                e,
            )
            self._connected = False
            return
        self.redis = client
        self._connected = True
        logger.info(
            "Workflow cache using Redis %s:%s db=%s",
            self.settings.redis_host,
            self.settings.redis_port,
            self.settings.redis_db,
        )

    async def disconnect(self) -> None:
        if self.redis is None:
            return
        await self.redis.aclose()
        self.redis = None
        self._connected = False
        logger.info("Workflow cache disconnected from Redis")

    async def _reconnect(self) -> bool:
        if self.redis is not None:
            try:
                await self.redis.aclose()
            except redis.RedisError:
                logger.debug("Stale Redis client failed to close")
        self.redis = None
        self._connected = False
        await self.connect()
        return self._connected

    def is_available(self) -> bool:
        return self._connected and self.redis is not None

    async def _run(
        self,
        op: str,
        target: str,
        call: Callable[[redis.Redis], Awaitable[R]],
        fallback: R,
    ) -> R:
        """Run call against the client, retrying once after a reconnect.

        Any Redis failure yields fallback; the caller treats it as a miss.
        """
        if not self.is_available() or self.redis is None:
            return fallback
        try:
            return await call(self.redis)
        except _TRANSIENT_ERRORS:
            if not await self._reconnect() or self.redis is None:
                logger.warning("Cache %s skipped for %s: Redis disconnected", op, target)
                return fallback
        except redis.RedisError:
            logger.exception("Cache %s failed for %s", op, target)
            return fallback
        try:
            return await call(self.redis)
        except redis.RedisError:
            logger.exception("Cache %s failed for %s after reconnect", op, target)
            return fallback

    async def get(self, key: str) -> Any | None:
        raw = await self._run("get", key, lambda client: client.get(key), None)
        if raw is None:
            logger.debug("Cache miss %s", key)
            return None
        logger.debug("Cache hit %s", key)
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        payload = json.dumps(value)

        async def _setex(client: redis.Redis) -> bool:
            await client.setex(key, ttl, payload)
            return True

        stored = await self._run("set", key, _setex, False)
        if stored:
            logger.debug("Cache set %s ttl=%ss", key, ttl)
        return stored

    async def delete(self, key: str) -> bool:
        async def _delete(client: redis.Redis) -> bool:
            await client.delete(key)
            return True

        return await self._run("delete", key, _delete, False)

    async def delete_pattern(self, pattern: str) -> int:
        """SCAN for pattern and UNLINK the matches in batches; returns keys removed."""

        async def _sweep(client: redis.Redis) -> int:
            removed = 0
            batch: list[str] = []
            async for key in client.scan_iter(match=pattern):
                batch.append(key)
                if len(batch) >= _UNLINK_BATCH:
                    removed += await client.unlink(*batch)
                    batch = []
            if batch:
                removed += await client.unlink(*batch)
            return removed

        removed = await self._run("invalidate", pattern, _sweep, 0)
        if removed:
            logger.info("Cache invalidated %s (%s keys)", pattern, removed)
        return removed
