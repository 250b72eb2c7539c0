"""In-process cache backend with per-key expiry.

Default backend: each process keeps its own copy, so entries are eventually
consistent across workers (bounded by the TTL).
"""

from __future__ import annotations

import time
from collections.abc import Callable
from fnmatch import fnmatchcase
from typing import Any

from taskflow.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class InMemoryCacheBackend:
    """Dict-backed cache with TTL. Implements CacheProtocol."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize an empty cache.

        Args:
            clock: Monotonic seconds source (injectable for tests).
        """
        self._entries: dict[str, tuple[float, Any]] = {}
        self._clock = clock

    def is_available(self) -> bool:
        return True

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            logger.debug("Cache MISS: %s", key)
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            logger.debug("Cache EXPIRED: %s", key)
            return None
        logger.debug("Cache HIT: %s", key)
        return value

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        self._entries[key] = (self._clock() + ttl, value)
        logger.debug("Cache SET: %s (TTL: %ss)", key, ttl)
        return True

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def delete_pattern(self, pattern: str) -> int:
        keys = [k for k in self._entries if fnmatchcase(k, pattern)]
        for key in keys:
            del self._entries[key]
        if keys:
            logger.debug("Cache INVALIDATE: %s (%s keys)", pattern, len(keys))
        return len(keys)

    def __len__(self) -> int:
        return len(self._entries)
