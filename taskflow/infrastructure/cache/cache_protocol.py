"""What EntityCache needs from a storage backend."""

from typing import Any, Protocol


class CacheProtocol(Protocol):
    """JSON-value store with per-entry TTL.

    Backends never raise for availability problems: reads report a miss and
    writes return False, so callers fall back to the repositories.
    """

    def is_available(self) -> bool: ...

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool: ...

    async def delete(self, key: str) -> bool: ...

    async def delete_pattern(self, pattern: str) -> int:
        """Remove every key matching a glob pattern; returns the count removed."""
        ...
