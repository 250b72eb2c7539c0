"""Typed, TTL-bounded read-through cache for engine lookups.

Values are dumped to JSON-compatible data through a per-kind pydantic
TypeAdapter before they reach the backend and validated back on read, so the
in-memory and Redis backends behave the same and callers always receive a
fresh copy.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from taskflow.application.dtos.custom_field import CustomFieldValueRecord
from taskflow.application.dtos.project import ProjectRecord
from taskflow.application.dtos.task import TaskRecord
from taskflow.application.dtos.user import UserProfile
from taskflow.core.constants import (
    CACHE_KIND_CUSTOM_FIELD_VALUE,
    CACHE_KIND_PROJECT,
    CACHE_KIND_TASK,
    CACHE_KIND_USER,
    CACHE_KIND_WORKFLOWS,
    CACHE_PREFIX_ENTITY,
)
from taskflow.domain.entities.workflow import WorkflowDefinition
from taskflow.infrastructure.cache.cache_protocol import CacheProtocol
from taskflow.infrastructure.cache.keys import entity_key, kind_pattern, namespace_pattern
from taskflow.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_ADAPTERS: dict[str, TypeAdapter[Any]] = {
    CACHE_KIND_TASK: TypeAdapter(TaskRecord),
    CACHE_KIND_PROJECT: TypeAdapter(ProjectRecord),
    CACHE_KIND_USER: TypeAdapter(UserProfile),
    CACHE_KIND_CUSTOM_FIELD_VALUE: TypeAdapter(CustomFieldValueRecord),
    CACHE_KIND_WORKFLOWS: TypeAdapter(list[WorkflowDefinition]),
}


class EntityCache:
    """Namespaced cache of engine entities keyed by (kind, id parts)."""

    def __init__(
        self,
        backend: CacheProtocol,
        ttl_seconds: int = 300,
        namespace: str = CACHE_PREFIX_ENTITY,
    ) -> None:
        """Initialize the cache.

        Args:
            backend: Storage backend (in-memory or Redis).
            ttl_seconds: Lifetime of each entry.
            namespace: Key prefix separating independent caches on one backend.
        """
        self.backend = backend
        self.ttl_seconds = ttl_seconds
        self.namespace = namespace

    def _adapter(self, kind: str) -> TypeAdapter[Any]:
        try:
            return _ADAPTERS[kind]
        except KeyError:
            raise ValueError(f"Unknown cache kind: {kind!r}") from None

    async def get(self, kind: str, *id_parts: str) -> Any | None:
        """Return the cached value or None on miss, expiry or a corrupt entry."""
        adapter = self._adapter(kind)
        key = entity_key(self.namespace, kind, *id_parts)
        raw = await self.backend.get(key)
        if raw is None:
            return None
        try:
            return adapter.validate_python(raw)
        except ValidationError:
            logger.warning("Dropping unreadable cache entry %s", key)
            await self.backend.delete(key)
            return None

    async def put(self, kind: str, *id_parts: str, value: Any) -> None:
        """Store value for (kind, id parts) with the configured TTL."""
        adapter = self._adapter(kind)
        key = entity_key(self.namespace, kind, *id_parts)
        await self.backend.set(
            key, adapter.dump_python(value, mode="json"), ttl=self.ttl_seconds
        )

    async def invalidate(self, kind: str, *id_parts: str) -> None:
        """Drop one entry, or every entry of kind when no id parts are given."""
        if id_parts:
            await self.backend.delete(entity_key(self.namespace, kind, *id_parts))
        else:
            await self.backend.delete_pattern(kind_pattern(self.namespace, kind))

    async def invalidate_all(self) -> int:
        """Drop every entry of this namespace."""
        return await self.backend.delete_pattern(namespace_pattern(self.namespace))

    async def get_or_load(
        self,
        kind: str,
        *id_parts: str,
        loader: Callable[[], Awaitable[T | None]],
    ) -> T | None:
        """Return the cached value or load, cache (when not None) and return it.

        Loader exceptions propagate; the caller decides how to degrade.
        """
        value = await self.get(kind, *id_parts)
        if value is not None:
            return value
        value = await loader()
        if value is not None:
            await self.put(kind, *id_parts, value=value)
        return value
