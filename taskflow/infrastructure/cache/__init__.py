"""Cache: backends (in-memory, Redis), key builders and the typed entity cache.

Key format is in keys.py (DRY). Two EntityCache instances are built per
process: entities and active workflows by trigger type.
"""

from taskflow.infrastructure.cache.cache_protocol import CacheProtocol
from taskflow.infrastructure.cache.entity_cache import EntityCache
from taskflow.infrastructure.cache.keys import entity_key, kind_pattern, namespace_pattern
from taskflow.infrastructure.cache.memory_cache import InMemoryCacheBackend
from taskflow.infrastructure.cache.redis_cache import RedisCacheBackend

__all__ = [
    "CacheProtocol",
    "EntityCache",
    "InMemoryCacheBackend",
    "RedisCacheBackend",
    "entity_key",
    "kind_pattern",
    "namespace_pattern",
]
