"""Cache key builders. Single place for key format (DRY).

Key components (kind, entity ids, trigger types) must not contain
CACHE_KEY_SEP to avoid ambiguous or colliding keys.
"""

from taskflow.core.constants import CACHE_KEY_SEP


def _validate_key_component(value: str, name: str) -> None:
    """Raise ValueError if value is empty or contains the cache key separator.

    Args:
        value: String component used in a cache key.
        name: Name of the component (for error message).

    Raises:
        ValueError: If value is empty or contains CACHE_KEY_SEP.
    """
    if not value:
        raise ValueError(f"Cache key component {name!r} must not be empty")
    if CACHE_KEY_SEP in value:
        raise ValueError(
            f"Cache key component {name!r} must not contain separator {CACHE_KEY_SEP!r}"
        )


def entity_key(namespace: str, kind: str, *id_parts: str) -> str:
    """Cache key for one entity: <namespace>:<kind>:<id>[:<id>...]."""
    _validate_key_component(namespace, "namespace")
    _validate_key_component(kind, "kind")
    for index, part in enumerate(id_parts):
        _validate_key_component(str(part), f"id_parts[{index}]")
    return CACHE_KEY_SEP.join([namespace, kind, *(str(p) for p in id_parts)])


def namespace_pattern(namespace: str) -> str:
    """Glob pattern matching every key of a namespace."""
    _validate_key_component(namespace, "namespace")
    return f"{namespace}{CACHE_KEY_SEP}*"


def kind_pattern(namespace: str, kind: str) -> str:
    """Glob pattern matching every key of one kind in a namespace."""
    _validate_key_component(namespace, "namespace")
    _validate_key_component(kind, "kind")
    return f"{namespace}{CACHE_KEY_SEP}{kind}{CACHE_KEY_SEP}*"
