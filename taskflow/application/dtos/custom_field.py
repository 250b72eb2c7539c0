"""DTOs for custom field definitions and values."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CustomFieldDefinitionRecord:
    """Custom field definition scoped to a project and entity type."""

    id: str
    project_id: str
    name: str
    entity_type: str
    field_type: str = "text"


@dataclass(frozen=True)
class CustomFieldValueRecord:
    """Stored value of a custom field for one entity."""

    field_id: str
    entity_id: str
    entity_type: str
    value: Any = None
    id: str | None = None
