"""DTOs for projects (no dependency on ORM)."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ProjectRecord:
    """Project read-model (substitution tokens, update_project_status)."""

    id: str
    name: str
    status: str
    created_by: str
    description: str | None = None
