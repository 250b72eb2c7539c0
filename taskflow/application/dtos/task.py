"""DTOs for tasks and task comments (no dependency on ORM)."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any


@dataclass(frozen=True)
class TaskRecord:
    """Task read-model as seen by the engine."""

    id: str
    project_id: str
    title: str
    status: str
    priority: str
    created_by: str
    description: str | None = None
    assigned_to: str | None = None
    due_date: date | None = None
    parent_task_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def notification_recipient(self) -> str:
        """Assignee if set, otherwise the creator."""
        return self.assigned_to or self.created_by


@dataclass(frozen=True)
class TaskCreate:
    """Task to create (create_task action)."""

    project_id: str
    title: str
    created_by: str
    status: str
    priority: str
    description: str | None = None
    assigned_to: str | None = None
    due_date: date | None = None
    parent_task_id: str | None = None


@dataclass(frozen=True)
class TaskChanges:
    """Partial task update; None means "leave unchanged"."""

    title: str | None = None
    description: str | None = None
    status: str | None = None
    priority: str | None = None
    assigned_to: str | None = None
    due_date: date | None = None
    project_id: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Only the fields that are set."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    def is_empty(self) -> bool:
        return not self.as_dict()


@dataclass(frozen=True)
class TaskQuery:
    """Task filter for scheduler sweeps and batch updates."""

    project_id: str | None = None
    statuses: tuple[str, ...] | None = None
    exclude_status: str | None = None
    assigned_to: str | None = None
    priorities: tuple[str, ...] | None = None
    due_date: date | None = None
    due_before: date | None = None
    limit: int | None = None


@dataclass(frozen=True)
class CommentCreate:
    """Comment to add to a task (add_comment action)."""

    task_id: str
    user_id: str
    content: str
    is_system_comment: bool = True
    metadata: dict[str, Any] = field(default_factory=dict)
