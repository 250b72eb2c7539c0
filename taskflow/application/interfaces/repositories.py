"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference domain entities or application DTOs only; no infrastructure imports.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from taskflow.application.dtos.custom_field import (
        CustomFieldDefinitionRecord,
        CustomFieldValueRecord,
    )
    from taskflow.application.dtos.notification import (
        CalendarEventCreate,
        NotificationCreate,
        NotificationRecord,
    )
    from taskflow.application.dtos.project import ProjectRecord
    from taskflow.application.dtos.task import (
        CommentCreate,
        TaskChanges,
        TaskCreate,
        TaskQuery,
        TaskRecord,
    )
    from taskflow.application.dtos.user import UserProfile
    from taskflow.domain.entities.workflow import WorkflowDefinition, WorkflowExecution


# Workflow definition repository interface
class IWorkflowRepository(Protocol):
    """Protocol for workflow definition repository (DIP)."""

    async def get_by_id(self, workflow_id: str) -> WorkflowDefinition | None:
        """Return the definition (active or not) or None."""

    async def list_active(
        self, project_id: str, trigger_type: str
    ) -> list[WorkflowDefinition]:
        """Return active workflows of a project listening for trigger_type."""

    async def list_active_by_trigger(self, trigger_type: str) -> list[WorkflowDefinition]:
        """Return active workflows for trigger_type across all projects."""

    async def update_last_executed(self, workflow_id: str, executed_at: datetime) -> None:
        """Stamp last_executed (scheduler only)."""

    async def claim_scheduled_run(
        self,
        workflow_id: str,
        expected_last_executed: datetime | None,
        executed_at: datetime,
    ) -> bool:
        """Set last_executed only if it still equals expected; True when claimed."""


# Workflow execution repository interface
class IWorkflowExecutionRepository(Protocol):
    """Protocol for the execution audit trail (DIP)."""

    async def insert(self, execution: WorkflowExecution) -> WorkflowExecution:
        """Persist a new execution record; return it with its id."""

    async def get_by_id(self, execution_id: str) -> WorkflowExecution | None:
        """Return an execution or None."""

    async def list_recent(
        self, workflow_id: str | None = None, limit: int = 50
    ) -> list[WorkflowExecution]:
        """Return executions newest first, optionally for one workflow."""

    async def count_by_status(self, workflow_id: str | None = None) -> dict[str, int]:
        """Return {status: count} for all or one workflow's executions."""

    async def update_status(
        self,
        execution_id: str,
        status: str,
        error_message: str | None = None,
    ) -> WorkflowExecution | None:
        """Change an execution's status; None when it does not exist."""

    async def delete(self, execution_id: str) -> bool:
        """Delete an execution; True when a row was removed."""


# Task repository interface
class ITaskRepository(Protocol):
    """Protocol for task reads and writes performed by actions and sweeps."""

    async def get_by_id(self, task_id: str) -> TaskRecord | None:
        """Return a task or None."""

    async def create(self, data: TaskCreate) -> TaskRecord:
        """Create a task and return it."""

    async def update(self, task_id: str, changes: TaskChanges) -> TaskRecord | None:
        """Apply set fields of changes; None when the task does not exist."""

    async def find(self, query: TaskQuery) -> list[TaskRecord]:
        """Return tasks matching every set filter of query."""

    async def update_many(self, task_ids: list[str], changes: TaskChanges) -> int:
        """Apply changes to all ids in one statement; return rows updated."""


# Project repository interface
class IProjectRepository(Protocol):
    """Protocol for project reads and status updates."""

    async def get_by_id(self, project_id: str) -> ProjectRecord | None:
        """Return a project or None."""

    async def update_status(self, project_id: str, status: str) -> ProjectRecord | None:
        """Set project status; None when the project does not exist."""


# User profile repository interface
class IUserRepository(Protocol):
    """Protocol for user profile lookups (names and e-mail addresses)."""

    async def get_by_id(self, user_id: str) -> UserProfile | None:
        """Return a profile or None."""


# Custom field repository interface
class ICustomFieldRepository(Protocol):
    """Protocol for custom field definitions and values."""

    async def get_definition(self, field_id: str) -> CustomFieldDefinitionRecord | None:
        """Return a field definition by id."""

    async def find_definition_by_name(
        self, project_id: str, name: str, entity_type: str
    ) -> CustomFieldDefinitionRecord | None:
        """Return the project's field definition with that name and entity type."""

    async def get_value(
        self, field_id: str, entity_id: str, entity_type: str
    ) -> CustomFieldValueRecord | None:
        """Return the stored value for (field, entity, entity_type)."""

    async def upsert_value(self, value: CustomFieldValueRecord) -> CustomFieldValueRecord:
        """Insert or replace the value for (field, entity, entity_type)."""


# Comment repository interface
class ICommentRepository(Protocol):
    """Protocol for task comments written by actions."""

    async def create(self, data: CommentCreate) -> str:
        """Create a comment; return its id."""


# Calendar event repository interface
class ICalendarEventRepository(Protocol):
    """Protocol for calendar events written by actions."""

    async def create(self, data: CalendarEventCreate) -> str:
        """Create an event; return its id."""


# Notification repository interface
class INotificationRepository(Protocol):
    """Protocol for stored in-app notifications."""

    async def create(self, data: NotificationCreate) -> NotificationRecord:
        """Store a notification and return it."""

    async def exists_for_task_since(
        self, task_id: str, notification_type: str, since: datetime
    ) -> bool:
        """Whether a notification of that type exists for the task since a time."""
