"""Service interfaces (ports) for the application layer."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from taskflow.application.dtos.notification import EmailMessage, NotificationRecord
    from taskflow.domain.entities.triggers import TriggerDataBase
    from taskflow.domain.entities.workflow import WorkflowExecution


# Entity cache interface (implemented by infrastructure.cache.EntityCache)
class IEntityCache(Protocol):
    """Protocol for the typed entity cache keyed by (kind, id parts)."""

    async def get(self, kind: str, *id_parts: str) -> Any | None:
        """Return the cached value or None."""

    async def put(self, kind: str, *id_parts: str, value: Any) -> None:
        """Store a value with the cache TTL."""

    async def invalidate(self, kind: str, *id_parts: str) -> None:
        """Drop one entry (or all entries of kind without id parts)."""

    async def invalidate_all(self) -> int:
        """Drop every entry."""

    async def get_or_load(
        self,
        kind: str,
        *id_parts: str,
        loader: Callable[[], Awaitable[Any]],
    ) -> Any | None:
        """Return the cached value or load and cache it."""


# Workflow engine interface
class IWorkflowEngine(Protocol):
    """Protocol for matching and running workflows for a trigger event."""

    async def evaluate_workflows(
        self, trigger_type: str, trigger_data: TriggerDataBase
    ) -> list[WorkflowExecution]:
        """Run every matching workflow; return one execution per match."""

    async def execute_workflow(
        self, workflow_id: str, trigger_data: TriggerDataBase
    ) -> WorkflowExecution:
        """Run one workflow by id and record the execution."""


# Notification sink (owner notifications, send_notification action, overdue sweep)
class INotificationSink(Protocol):
    """Protocol for delivering in-app notifications to a user."""

    async def send(
        self,
        user_id: str,
        title: str,
        message: str,
        *,
        notification_type: str = ...,
        priority: str = ...,
        metadata: dict[str, Any] | None = None,
        task_id: str | None = None,
        project_id: str | None = None,
    ) -> NotificationRecord:
        """Deliver a notification; return the stored record."""

    async def exists_for_task_since(
        self, task_id: str, notification_type: str, since: datetime
    ) -> bool:
        """Whether a notification of that type was sent for the task since a time."""


# E-mail sender (send_email action)
class IEmailSender(Protocol):
    """Protocol for sending one e-mail. No-op or log if not configured."""

    async def send(self, message: EmailMessage) -> None:
        """Deliver the message."""
