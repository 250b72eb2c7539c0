"""Persistence models: ORM entities and mixins."""

from taskflow.infrastructure.persistence.models.calendar_event import CalendarEvent
from taskflow.infrastructure.persistence.models.custom_field import (
    CustomFieldDefinition,
    CustomFieldValue,
)
from taskflow.infrastructure.persistence.models.mixins import (
    CreatedAtMixin,
    CuidMixin,
    TimestampMixin,
)
from taskflow.infrastructure.persistence.models.notification import Notification
from taskflow.infrastructure.persistence.models.profile import Profile
from taskflow.infrastructure.persistence.models.project import Project
from taskflow.infrastructure.persistence.models.task import Task, TaskComment
from taskflow.infrastructure.persistence.models.workflow import Workflow, WorkflowExecution

__all__ = [
    "CalendarEvent",
    "CreatedAtMixin",
    "CuidMixin",
    "CustomFieldDefinition",
    "CustomFieldValue",
    "Notification",
    "Profile",
    "Project",
    "Task",
    "TaskComment",
    "TimestampMixin",
    "Workflow",
    "WorkflowExecution",
]
