"""Application DTOs (no ORM dependency)."""

from taskflow.application.dtos.custom_field import (
    CustomFieldDefinitionRecord,
    CustomFieldValueRecord,
)
from taskflow.application.dtos.execution import ExecutionStats
from taskflow.application.dtos.notification import (
    CalendarEventCreate,
    EmailMessage,
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

__all__ = [
    "CalendarEventCreate",
    "CommentCreate",
    "CustomFieldDefinitionRecord",
    "CustomFieldValueRecord",
    "EmailMessage",
    "ExecutionStats",
    "NotificationCreate",
    "NotificationRecord",
    "ProjectRecord",
    "TaskChanges",
    "TaskCreate",
    "TaskQuery",
    "TaskRecord",
    "UserProfile",
]
