"""SQLAlchemy repositories implementing the application ports."""

from taskflow.infrastructure.persistence.repositories.custom_field_repo import (
    CustomFieldRepository,
)
from taskflow.infrastructure.persistence.repositories.notification_repo import (
    CalendarEventRepository,
    NotificationRepository,
)
from taskflow.infrastructure.persistence.repositories.project_repo import (
    ProjectRepository,
    UserRepository,
)
from taskflow.infrastructure.persistence.repositories.task_repo import (
    CommentRepository,
    TaskRepository,
)
from taskflow.infrastructure.persistence.repositories.workflow_repo import (
    WorkflowExecutionRepository,
    WorkflowRepository,
)

__all__ = [
    "CalendarEventRepository",
    "CommentRepository",
    "CustomFieldRepository",
    "NotificationRepository",
    "ProjectRepository",
    "TaskRepository",
    "UserRepository",
    "WorkflowExecutionRepository",
    "WorkflowRepository",
]
