"""Application ports: repository and service protocols."""

from taskflow.application.interfaces.repositories import (
    ICalendarEventRepository,
    ICommentRepository,
    ICustomFieldRepository,
    INotificationRepository,
    IProjectRepository,
    ITaskRepository,
    IUserRepository,
    IWorkflowExecutionRepository,
    IWorkflowRepository,
)
from taskflow.application.interfaces.services import (
    IEmailSender,
    IEntityCache,
    INotificationSink,
    IWorkflowEngine,
)

__all__ = [
    "ICalendarEventRepository",
    "ICommentRepository",
    "ICustomFieldRepository",
    "IEmailSender",
    "IEntityCache",
    "INotificationRepository",
    "INotificationSink",
    "IProjectRepository",
    "ITaskRepository",
    "IUserRepository",
    "IWorkflowEngine",
    "IWorkflowExecutionRepository",
    "IWorkflowRepository",
]
