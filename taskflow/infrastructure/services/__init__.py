"""Infrastructure services: action executors, engine, scheduler, notifications."""

from taskflow.infrastructure.services.action_executors import (
    ActionDependencies,
    ActionExecutorRegistry,
    BaseActionExecutor,
)
from taskflow.infrastructure.services.workflow_engine import WorkflowEngine
from taskflow.infrastructure.services.workflow_notification_service import (
    LogOnlyEmailSender,
    NotificationSink,
)
from taskflow.infrastructure.services.workflow_scheduler import (
    SchedulerRunSummary,
    WorkflowScheduler,
)
from taskflow.infrastructure.services.workflow_template_renderer import (
    WorkflowTemplateRenderer,
)

__all__ = [
    "ActionDependencies",
    "ActionExecutorRegistry",
    "BaseActionExecutor",
    "LogOnlyEmailSender",
    "NotificationSink",
    "SchedulerRunSummary",
    "WorkflowEngine",
    "WorkflowScheduler",
    "WorkflowTemplateRenderer",
]
