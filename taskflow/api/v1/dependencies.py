"""Presentation-layer dependency injection (composition root).

Builds the workflow engine, scheduler and execution service once per
process from infrastructure implementations and caches them on app.state.
Routes depend only on these dependencies, not on infra directly.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass

from fastapi import Header, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from taskflow.application.services.entity_reader import EntityReader
from taskflow.application.services.trigger_matcher import TriggerMatcher
from taskflow.application.services.variable_substitution import VariableSubstitution
from taskflow.application.use_cases.executions import ExecutionService
from taskflow.application.use_cases.triggers import WorkflowTriggers
from taskflow.core.config import Settings, get_settings
from taskflow.core.constants import CACHE_PREFIX_ENTITY, CACHE_PREFIX_WORKFLOWS
from taskflow.domain.exceptions import SchedulerAuthException
from taskflow.infrastructure.cache.entity_cache import EntityCache
from taskflow.infrastructure.cache.cache_protocol import CacheProtocol
from taskflow.infrastructure.persistence.database import get_session_factory
from taskflow.infrastructure.persistence.repositories import (
    CalendarEventRepository,
    CommentRepository,
    CustomFieldRepository,
    NotificationRepository,
    ProjectRepository,
    TaskRepository,
    UserRepository,
    WorkflowExecutionRepository,
    WorkflowRepository,
)
from taskflow.infrastructure.services.action_executors import (
    ActionDependencies,
    ActionExecutorRegistry,
)
from taskflow.infrastructure.services.workflow_engine import WorkflowEngine
from taskflow.infrastructure.services.workflow_notification_service import (
    LogOnlyEmailSender,
    NotificationSink,
)
from taskflow.infrastructure.services.workflow_scheduler import WorkflowScheduler
from taskflow.infrastructure.services.workflow_template_renderer import (
    WorkflowTemplateRenderer,
)


@dataclass
class WorkflowServices:
    """Process-wide object graph used by the routes."""

    engine: WorkflowEngine
    scheduler: WorkflowScheduler
    executions: ExecutionService
    triggers: WorkflowTriggers
    workflow_repo: WorkflowRepository
    substitution: VariableSubstitution


def build_workflow_services(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    cache_backend: CacheProtocol,
) -> WorkflowServices:
    """Wire repositories, caches and services into one WorkflowServices.

    Args:
        settings: Application settings.
        session_factory: SQLAlchemy async session factory.
        cache_backend: Shared cache backend (in-memory or Redis).

    Returns:
        The wired services.
    """
    entity_cache = EntityCache(
        cache_backend, ttl_seconds=settings.cache_ttl_seconds, namespace=CACHE_PREFIX_ENTITY
    )
    workflow_cache = EntityCache(
        cache_backend, ttl_seconds=settings.cache_ttl_seconds, namespace=CACHE_PREFIX_WORKFLOWS
    )

    workflow_repo = WorkflowRepository(session_factory)
    execution_repo = WorkflowExecutionRepository(session_factory)
    task_repo = TaskRepository(session_factory)
    project_repo = ProjectRepository(session_factory)
    custom_field_repo = CustomFieldRepository(session_factory)

    reader = EntityReader(
        entity_cache,
        task_repo,
        project_repo,
        UserRepository(session_factory),
        custom_field_repo,
    )
    substitution = VariableSubstitution(reader, settings)
    renderer = WorkflowTemplateRenderer()
    notifications = NotificationSink(NotificationRepository(session_factory))

    registry = ActionExecutorRegistry.with_defaults(
        ActionDependencies(
            task_repo=task_repo,
            project_repo=project_repo,
            custom_field_repo=custom_field_repo,
            comment_repo=CommentRepository(session_factory),
            calendar_repo=CalendarEventRepository(session_factory),
            notifications=notifications,
            email_sender=LogOnlyEmailSender(),
            reader=reader,
            substitution=substitution,
            template_renderer=renderer,
            settings=settings,
        )
    )
    engine = WorkflowEngine(
        workflow_repo,
        execution_repo,
        TriggerMatcher(workflow_repo, task_repo),
        registry,
        notification_sink=notifications,
        template_renderer=renderer,
        settings=settings,
    )
    scheduler = WorkflowScheduler(
        engine,
        workflow_repo,
        task_repo,
        workflow_cache,
        notifications,
        settings=settings,
    )
    return WorkflowServices(
        engine=engine,
        scheduler=scheduler,
        executions=ExecutionService(execution_repo, workflow_repo, engine),
        triggers=WorkflowTriggers(engine),
        workflow_repo=workflow_repo,
        substitution=substitution,
    )


def get_services(request: Request) -> WorkflowServices:
    """Return the app's WorkflowServices, building them on first use.

    Raises SqlNotConfiguredException (503) when DATABASE_URL is unset.
    """
    services = getattr(request.app.state, "workflow_services", None)
    if services is None:
        services = build_workflow_services(
            get_settings(),
            get_session_factory(),
            request.app.state.cache_backend,
        )
        request.app.state.workflow_services = services
    return services


def verify_scheduler_secret(
    x_scheduler_secret: str | None = Header(default=None),
) -> None:
    """Require X-Scheduler-Secret when SCHEDULER_SECRET is configured."""
    expected = get_settings().scheduler_secret
    if expected is None:
        return
    if x_scheduler_secret is None or not secrets.compare_digest(
        x_scheduler_secret.encode(), expected.get_secret_value().encode()
    ):
        raise SchedulerAuthException()
