"""Pytest configuration and fixtures for taskflow.

Engine, scheduler and action tests run against in-memory repositories held
by one FakeStore; repository tests use SQLite through aiosqlite; API tests
use taskflow.main:app with the services dependency overridden.
"""

from __future__ import annotations

import dataclasses
import itertools
from dataclasses import dataclass
from datetime import date, datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from taskflow.application.dtos.custom_field import (
    CustomFieldDefinitionRecord,
    CustomFieldValueRecord,
)
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
from taskflow.application.services.entity_reader import EntityReader
from taskflow.application.services.trigger_matcher import TriggerMatcher
from taskflow.application.services.variable_substitution import VariableSubstitution
from taskflow.application.use_cases.executions import ExecutionService
from taskflow.core.config import Settings
from taskflow.core.constants import CACHE_PREFIX_WORKFLOWS
from taskflow.domain.entities.workflow import WorkflowDefinition, WorkflowExecution
from taskflow.infrastructure.cache.entity_cache import EntityCache
from taskflow.infrastructure.cache.memory_cache import InMemoryCacheBackend
from taskflow.infrastructure.services.action_executors import (
    ActionDependencies,
    ActionExecutorRegistry,
)
from taskflow.infrastructure.services.workflow_engine import WorkflowEngine
from taskflow.infrastructure.services.workflow_notification_service import (
    NotificationSink,
)
from taskflow.infrastructure.services.workflow_scheduler import WorkflowScheduler
from taskflow.infrastructure.services.workflow_template_renderer import (
    WorkflowTemplateRenderer,
)
from taskflow.shared.enums import WorkflowExecutionStatus
from taskflow.shared.utils.datetime import utc_now

PROJECT_ID = "proj-1"
OWNER_ID = "owner-1"
ASSIGNEE_ID = "user-2"
TASK_ID = "task-1"


# ---- In-memory repositories ----


class FakeWorkflowRepository:
    def __init__(self) -> None:
        self.workflows: dict[str, WorkflowDefinition] = {}
        self.list_calls = 0

    def add(self, workflow: WorkflowDefinition) -> WorkflowDefinition:
        self.workflows[workflow.id] = workflow
        return workflow

    async def get_by_id(self, workflow_id: str) -> WorkflowDefinition | None:
        return self.workflows.get(workflow_id)

    async def list_active(self, project_id: str, trigger_type: str) -> list[WorkflowDefinition]:
        return [
            w
            for w in self.workflows.values()
            if w.is_active and w.project_id == project_id and w.trigger_type == trigger_type
        ]

    async def list_active_by_trigger(self, trigger_type: str) -> list[WorkflowDefinition]:
        self.list_calls += 1
        return [
            w for w in self.workflows.values() if w.is_active and w.trigger_type == trigger_type
        ]

    async def update_last_executed(self, workflow_id: str, executed_at: datetime) -> None:
        workflow = self.workflows[workflow_id]
        self.workflows[workflow_id] = workflow.model_copy(update={"last_executed": executed_at})

    async def claim_scheduled_run(
        self,
        workflow_id: str,
        expected_last_executed: datetime | None,
        executed_at: datetime,
    ) -> bool:
        workflow = self.workflows.get(workflow_id)
        if workflow is None or workflow.last_executed != expected_last_executed:
            return False
        await self.update_last_executed(workflow_id, executed_at)
        return True


class FakeExecutionRepository:
    def __init__(self) -> None:
        self.executions: dict[str, WorkflowExecution] = {}
        self.fail_inserts = False
        self._ids = itertools.count(1)

    async def insert(self, execution: WorkflowExecution) -> WorkflowExecution:
        if self.fail_inserts:
            raise RuntimeError("database unavailable")
        saved = execution.model_copy(update={"id": f"exec-{next(self._ids)}"})
        self.executions[saved.id] = saved
        return saved

    async def get_by_id(self, execution_id: str) -> WorkflowExecution | None:
        return self.executions.get(execution_id)

    async def list_recent(
        self, workflow_id: str | None = None, limit: int = 50
    ) -> list[WorkflowExecution]:
        rows = [
            e
            for e in self.executions.values()
            if workflow_id is None or e.workflow_id == workflow_id
        ]
        rows.sort(key=lambda e: e.execution_time, reverse=True)
        return rows[:limit]

    async def count_by_status(self, workflow_id: str | None = None) -> dict[str, int]:
        counts: dict[str, int] = {}
        for execution in await self.list_recent(workflow_id, limit=10_000):
            counts[execution.status.value] = counts.get(execution.status.value, 0) + 1
        return counts

    async def update_status(
        self, execution_id: str, status: str, error_message: str | None = None
    ) -> WorkflowExecution | None:
        execution = self.executions.get(execution_id)
        if execution is None:
            return None
        update: dict = {"status": WorkflowExecutionStatus(status)}
        if error_message is not None:
            update["error_message"] = error_message
        self.executions[execution_id] = execution.model_copy(update=update)
        return self.executions[execution_id]

    async def delete(self, execution_id: str) -> bool:
        return self.executions.pop(execution_id, None) is not None


class FakeTaskRepository:
    def __init__(self) -> None:
        self.tasks: dict[str, TaskRecord] = {}
        self.get_calls = 0
        self._ids = itertools.count(1)

    def add(self, task: TaskRecord) -> TaskRecord:
        self.tasks[task.id] = task
        return task

    async def get_by_id(self, task_id: str) -> TaskRecord | None:
        self.get_calls += 1
        return self.tasks.get(task_id)

    async def create(self, data: TaskCreate) -> TaskRecord:
        task = TaskRecord(id=f"task-new-{next(self._ids)}", **dataclasses.asdict(data))
        self.tasks[task.id] = task
        return task

    async def update(self, task_id: str, changes: TaskChanges) -> TaskRecord | None:
        task = self.tasks.get(task_id)
        if task is None:
            return None
        self.tasks[task_id] = dataclasses.replace(task, **changes.as_dict())
        return self.tasks[task_id]

    async def find(self, query: TaskQuery) -> list[TaskRecord]:
        def keep(task: TaskRecord) -> bool:
            if query.project_id and task.project_id != query.project_id:
                return False
            if query.statuses and task.status not in query.statuses:
                return False
            if query.exclude_status and task.status == query.exclude_status:
                return False
            if query.assigned_to and task.assigned_to != query.assigned_to:
                return False
            if query.priorities and task.priority not in query.priorities:
                return False
            if query.due_date and task.due_date != query.due_date:
                return False
            if query.due_before and (task.due_date is None or task.due_date >= query.due_before):
                return False
            return True

        rows = sorted((t for t in self.tasks.values() if keep(t)), key=lambda t: t.id)
        return rows[: query.limit] if query.limit else rows

    async def update_many(self, task_ids: list[str], changes: TaskChanges) -> int:
        updated = 0
        for task_id in task_ids:
            if await self.update(task_id, changes) is not None:
                updated += 1
        return updated


class FakeProjectRepository:
    def __init__(self) -> None:
        self.projects: dict[str, ProjectRecord] = {}

    async def get_by_id(self, project_id: str) -> ProjectRecord | None:
        return self.projects.get(project_id)

    async def update_status(self, project_id: str, status: str) -> ProjectRecord | None:
        project = self.projects.get(project_id)
        if project is None:
            return None
        self.projects[project_id] = dataclasses.replace(project, status=status)
        return self.projects[project_id]


class FakeUserRepository:
    def __init__(self) -> None:
        self.users: dict[str, UserProfile] = {}

    async def get_by_id(self, user_id: str) -> UserProfile | None:
        return self.users.get(user_id)


class FakeCustomFieldRepository:
    def __init__(self) -> None:
        self.definitions: dict[str, CustomFieldDefinitionRecord] = {}
        self.values: dict[tuple[str, str, str], CustomFieldValueRecord] = {}

    async def get_definition(self, field_id: str) -> CustomFieldDefinitionRecord | None:
        return self.definitions.get(field_id)

    async def find_definition_by_name(
        self, project_id: str, name: str, entity_type: str
    ) -> CustomFieldDefinitionRecord | None:
        for definition in self.definitions.values():
            if (definition.project_id, definition.name, definition.entity_type) == (
                project_id,
                name,
                entity_type,
            ):
                return definition
        return None

    async def get_value(
        self, field_id: str, entity_id: str, entity_type: str
    ) -> CustomFieldValueRecord | None:
        return self.values.get((field_id, entity_id, entity_type))

    async def upsert_value(self, value: CustomFieldValueRecord) -> CustomFieldValueRecord:
        self.values[(value.field_id, value.entity_id, value.entity_type)] = value
        return value


class FakeCommentRepository:
    def __init__(self) -> None:
        self.comments: list[CommentCreate] = []

    async def create(self, data: CommentCreate) -> str:
        self.comments.append(data)
        return f"comment-{len(self.comments)}"


class FakeCalendarEventRepository:
    def __init__(self) -> None:
        self.events: list[CalendarEventCreate] = []

    async def create(self, data: CalendarEventCreate) -> str:
        self.events.append(data)
        return f"event-{len(self.events)}"


class FakeNotificationRepository:
    def __init__(self) -> None:
        self.notifications: list[NotificationRecord] = []

    async def create(self, data: NotificationCreate) -> NotificationRecord:
        record = NotificationRecord(
            id=f"notif-{len(self.notifications) + 1}",
            created_at=utc_now(),
            **dataclasses.asdict(data),
        )
        self.notifications.append(record)
        return record

    async def exists_for_task_since(
        self, task_id: str, notification_type: str, since: datetime
    ) -> bool:
        return any(
            n.task_id == task_id
            and n.notification_type == notification_type
            and n.created_at >= since
            for n in self.notifications
        )


class FakeEmailSender:
    def __init__(self) -> None:
        self.sent: list[EmailMessage] = []

    async def send(self, message: EmailMessage) -> None:
        self.sent.append(message)


@dataclass
class FakeStore:
    """All in-memory repositories, seeded with one project, two users and one task."""

    workflows: FakeWorkflowRepository
    executions: FakeExecutionRepository
    tasks: FakeTaskRepository
    projects: FakeProjectRepository
    users: FakeUserRepository
    custom_fields: FakeCustomFieldRepository
    comments: FakeCommentRepository
    calendar: FakeCalendarEventRepository
    notifications: FakeNotificationRepository
    email: FakeEmailSender

    def messages(self) -> list[str]:
        return [n.message for n in self.notifications.notifications]


@dataclass
class Wiring:
    """Engine object graph built over a FakeStore (mirrors build_workflow_services)."""

    store: FakeStore
    settings: Settings
    entity_cache: EntityCache
    workflow_cache: EntityCache
    reader: EntityReader
    substitution: VariableSubstitution
    sink: NotificationSink
    registry: ActionExecutorRegistry
    engine: WorkflowEngine
    scheduler: WorkflowScheduler
    executions: ExecutionService


def make_workflow(**overrides) -> WorkflowDefinition:
    data = {
        "id": "wf-1",
        "project_id": PROJECT_ID,
        "name": "Notify when done",
        "trigger_type": "task_status_changed",
        "trigger_config": {},
        "actions": [],
        "created_by": OWNER_ID,
        "is_active": True,
    }
    data.update(overrides)
    return WorkflowDefinition.model_validate(data)


def build_wiring(store: FakeStore, settings: Settings) -> Wiring:
    backend = InMemoryCacheBackend()
    entity_cache = EntityCache(backend, ttl_seconds=settings.cache_ttl_seconds)
    workflow_cache = EntityCache(
        backend, ttl_seconds=settings.cache_ttl_seconds, namespace=CACHE_PREFIX_WORKFLOWS
    )
    reader = EntityReader(
        entity_cache, store.tasks, store.projects, store.users, store.custom_fields
    )
    substitution = VariableSubstitution(reader, settings)
    renderer = WorkflowTemplateRenderer()
    sink = NotificationSink(store.notifications)
    registry = ActionExecutorRegistry.with_defaults(
        ActionDependencies(
            task_repo=store.tasks,
            project_repo=store.projects,
            custom_field_repo=store.custom_fields,
            comment_repo=store.comments,
            calendar_repo=store.calendar,
            notifications=sink,
            email_sender=store.email,
            reader=reader,
            substitution=substitution,
            template_renderer=renderer,
            settings=settings,
        )
    )
    engine = WorkflowEngine(
        store.workflows,
        store.executions,
        TriggerMatcher(store.workflows, store.tasks),
        registry,
        notification_sink=sink,
        template_renderer=renderer,
        settings=settings,
    )
    scheduler = WorkflowScheduler(
        engine, store.workflows, store.tasks, workflow_cache, sink, settings=settings
    )
    return Wiring(
        store=store,
        settings=settings,
        entity_cache=entity_cache,
        workflow_cache=workflow_cache,
        reader=reader,
        substitution=substitution,
        sink=sink,
        registry=registry,
        engine=engine,
        scheduler=scheduler,
        executions=ExecutionService(store.executions, store.workflows, engine),
    )


# ---- Fixtures ----


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment's .env file."""
    return Settings(
        _env_file=None,
        timezone="UTC",
        telemetry_enabled=False,
        due_date_batch_delay_ms=0,
        scheduler_secret=None,
    )


@pytest.fixture
def store() -> FakeStore:
    """In-memory repositories with a seeded project, users and task "Paint wall"."""
    store = FakeStore(
        workflows=FakeWorkflowRepository(),
        executions=FakeExecutionRepository(),
        tasks=FakeTaskRepository(),
        projects=FakeProjectRepository(),
        users=FakeUserRepository(),
        custom_fields=FakeCustomFieldRepository(),
        comments=FakeCommentRepository(),
        calendar=FakeCalendarEventRepository(),
        notifications=FakeNotificationRepository(),
        email=FakeEmailSender(),
    )
    store.projects.projects[PROJECT_ID] = ProjectRecord(
        id=PROJECT_ID,
        name="Apartment Renovation",
        status="active",
        created_by=OWNER_ID,
        description="Kitchen and living room",
    )
    store.users.users[OWNER_ID] = UserProfile(
        id=OWNER_ID, full_name="Olivia Owner", email="olivia@example.com"
    )
    store.users.users[ASSIGNEE_ID] = UserProfile(
        id=ASSIGNEE_ID, full_name="Sam Painter", email="sam@example.com"
    )
    store.tasks.add(
        TaskRecord(
            id=TASK_ID,
            project_id=PROJECT_ID,
            title="Paint wall",
            status="done",
            priority="high",
            created_by=OWNER_ID,
            description="Two coats, white",
            assigned_to=ASSIGNEE_ID,
            due_date=date(2026, 10, 20),
        )
    )
    return store


@pytest.fixture
def wiring(store: FakeStore, settings: Settings) -> Wiring:
    """Engine, scheduler and execution service over the fake store."""
    return build_wiring(store, settings)


@pytest.fixture
def workflow_factory():
    """Build a WorkflowDefinition from overrides of a minimal valid definition."""
    return make_workflow


@pytest.fixture
def fixed_now() -> datetime:
    """2026-10-17 09:00 UTC, a Saturday."""
    return datetime(2026, 10, 17, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI)."""
    from taskflow.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def wiring_factory():
    """Build a Wiring over a store with custom settings."""
    return build_wiring


@pytest.fixture
async def session_factory(tmp_path):
    """SQLite (aiosqlite) database with the full schema; one file per test."""
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

    import taskflow.infrastructure.persistence.models  # noqa: F401
    from taskflow.infrastructure.persistence.database import Base

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'taskflow.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()
