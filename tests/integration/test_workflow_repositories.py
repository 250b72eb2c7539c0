"""SQLAlchemy repository integration tests against SQLite (aiosqlite)."""

from datetime import date, datetime, timedelta, timezone

import pytest

from taskflow.application.dtos.custom_field import CustomFieldValueRecord
from taskflow.application.dtos.notification import NotificationCreate
from taskflow.application.dtos.task import CommentCreate, TaskChanges, TaskCreate, TaskQuery
from taskflow.domain.entities.actions import InvalidAction, SendNotificationAction
from taskflow.domain.entities.workflow import WorkflowExecution
from taskflow.infrastructure.persistence.models import (
    CustomFieldDefinition,
    Profile,
    Project,
    Task,
    Workflow,
)
from taskflow.infrastructure.persistence.repositories import (
    CommentRepository,
    CustomFieldRepository,
    NotificationRepository,
    ProjectRepository,
    TaskRepository,
    UserRepository,
    WorkflowExecutionRepository,
    WorkflowRepository,
)
from taskflow.shared.enums import WorkflowExecutionStatus

pytestmark = pytest.mark.requires_db

T0 = datetime(2026, 10, 17, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
async def seeded(session_factory):
    """One project, one profile, two tasks and three workflow rows."""
    async with session_factory.begin() as session:
        session.add(Project(id="proj-1", name="Apartment Renovation", created_by="owner-1"))
        session.add(Profile(id="owner-1", full_name="Olivia Owner", email="olivia@example.com"))
        session.add_all(
            [
                Task(
                    id="task-1",
                    project_id="proj-1",
                    title="Paint wall",
                    status="in_progress",
                    priority="high",
                    created_by="owner-1",
                    due_date=date(2026, 10, 20),
                ),
                Task(
                    id="task-2",
                    project_id="proj-1",
                    title="Order tiles",
                    status="done",
                    priority="low",
                    created_by="owner-1",
                    due_date=date(2026, 10, 10),
                ),
            ]
        )
        session.add_all(
            [
                Workflow(
                    id="wf-1",
                    project_id="proj-1",
                    name="Notify when done",
                    trigger_type="task_status_changed",
                    trigger_config={"to_status": "done"},
                    actions=[{"type": "send_notification", "config": {"message": "done"}}],
                    created_by="owner-1",
                ),
                Workflow(
                    id="wf-off",
                    project_id="proj-1",
                    name="Disabled",
                    is_active=False,
                    trigger_type="task_status_changed",
                    trigger_config={},
                    actions=[],
                    created_by="owner-1",
                ),
                Workflow(
                    id="wf-broken",
                    project_id="proj-1",
                    name="Broken",
                    trigger_type="task_status_changed",
                    trigger_config={"to_status": ["done", "review"]},
                    actions=[{"type": "send_notification", "config": {"message": "Hi"}}],
                    created_by="owner-1",
                ),
            ]
        )
    return session_factory


async def test_workflow_lists_skip_inactive_and_malformed(seeded) -> None:
    repo = WorkflowRepository(seeded)

    active = await repo.list_active("proj-1", "task_status_changed")
    assert [w.id for w in active] == ["wf-1"]
    assert active[0].trigger_config.to_status == "done"
    assert [w.id for w in await repo.list_active_by_trigger("task_status_changed")] == ["wf-1"]
    assert await repo.list_active("proj-2", "task_status_changed") == []


async def test_incomplete_action_does_not_hide_workflow(seeded) -> None:
    """A row whose only problem is one action's config still lists and loads."""
    async with seeded.begin() as session:
        session.add(
            Workflow(
                id="wf-mixed",
                project_id="proj-1",
                name="Notify and comment",
                trigger_type="task_created",
                trigger_config={},
                actions=[
                    {
                        "type": "send_notification",
                        "config": {"message": "New task", "recipient_id": "owner-1"},
                    },
                    {"type": "add_comment", "config": {}},
                ],
                created_by="owner-1",
            )
        )
    repo = WorkflowRepository(seeded)

    assert [w.id for w in await repo.list_active("proj-1", "task_created")] == ["wf-mixed"]
    assert [w.id for w in await repo.list_active_by_trigger("task_created")] == ["wf-mixed"]
    workflow = await repo.get_by_id("wf-mixed")
    notify, comment = workflow.actions
    assert isinstance(notify, SendNotificationAction)
    assert isinstance(comment, InvalidAction)
    assert comment.config_error() == "comment: Field required"


async def test_workflow_get_by_id(seeded) -> None:
    repo = WorkflowRepository(seeded)
    assert (await repo.get_by_id("wf-1")).name == "Notify when done"
    assert await repo.get_by_id("missing") is None


async def test_claim_scheduled_run_is_compare_and_swap(seeded) -> None:
    repo = WorkflowRepository(seeded)

    assert await repo.claim_scheduled_run("wf-1", None, T0)
    assert not await repo.claim_scheduled_run("wf-1", None, T0 + timedelta(minutes=1))

    workflow = await repo.get_by_id("wf-1")
    assert workflow.last_executed == T0
    assert await repo.claim_scheduled_run("wf-1", workflow.last_executed, T0 + timedelta(days=1))


async def test_execution_lifecycle(seeded) -> None:
    repo = WorkflowExecutionRepository(seeded)

    saved = await repo.insert(
        WorkflowExecution(
            workflow_id="wf-1",
            trigger_data={"trigger_type": "task_status_changed", "project_id": "proj-1"},
            executed_actions=[{"type": "send_notification", "config": {"message": "done"}}],
            status=WorkflowExecutionStatus.SUCCESS,
            execution_time=T0,
        )
    )
    await repo.insert(
        WorkflowExecution(
            workflow_id="wf-1",
            status=WorkflowExecutionStatus.RUNNING,
            execution_time=T0 + timedelta(minutes=1),
        )
    )

    assert saved.id
    fetched = await repo.get_by_id(saved.id)
    assert fetched.execution_time == T0
    assert fetched.trigger_data["project_id"] == "proj-1"

    recent = await repo.list_recent(workflow_id="wf-1")
    assert [e.status for e in recent] == [
        WorkflowExecutionStatus.RUNNING,
        WorkflowExecutionStatus.SUCCESS,
    ]
    assert await repo.count_by_status() == {"success": 1, "running": 1}

    running = recent[0]
    cancelled = await repo.update_status(running.id, "cancelled")
    assert cancelled.status == WorkflowExecutionStatus.CANCELLED
    assert await repo.update_status("missing", "cancelled") is None

    assert await repo.delete(saved.id)
    assert not await repo.delete(saved.id)


async def test_task_find_and_updates(seeded) -> None:
    repo = TaskRepository(seeded)

    open_tasks = await repo.find(TaskQuery(project_id="proj-1", exclude_status="done"))
    assert [t.id for t in open_tasks] == ["task-1"]
    overdue = await repo.find(TaskQuery(due_before=date(2026, 10, 17)))
    assert [t.id for t in overdue] == ["task-2"]
    due = await repo.find(TaskQuery(due_date=date(2026, 10, 20), priorities=("high",)))
    assert [t.id for t in due] == ["task-1"]

    updated = await repo.update("task-1", TaskChanges(status="done", assigned_to="user-2"))
    assert (updated.status, updated.assigned_to) == ("done", "user-2")
    assert await repo.update("missing", TaskChanges(status="done")) is None

    assert await repo.update_many(["task-1", "task-2"], TaskChanges(priority="urgent")) == 2
    assert await repo.update_many([], TaskChanges(priority="low")) == 0

    created = await repo.create(
        TaskCreate(
            project_id="proj-1",
            title="Follow-up",
            created_by="owner-1",
            status="todo",
            priority="medium",
            parent_task_id="task-1",
        )
    )
    assert created.id
    assert (await repo.get_by_id(created.id)).parent_task_id == "task-1"


async def test_project_and_user_lookups(seeded) -> None:
    projects = ProjectRepository(seeded)
    assert (await projects.get_by_id("proj-1")).name == "Apartment Renovation"
    assert (await projects.update_status("proj-1", "completed")).status == "completed"
    assert await projects.update_status("missing", "completed") is None

    users = UserRepository(seeded)
    assert (await users.get_by_id("owner-1")).email == "olivia@example.com"
    assert await users.get_by_id("nobody") is None


async def test_custom_field_values_upsert(seeded) -> None:
    async with seeded.begin() as session:
        session.add(
            CustomFieldDefinition(
                id="cf-1", project_id="proj-1", name="Approval", entity_type="task"
            )
        )
    repo = CustomFieldRepository(seeded)

    assert (await repo.find_definition_by_name("proj-1", "Approval", "task")).id == "cf-1"
    assert await repo.find_definition_by_name("proj-1", "Approval", "project") is None

    await repo.upsert_value(CustomFieldValueRecord("cf-1", "task-1", "task", "pending"))
    await repo.upsert_value(CustomFieldValueRecord("cf-1", "task-1", "task", "approved"))
    assert (await repo.get_value("cf-1", "task-1", "task")).value == "approved"


async def test_notifications_and_comments(seeded) -> None:
    notifications = NotificationRepository(seeded)
    record = await notifications.create(
        NotificationCreate(
            user_id="owner-1",
            title="Task overdue",
            message="Late",
            notification_type="overdue",
            priority="high",
            metadata={"days_overdue": 2},
            task_id="task-2",
        )
    )
    assert record.id
    assert record.metadata == {"days_overdue": 2}

    since = record.created_at - timedelta(minutes=1)
    assert await notifications.exists_for_task_since("task-2", "overdue", since)
    assert not await notifications.exists_for_task_since("task-1", "overdue", since)
    assert not await notifications.exists_for_task_since(
        "task-2", "overdue", record.created_at + timedelta(minutes=1)
    )

    comment_id = await CommentRepository(seeded).create(
        CommentCreate(task_id="task-1", user_id="owner-1", content="Looks good")
    )
    assert comment_id
