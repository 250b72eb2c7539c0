"""WorkflowEngine unit tests: outcomes, error isolation and owner notifications."""

from unittest.mock import AsyncMock

from taskflow.core.config import Settings
from taskflow.domain.entities.triggers import TaskStatusChangedData
from taskflow.shared.enums import WorkflowExecutionStatus
from taskflow.shared.utils.background import drain_background_tasks

NOTIFY_DONE = {"type": "send_notification", "config": {"message": "{{task.title}} is done"}}
BROKEN_UPDATE = {"type": "update_task", "config": {"task_id": "missing", "status": "done"}}


def _done(task_id: str = "task-1") -> TaskStatusChangedData:
    return TaskStatusChangedData(
        project_id="proj-1", task_id=task_id, from_status="in_progress", to_status="done"
    )


def _owner_notifications(store) -> list:
    return [n for n in store.notifications.notifications if n.user_id == "owner-1"]


async def test_done_task_notifies_assignee(wiring, store, workflow_factory) -> None:
    """A matching status change runs the workflow once and records success."""
    store.workflows.add(
        workflow_factory(trigger_config={"to_status": "done"}, actions=[NOTIFY_DONE])
    )

    executions = await wiring.engine.evaluate_workflows("task_status_changed", _done())

    assert len(executions) == 1
    execution = executions[0]
    assert execution.status == WorkflowExecutionStatus.SUCCESS
    assert len(execution.executed_actions) == 1
    assert execution.error_message is None
    assert store.messages().count("Paint wall is done") == 1
    assert execution.id in store.executions.executions


async def test_non_matching_trigger_runs_nothing(wiring, store, workflow_factory) -> None:
    store.workflows.add(
        workflow_factory(trigger_config={"to_status": "review"}, actions=[NOTIFY_DONE])
    )
    assert await wiring.engine.evaluate_workflows("task_status_changed", _done()) == []
    assert store.executions.executions == {}


async def test_success_notifies_owner(wiring, store, workflow_factory) -> None:
    store.workflows.add(workflow_factory(actions=[NOTIFY_DONE]))

    await wiring.engine.execute_workflow("wf-1", _done())

    owner = _owner_notifications(store)
    assert len(owner) == 1
    assert owner[0].notification_type == "workflow_executed"
    assert owner[0].priority == "medium"
    assert owner[0].title == 'Workflow "Notify when done" executed'
    assert owner[0].metadata["execution_status"] == "success"
    assert owner[0].metadata["executed_actions"] == 1


async def test_failing_action_makes_run_partial(wiring, store, workflow_factory) -> None:
    """Later actions still run; the first error is kept on the record."""
    store.workflows.add(workflow_factory(actions=[BROKEN_UPDATE, NOTIFY_DONE]))

    execution = await wiring.engine.execute_workflow("wf-1", _done())

    assert execution.status == WorkflowExecutionStatus.PARTIAL
    assert execution.error_message == "Failed to execute action: update_task: Task not found: missing"
    assert [a["type"] for a in execution.executed_actions] == ["send_notification"]
    assert "Paint wall is done" in store.messages()
    # Partial runs do not notify the owner unless enabled
    assert _owner_notifications(store) == []


async def test_all_actions_failing_is_still_partial(wiring, store, workflow_factory) -> None:
    store.workflows.add(
        workflow_factory(actions=[BROKEN_UPDATE, {"type": "launch_rocket", "config": {}}])
    )

    execution = await wiring.engine.execute_workflow("wf-1", _done())

    assert execution.status == WorkflowExecutionStatus.PARTIAL
    assert execution.executed_actions == []
    assert execution.error_message.startswith("Failed to execute action: update_task")


async def test_unknown_action_kind_fails_only_that_action(wiring, store, workflow_factory) -> None:
    store.workflows.add(
        workflow_factory(actions=[{"type": "launch_rocket", "config": {}}, NOTIFY_DONE])
    )

    execution = await wiring.engine.execute_workflow("wf-1", _done())

    assert execution.status == WorkflowExecutionStatus.PARTIAL
    assert execution.error_message == (
        "Failed to execute action: launch_rocket: Unsupported action type: launch_rocket"
    )
    assert len(execution.executed_actions) == 1


async def test_incomplete_action_config_fails_only_that_action(
    wiring, store, workflow_factory
) -> None:
    """A known action missing required config is skipped; the valid one still runs."""
    store.workflows.add(
        workflow_factory(actions=[NOTIFY_DONE, {"type": "add_comment", "config": {}}])
    )

    [execution] = await wiring.engine.evaluate_workflows("task_status_changed", _done())

    assert execution.status == WorkflowExecutionStatus.PARTIAL
    assert execution.error_message == (
        "Failed to execute action: add_comment: Invalid configuration: comment: Field required"
    )
    assert [a["type"] for a in execution.executed_actions] == ["send_notification"]
    assert "Paint wall is done" in store.messages()
    assert store.comments.comments == []


async def test_partial_notifies_owner_when_enabled(
    store, workflow_factory, wiring_factory
) -> None:
    wiring = wiring_factory(
        store, Settings(_env_file=None, telemetry_enabled=False, notify_on_partial=True)
    )
    store.workflows.add(workflow_factory(actions=[BROKEN_UPDATE, NOTIFY_DONE]))

    await wiring.engine.execute_workflow("wf-1", _done())

    owner = _owner_notifications(store)
    assert [n.notification_type for n in owner] == ["workflow_partial"]


async def test_workflow_without_actions_fails(wiring, store, workflow_factory) -> None:
    """No actions: failed record, owner told with high priority."""
    store.workflows.add(workflow_factory(actions=[]))

    execution = await wiring.engine.execute_workflow("wf-1", _done())

    assert execution.status == WorkflowExecutionStatus.FAILED
    assert execution.error_message == "Workflow has no actions"
    owner = _owner_notifications(store)
    assert len(owner) == 1
    assert owner[0].notification_type == "workflow_failed"
    assert owner[0].priority == "high"
    assert "Workflow has no actions" in owner[0].message


async def test_missing_workflow_records_failure(wiring, store) -> None:
    execution = await wiring.engine.execute_workflow("ghost", _done())

    assert execution.status == WorkflowExecutionStatus.FAILED
    assert execution.error_message == "Workflow not found: ghost"
    assert execution.workflow_id == "ghost"
    assert execution.is_saved
    assert store.notifications.notifications == []


async def test_load_error_records_failure(wiring, store) -> None:
    store.workflows.get_by_id = AsyncMock(side_effect=RuntimeError("connection refused"))

    execution = await wiring.engine.execute_workflow("wf-1", _done())

    assert execution.status == WorkflowExecutionStatus.FAILED
    assert execution.error_message == "Failed to load workflow: connection refused"


async def test_persist_failure_returns_unsaved_record(wiring, store, workflow_factory) -> None:
    """Actions already applied are not rolled back when the record cannot be saved."""
    store.workflows.add(workflow_factory(actions=[NOTIFY_DONE]))
    store.executions.fail_inserts = True

    execution = await wiring.engine.execute_workflow("wf-1", _done())

    assert execution.id is None
    assert not execution.is_saved
    assert execution.status == WorkflowExecutionStatus.SUCCESS
    assert "Paint wall is done" in store.messages()


async def test_owner_notification_failure_is_swallowed(wiring, store, workflow_factory) -> None:
    store.workflows.add(workflow_factory(actions=[{"type": "add_comment", "config": {"comment": "ok"}}]))
    store.notifications.create = AsyncMock(side_effect=RuntimeError("queue full"))

    execution = await wiring.engine.execute_workflow("wf-1", _done())

    assert execution.status == WorkflowExecutionStatus.SUCCESS


async def test_execution_archives_trigger_data(wiring, store, workflow_factory) -> None:
    store.workflows.add(workflow_factory(actions=[NOTIFY_DONE]))

    execution = await wiring.engine.execute_workflow("wf-1", _done())

    assert execution.trigger_data["trigger_type"] == "task_status_changed"
    assert execution.trigger_data["task_id"] == "task-1"
    assert execution.trigger_data["to_status"] == "done"
    assert "timestamp" in execution.trigger_data


async def test_one_crashing_workflow_does_not_stop_others(
    wiring, store, workflow_factory, monkeypatch
) -> None:
    store.workflows.add(workflow_factory(id="wf-1", actions=[NOTIFY_DONE]))
    store.workflows.add(workflow_factory(id="wf-2", actions=[NOTIFY_DONE]))
    original_run = wiring.engine.run

    async def run(workflow, trigger_data):
        if workflow.id == "wf-1":
            raise RuntimeError("boom")
        return await original_run(workflow, trigger_data)

    monkeypatch.setattr(wiring.engine, "run", run)

    executions = await wiring.engine.evaluate_workflows("task_status_changed", _done())

    assert [e.workflow_id for e in executions] == ["wf-2"]


async def test_spawned_evaluation_runs_in_background(wiring, store, workflow_factory) -> None:
    store.workflows.add(workflow_factory(actions=[NOTIFY_DONE]))

    wiring.engine.spawn_evaluation("task_status_changed", _done())
    await drain_background_tasks()

    assert len(store.executions.executions) == 1
