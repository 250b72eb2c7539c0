"""Workflow, execution and scheduler endpoints over the in-memory store."""

import pytest
from httpx import AsyncClient

from taskflow.api.v1 import dependencies
from taskflow.api.v1.dependencies import WorkflowServices, get_services
from taskflow.application.use_cases.triggers import WorkflowTriggers
from taskflow.core.config import Settings
from taskflow.domain.entities.workflow import WorkflowDefinition, WorkflowExecution
from taskflow.main import app
from taskflow.shared.enums import WorkflowExecutionStatus
from taskflow.shared.utils.background import drain_background_tasks

NOTIFY_DONE = {"type": "send_notification", "config": {"message": "{{task.title}} is done"}}
STATUS_EVENT = {
    "project_id": "proj-1",
    "task_id": "task-1",
    "from_status": "review",
    "to_status": "done",
}


@pytest.fixture
def api(client: AsyncClient, wiring) -> AsyncClient:
    """Client whose routes use the fake-store services."""
    services = WorkflowServices(
        engine=wiring.engine,
        scheduler=wiring.scheduler,
        executions=wiring.executions,
        triggers=WorkflowTriggers(wiring.engine),
        workflow_repo=wiring.store.workflows,
        substitution=wiring.substitution,
    )
    app.dependency_overrides[get_services] = lambda: services
    return client


async def test_health(client: AsyncClient) -> None:
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


async def test_event_is_accepted_and_evaluated(api: AsyncClient, store, workflow_factory) -> None:
    """POST /workflows/events/{type} returns 202; matching runs happen in the background."""
    store.workflows.add(workflow_factory(trigger_config={"to_status": "done"}, actions=[NOTIFY_DONE]))

    response = await api.post("/api/v1/workflows/events/task_status_changed", json=STATUS_EVENT)
    await drain_background_tasks()

    assert response.status_code == 202
    assert response.json() == {
        "trigger_type": "task_status_changed",
        "project_id": "proj-1",
        "status": "accepted",
    }
    assert "Paint wall is done" in store.messages()


async def test_unknown_trigger_type_is_rejected(api: AsyncClient) -> None:
    response = await api.post("/api/v1/workflows/events/task_deleted", json=STATUS_EVENT)
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "VALIDATION_ERROR"
    assert body["details"] == {"field": "trigger_type"}


async def test_invalid_payload_is_rejected(api: AsyncClient) -> None:
    response = await api.post(
        "/api/v1/workflows/events/task_status_changed", json={"project_id": "proj-1"}
    )
    assert response.status_code == 400
    message = response.json()["message"]
    assert message.startswith("Invalid task_status_changed payload:")
    assert "task_id" in message


async def test_execute_workflow_directly(api: AsyncClient, store, workflow_factory) -> None:
    """Project id defaults to the workflow's project."""
    store.workflows.add(workflow_factory(actions=[NOTIFY_DONE]))

    response = await api.post(
        "/api/v1/workflows/wf-1/execute",
        json={"trigger_data": {"task_id": "task-1", "from_status": "a", "to_status": "b"}},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["workflow_id"] == "wf-1"
    assert body["trigger_data"]["project_id"] == "proj-1"
    assert body["id"] in store.executions.executions


async def test_execute_missing_workflow_returns_404(api: AsyncClient) -> None:
    response = await api.post("/api/v1/workflows/ghost/execute", json={})
    assert response.status_code == 404
    assert response.json()["message"] == "Workflow not found: ghost"


async def test_list_variables(api: AsyncClient) -> None:
    response = await api.get("/api/v1/workflows/variables")
    assert response.status_code == 200
    assert "{{task.title}}" in response.json()["variables"]["Task Variables"]


async def _seed(store, status: WorkflowExecutionStatus) -> WorkflowExecution:
    return await store.executions.insert(
        WorkflowExecution(
            workflow_id="wf-1",
            status=status,
            trigger_data={"trigger_type": "task_status_changed", **STATUS_EVENT},
        )
    )


async def test_execution_history_and_stats(api: AsyncClient, store) -> None:
    await _seed(store, WorkflowExecutionStatus.SUCCESS)
    await _seed(store, WorkflowExecutionStatus.FAILED)

    history = await api.get("/api/v1/executions", params={"workflow_id": "wf-1"})
    assert history.status_code == 200
    assert len(history.json()) == 2

    stats = await api.get("/api/v1/executions/stats")
    assert stats.json() == {
        "total": 2,
        "success": 1,
        "partial": 0,
        "failed": 1,
        "success_rate": 50.0,
    }


async def test_history_limit_is_bounded(api: AsyncClient) -> None:
    response = await api.get("/api/v1/executions", params={"limit": 0})
    assert response.status_code == 422


async def test_get_execution(api: AsyncClient, store) -> None:
    execution = await _seed(store, WorkflowExecutionStatus.PARTIAL)

    found = await api.get(f"/api/v1/executions/{execution.id}")
    assert found.status_code == 200
    assert found.json()["status"] == "partial"

    missing = await api.get("/api/v1/executions/nope")
    assert missing.status_code == 404
    assert missing.json()["error"] == "RESOURCE_NOT_FOUND"


async def test_retry_execution(api: AsyncClient, store, workflow_factory) -> None:
    store.workflows.add(workflow_factory(actions=[NOTIFY_DONE]))
    execution = await _seed(store, WorkflowExecutionStatus.FAILED)

    response = await api.post(f"/api/v1/executions/{execution.id}/retry")

    assert response.status_code == 200
    assert response.json()["status"] == "success"
    assert response.json()["id"] != execution.id


async def test_cancel_execution(api: AsyncClient, store) -> None:
    running = await _seed(store, WorkflowExecutionStatus.RUNNING)
    done = await _seed(store, WorkflowExecutionStatus.SUCCESS)

    cancelled = await api.post(f"/api/v1/executions/{running.id}/cancel")
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"

    rejected = await api.post(f"/api/v1/executions/{done.id}/cancel")
    assert rejected.status_code == 400


async def test_delete_execution(api: AsyncClient, store) -> None:
    execution = await _seed(store, WorkflowExecutionStatus.SUCCESS)

    response = await api.delete(f"/api/v1/executions/{execution.id}")
    assert response.status_code == 204
    assert (await api.delete(f"/api/v1/executions/{execution.id}")).status_code == 404


async def test_scheduler_run_without_secret(api: AsyncClient, settings, monkeypatch) -> None:
    monkeypatch.setattr(dependencies, "get_settings", lambda: settings)
    response = await api.post("/api/v1/scheduler/run")
    assert response.status_code == 200
    assert response.json() == {
        "due_date_executions": 0,
        "scheduled_executions": 0,
        "overdue_notifications": 0,
        "errors": [],
    }


async def test_scheduler_secret_is_enforced(api: AsyncClient, monkeypatch) -> None:
    secured = Settings(_env_file=None, telemetry_enabled=False, scheduler_secret="s3cret")
    monkeypatch.setattr(dependencies, "get_settings", lambda: secured)

    missing = await api.post("/api/v1/scheduler/run")
    assert missing.status_code == 401
    assert missing.json()["error"] == "SCHEDULER_AUTH_ERROR"

    wrong = await api.post("/api/v1/scheduler/run", headers={"X-Scheduler-Secret": "nope"})
    assert wrong.status_code == 401

    ok = await api.post("/api/v1/scheduler/run", headers={"X-Scheduler-Secret": "s3cret"})
    assert ok.status_code == 200


async def test_index_lists_engine_capabilities(client: AsyncClient) -> None:
    response = await client.get("/")
    assert response.status_code == 200
    body = response.json()
    assert body["api"] == "/api/v1"
    assert "task_status_changed" in body["trigger_types"]
    assert "batch_update_tasks" in body["action_types"]


async def test_malformed_stored_workflow_is_reported(
    api: AsyncClient, store, monkeypatch
) -> None:
    async def get_by_id(workflow_id):
        return WorkflowDefinition.model_validate({"id": workflow_id})

    monkeypatch.setattr(store.workflows, "get_by_id", get_by_id)

    response = await api.post("/api/v1/workflows/wf-1/execute", json={})

    assert response.status_code == 500
    assert response.json()["error"] == "INVALID_STORED_DATA"
