"""Workflow engine: match and execute workflows for a trigger (implements IWorkflowEngine)."""

from __future__ import annotations

import asyncio
from typing import Any

from taskflow.application.interfaces.repositories import (
    IWorkflowExecutionRepository,
    IWorkflowRepository,
)
from taskflow.application.interfaces.services import INotificationSink
from taskflow.application.services.trigger_matcher import TriggerMatcher
from taskflow.core.config import Settings, get_settings
from taskflow.core.constants import (
    NOTIFICATION_WORKFLOW_EXECUTED,
    NOTIFICATION_WORKFLOW_FAILED,
    NOTIFICATION_WORKFLOW_PARTIAL,
)
from taskflow.domain.entities.triggers import TriggerDataBase
from taskflow.domain.entities.workflow import (
    WorkflowDefinition,
    WorkflowExecution,
    WorkflowExecutionContext,
)
from taskflow.domain.exceptions import ActionExecutionException
from taskflow.infrastructure.services.action_executors import ActionExecutorRegistry
from taskflow.infrastructure.services.workflow_template_renderer import (
    WorkflowTemplateRenderer,
)
from taskflow.shared.enums import WorkflowExecutionStatus
from taskflow.shared.telemetry.logging import get_logger
from taskflow.shared.telemetry.tracing import add_span_attributes, traced
from taskflow.shared.utils.background import spawn_guarded

logger = get_logger(__name__)

NO_ACTIONS_ERROR = "Workflow has no actions"

# status -> (template key, notification type, priority)
_OWNER_NOTIFICATIONS: dict[WorkflowExecutionStatus, tuple[str, str, str]] = {
    WorkflowExecutionStatus.SUCCESS: (
        "workflow_executed",
        NOTIFICATION_WORKFLOW_EXECUTED,
        "medium",
    ),
    WorkflowExecutionStatus.FAILED: (
        "workflow_failed",
        NOTIFICATION_WORKFLOW_FAILED,
        "high",
    ),
    WorkflowExecutionStatus.PARTIAL: (
        "workflow_partial",
        NOTIFICATION_WORKFLOW_PARTIAL,
        "medium",
    ),
}


class WorkflowEngine:
    """Finds and runs workflows for a trigger; records one execution per run."""

    def __init__(
        self,
        workflow_repo: IWorkflowRepository,
        execution_repo: IWorkflowExecutionRepository,
        matcher: TriggerMatcher,
        registry: ActionExecutorRegistry,
        *,
        notification_sink: INotificationSink | None = None,
        template_renderer: WorkflowTemplateRenderer | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.workflow_repo = workflow_repo
        self.execution_repo = execution_repo
        self.matcher = matcher
        self.registry = registry
        self._notification_sink = notification_sink
        self._template_renderer = template_renderer or WorkflowTemplateRenderer()
        self._settings = settings or get_settings()

    @traced("workflow.evaluate")
    async def evaluate_workflows(
        self, trigger_type: str, trigger_data: TriggerDataBase
    ) -> list[WorkflowExecution]:
        """Run every matching workflow, one isolated execution per match.

        Args:
            trigger_type: Trigger that fired.
            trigger_data: Event payload (typed per trigger).

        Returns:
            Executions in match order; a workflow whose run raised is omitted.
        """
        add_span_attributes(trigger_type=trigger_type, project_id=trigger_data.project_id)
        workflows = await self.matcher.select(trigger_type, trigger_data)
        executions: list[WorkflowExecution] = []
        for workflow in workflows:
            try:
                executions.append(await self.run(workflow, trigger_data))
            except Exception:
                logger.exception(
                    "Workflow %s crashed while handling %s", workflow.id, trigger_type
                )
        return executions

    def spawn_evaluation(
        self, trigger_type: str, trigger_data: TriggerDataBase
    ) -> asyncio.Task:
        """Evaluate in the background; failures are logged, never raised."""
        return spawn_guarded(
            self.evaluate_workflows(trigger_type, trigger_data),
            f"evaluate {trigger_type} in project {trigger_data.project_id}",
        )

    @traced("workflow.execute")
    async def execute_workflow(
        self, workflow_id: str, trigger_data: TriggerDataBase
    ) -> WorkflowExecution:
        """Load a workflow by id and run it.

        A definition that cannot be loaded (missing or store error) yields a
        failed execution without running any action.

        Args:
            workflow_id: Workflow to run.
            trigger_data: Event payload passed to every action.

        Returns:
            The execution record (id None when it could not be persisted).
        """
        add_span_attributes(workflow_id=workflow_id)
        try:
            workflow = await self.workflow_repo.get_by_id(workflow_id)
        except Exception as e:
            logger.exception("Failed to load workflow %s", workflow_id)
            return await self._record(
                workflow_id,
                trigger_data,
                [],
                WorkflowExecutionStatus.FAILED,
                f"Failed to load workflow: {e}",
            )
        if workflow is None:
            logger.warning("Workflow %s not found", workflow_id)
            return await self._record(
                workflow_id,
                trigger_data,
                [],
                WorkflowExecutionStatus.FAILED,
                f"Workflow not found: {workflow_id}",
            )
        return await self.run(workflow, trigger_data)

    async def run(
        self, workflow: WorkflowDefinition, trigger_data: TriggerDataBase
    ) -> WorkflowExecution:
        """Run a loaded workflow's actions in order and record the outcome."""
        if not workflow.actions:
            logger.warning("Workflow %s has no actions, not running", workflow.id)
            execution = await self._record(
                workflow.id, trigger_data, [], WorkflowExecutionStatus.FAILED, NO_ACTIONS_ERROR
            )
            await self._notify_owner(workflow, execution, trigger_data)
            return execution

        context = WorkflowExecutionContext.build(workflow, trigger_data)
        status = WorkflowExecutionStatus.SUCCESS
        error_message: str | None = None
        executed: list[dict[str, Any]] = []

        for index, action in enumerate(workflow.actions):
            try:
                result = await self.registry.execute(action, context)
            except ActionExecutionException as e:
                logger.warning(
                    "Workflow %s action #%s (%s) failed: %s",
                    workflow.id,
                    index,
                    action.type,
                    e.reason,
                )
                status = WorkflowExecutionStatus.PARTIAL
                if error_message is None:
                    error_message = f"Failed to execute action: {action.type}: {e.reason}"
                continue
            executed.append(action.model_dump(mode="json"))
            logger.debug("Workflow %s action #%s (%s): %s", workflow.id, index, action.type, result)

        logger.info(
            "Workflow %s (%s) finished: %s, %s/%s action(s) executed",
            workflow.id,
            workflow.name,
            status.value,
            len(executed),
            len(workflow.actions),
        )
        execution = await self._record(workflow.id, trigger_data, executed, status, error_message)
        await self._notify_owner(workflow, execution, trigger_data)
        return execution

    async def _record(
        self,
        workflow_id: str,
        trigger_data: TriggerDataBase,
        executed: list[dict[str, Any]],
        status: WorkflowExecutionStatus,
        error_message: str | None,
    ) -> WorkflowExecution:
        """Persist the execution once; on failure return it unsaved."""
        execution = WorkflowExecution(
            workflow_id=workflow_id,
            trigger_data=trigger_data.archive(),
            executed_actions=executed,
            status=status,
            error_message=error_message,
        )
        try:
            return await self.execution_repo.insert(execution)
        except Exception:
            logger.exception(
                "Failed to record execution of workflow %s (status=%s)",
                workflow_id,
                status.value,
            )
            return execution

    async def _notify_owner(
        self,
        workflow: WorkflowDefinition,
        execution: WorkflowExecution,
        trigger_data: TriggerDataBase,
    ) -> None:
        """Tell the workflow creator how the run went; never raises."""
        if self._notification_sink is None:
            return
        if (
            execution.status == WorkflowExecutionStatus.PARTIAL
            and not self._settings.notify_on_partial
        ):
            return
        route = _OWNER_NOTIFICATIONS.get(execution.status)
        if route is None:
            return
        template_key, notification_type, priority = route
        try:
            title, message = self._template_renderer.render(
                template_key, workflow=workflow, execution=execution
            )
            await self._notification_sink.send(
                workflow.created_by,
                title,
                message,
                notification_type=notification_type,
                priority=priority,
                metadata={
                    "workflow_id": workflow.id,
                    "workflow_name": workflow.name,
                    "execution_id": execution.id,
                    "execution_status": execution.status.value,
                    "executed_actions": len(execution.executed_actions),
                    "error": execution.error_message,
                },
                project_id=trigger_data.project_id,
            )
        except Exception:
            logger.exception(
                "Failed to notify owner %s of workflow %s", workflow.created_by, workflow.id
            )
