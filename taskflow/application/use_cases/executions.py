"""Execution management: history, stats, retry, cancel and delete."""

from __future__ import annotations

from pydantic import ValidationError

from taskflow.application.dtos.execution import ExecutionStats
from taskflow.application.interfaces.repositories import (
    IWorkflowExecutionRepository,
    IWorkflowRepository,
)
from taskflow.application.interfaces.services import IWorkflowEngine
from taskflow.domain.entities.triggers import parse_trigger_data
from taskflow.domain.entities.workflow import WorkflowExecution
from taskflow.domain.exceptions import (
    ResourceNotFoundException,
    ValidationException,
    WorkflowNotFoundException,
)
from taskflow.shared.enums import WorkflowExecutionStatus
from taskflow.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class ExecutionService:
    """Read and manage recorded workflow executions."""

    def __init__(
        self,
        execution_repo: IWorkflowExecutionRepository,
        workflow_repo: IWorkflowRepository,
        engine: IWorkflowEngine,
    ) -> None:
        self.execution_repo = execution_repo
        self.workflow_repo = workflow_repo
        self.engine = engine

    async def get_history(
        self, workflow_id: str | None = None, limit: int = 50
    ) -> list[WorkflowExecution]:
        """Most recent executions first, optionally for one workflow."""
        return await self.execution_repo.list_recent(workflow_id=workflow_id, limit=limit)

    async def get_execution(self, execution_id: str) -> WorkflowExecution:
        """Return execution by id; raise ResourceNotFoundException if missing."""
        execution = await self.execution_repo.get_by_id(execution_id)
        if execution is None:
            raise ResourceNotFoundException("workflow_execution", execution_id)
        return execution

    async def get_stats(self, workflow_id: str | None = None) -> ExecutionStats:
        """Counts by status and success rate (percent of all executions)."""
        counts = await self.execution_repo.count_by_status(workflow_id=workflow_id)
        total = sum(counts.values())
        success = counts.get(WorkflowExecutionStatus.SUCCESS.value, 0)
        return ExecutionStats(
            total=total,
            success=success,
            partial=counts.get(WorkflowExecutionStatus.PARTIAL.value, 0),
            failed=counts.get(WorkflowExecutionStatus.FAILED.value, 0),
            success_rate=round(success / total * 100, 2) if total else 0.0,
        )

    async def retry_execution(self, execution_id: str) -> WorkflowExecution:
        """Re-run the execution's workflow with its archived trigger data.

        Args:
            execution_id: Execution to retry.

        Returns:
            The new execution record.

        Raises:
            ResourceNotFoundException: Execution (or its workflow) not found.
            ValidationException: Archived trigger data can no longer be parsed.
        """
        execution = await self.get_execution(execution_id)
        payload = dict(execution.trigger_data)
        trigger_type = payload.pop("trigger_type", None)
        if not trigger_type:
            workflow = await self.workflow_repo.get_by_id(execution.workflow_id)
            if workflow is None:
                raise WorkflowNotFoundException(execution.workflow_id)
            trigger_type = workflow.trigger_type.value
        try:
            trigger_data = parse_trigger_data(trigger_type, payload)
        except ValidationError as e:
            raise ValidationException(
                f"Stored trigger data is not valid for {trigger_type}: {e.error_count()} error(s)",
                field="trigger_data",
            ) from e
        logger.info("Retrying execution %s of workflow %s", execution_id, execution.workflow_id)
        return await self.engine.execute_workflow(execution.workflow_id, trigger_data)

    async def cancel_execution(self, execution_id: str) -> WorkflowExecution:
        """Mark a running execution as cancelled; other statuses are final."""
        execution = await self.get_execution(execution_id)
        if execution.status != WorkflowExecutionStatus.RUNNING:
            raise ValidationException(
                f"Only running executions can be cancelled (status: {execution.status.value})",
                field="status",
            )
        updated = await self.execution_repo.update_status(
            execution_id, WorkflowExecutionStatus.CANCELLED.value
        )
        if updated is None:
            raise ResourceNotFoundException("workflow_execution", execution_id)
        logger.info("Execution %s cancelled", execution_id)
        return updated

    async def delete_execution(self, execution_id: str) -> None:
        """Delete an execution record; raise ResourceNotFoundException if missing."""
        if not await self.execution_repo.delete(execution_id):
            raise ResourceNotFoundException("workflow_execution", execution_id)
        logger.info("Execution %s deleted", execution_id)
