"""Execution API: thin routes delegating to ExecutionService."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response

from taskflow.api.v1.dependencies import WorkflowServices, get_services
from taskflow.schemas.execution import ExecutionStatsResponse, WorkflowExecutionResponse

router = APIRouter()


@router.get("", response_model=list[WorkflowExecutionResponse])
async def list_executions(
    services: Annotated[WorkflowServices, Depends(get_services)],
    workflow_id: str | None = Query(None),
    limit: int = Query(50, ge=1, le=500),
):
    """Most recent executions first, optionally for one workflow."""
    executions = await services.executions.get_history(workflow_id=workflow_id, limit=limit)
    return [WorkflowExecutionResponse.model_validate(e) for e in executions]


@router.get("/stats", response_model=ExecutionStatsResponse)
async def get_execution_stats(
    services: Annotated[WorkflowServices, Depends(get_services)],
    workflow_id: str | None = Query(None),
):
    stats = await services.executions.get_stats(workflow_id=workflow_id)
    return ExecutionStatsResponse.model_validate(stats)


@router.get("/{execution_id}", response_model=WorkflowExecutionResponse)
async def get_execution(
    execution_id: str,
    services: Annotated[WorkflowServices, Depends(get_services)],
):
    execution = await services.executions.get_execution(execution_id)
    return WorkflowExecutionResponse.model_validate(execution)


@router.post("/{execution_id}/retry", response_model=WorkflowExecutionResponse)
async def retry_execution(
    execution_id: str,
    services: Annotated[WorkflowServices, Depends(get_services)],
):
    """Run the workflow again with the execution's archived trigger data."""
    execution = await services.executions.retry_execution(execution_id)
    return WorkflowExecutionResponse.model_validate(execution)


@router.post("/{execution_id}/cancel", response_model=WorkflowExecutionResponse)
async def cancel_execution(
    execution_id: str,
    services: Annotated[WorkflowServices, Depends(get_services)],
):
    """Cancel a running execution (400 for any other status)."""
    execution = await services.executions.cancel_execution(execution_id)
    return WorkflowExecutionResponse.model_validate(execution)


@router.delete("/{execution_id}", status_code=204)
async def delete_execution(
    execution_id: str,
    services: Annotated[WorkflowServices, Depends(get_services)],
) -> Response:
    await services.executions.delete_execution(execution_id)
    return Response(status_code=204)
