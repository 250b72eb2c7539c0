"""Workflow execution API schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from taskflow.shared.enums import WorkflowExecutionStatus


class WorkflowExecutionResponse(BaseModel):
    """Workflow execution response."""

    model_config = ConfigDict(from_attributes=True)

    id: str | None = Field(None, description="None when the record could not be saved")
    workflow_id: str
    trigger_data: dict[str, Any]
    executed_actions: list[dict[str, Any]]
    status: WorkflowExecutionStatus
    error_message: str | None
    execution_time: datetime


class ExecutionStatsResponse(BaseModel):
    """Execution counts by status."""

    model_config = ConfigDict(from_attributes=True)

    total: int
    success: int
    partial: int
    failed: int
    success_rate: float = Field(..., description="Percent of executions that succeeded")
