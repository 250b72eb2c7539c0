"""Workflow API schemas."""

from typing import Any

from pydantic import BaseModel, Field


class TriggerEventAccepted(BaseModel):
    """Response for POST /workflows/events/{trigger_type} (202)."""

    trigger_type: str
    project_id: str
    status: str = Field(default="accepted", description="Evaluation runs in the background")


class WorkflowExecuteRequest(BaseModel):
    """Request body for running one workflow directly."""

    trigger_data: dict[str, Any] = Field(
        default_factory=dict,
        description="Trigger payload; project_id defaults to the workflow's project",
    )
    trigger_type: str | None = Field(
        default=None,
        description="Payload shape to parse; defaults to the workflow's trigger type",
    )


class VariablesResponse(BaseModel):
    """Substitution tokens grouped by category."""

    variables: dict[str, list[str]]
