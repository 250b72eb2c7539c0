"""Scheduler API schemas."""

from pydantic import BaseModel, ConfigDict, Field


class SchedulerRunResponse(BaseModel):
    """Result of one POST /scheduler/run tick."""

    model_config = ConfigDict(from_attributes=True)

    due_date_executions: int = 0
    scheduled_executions: int = 0
    overdue_notifications: int = 0
    errors: list[str] = Field(default_factory=list, description="Sweeps that failed")
