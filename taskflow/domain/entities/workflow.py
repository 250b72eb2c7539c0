"""Workflow definition, execution context and execution record.

A workflow is a definition: trigger type + trigger config, a generic
conditions side table, and an ordered list of actions. An execution is the
immutable audit record of one run attempt.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from taskflow.domain.entities.actions import Action
from taskflow.domain.entities.triggers import TriggerConfig, TriggerDataBase
from taskflow.shared.enums import TriggerType, WorkflowExecutionStatus
from taskflow.shared.utils.datetime import utc_now


class WorkflowDefinition(BaseModel):
    """Domain entity for a workflow definition (trigger + conditions + actions)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    project_id: str
    name: str
    description: str | None = None
    is_active: bool = True
    trigger_type: TriggerType
    trigger_config: TriggerConfig
    conditions: dict[str, Any] = Field(default_factory=dict)
    actions: list[Action] = Field(default_factory=list)
    created_by: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_executed: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def tag_trigger_config(cls, data: Any) -> Any:
        """Key trigger_config by the definition's trigger_type."""
        if not isinstance(data, dict):
            return data
        trigger_type = data.get("trigger_type")
        if isinstance(trigger_type, TriggerType):
            trigger_type = trigger_type.value
        config = data.get("trigger_config")
        if isinstance(config, BaseModel):
            return data
        config = dict(config or {})
        config["trigger_type"] = trigger_type
        return {
            **data,
            "trigger_config": config,
            "conditions": data.get("conditions") or {},
            "actions": data.get("actions") or [],
        }

    def can_trigger_on(self, trigger_type: str) -> bool:
        """Return whether this workflow is active and listens for trigger_type."""
        return self.is_active and self.trigger_type == trigger_type

    def config_dict(self) -> dict[str, Any]:
        """Trigger config as stored (without the injected trigger_type key)."""
        return self.trigger_config.model_dump(mode="json", exclude={"trigger_type"})

    def actions_dump(self) -> list[dict[str, Any]]:
        return [action.model_dump(mode="json") for action in self.actions]


class WorkflowExecutionContext(BaseModel):
    """Per-run context built once by the engine and shared by every action."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    project_id: str
    trigger_data: TriggerDataBase
    workflow: WorkflowDefinition

    @classmethod
    def build(
        cls, workflow: WorkflowDefinition, trigger_data: TriggerDataBase
    ) -> "WorkflowExecutionContext":
        """Resolve the acting user (falling back to the workflow creator)."""
        return cls(
            user_id=trigger_data.acting_user_id() or workflow.created_by,
            project_id=trigger_data.project_id or workflow.project_id,
            trigger_data=trigger_data,
            workflow=workflow,
        )


class WorkflowExecution(BaseModel):
    """Audit record of one workflow run. id is None when it could not be saved."""

    model_config = ConfigDict(from_attributes=True)

    id: str | None = None
    workflow_id: str
    trigger_data: dict[str, Any] = Field(default_factory=dict)
    executed_actions: list[dict[str, Any]] = Field(default_factory=list)
    status: WorkflowExecutionStatus
    error_message: str | None = None
    execution_time: datetime = Field(default_factory=utc_now)

    @property
    def is_saved(self) -> bool:
        return self.id is not None
