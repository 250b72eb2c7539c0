"""Workflow API: raise trigger events, run a workflow directly, list variables."""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends
from pydantic import ValidationError

from taskflow.api.v1.dependencies import WorkflowServices, get_services
from taskflow.application.services.variable_substitution import VariableSubstitution
from taskflow.domain.entities.triggers import TriggerDataBase, parse_trigger_data
from taskflow.domain.exceptions import ValidationException, WorkflowNotFoundException
from taskflow.schemas.execution import WorkflowExecutionResponse
from taskflow.schemas.workflow import (
    TriggerEventAccepted,
    VariablesResponse,
    WorkflowExecuteRequest,
)
from taskflow.shared.enums import TriggerType

router = APIRouter()


def _parse(trigger_type: str, payload: dict[str, Any]) -> TriggerDataBase:
    if trigger_type not in TriggerType.values():
        raise ValidationException(
            f"Unknown trigger type: {trigger_type}", field="trigger_type"
        )
    try:
        return parse_trigger_data(trigger_type, payload)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ValidationException(
            f"Invalid {trigger_type} payload: {location}: {first['msg']}",
            field="trigger_data",
        ) from e


@router.post(
    "/events/{trigger_type}",
    response_model=TriggerEventAccepted,
    status_code=202,
)
async def raise_trigger_event(
    trigger_type: str,
    payload: Annotated[dict[str, Any], Body()],
    services: Annotated[WorkflowServices, Depends(get_services)],
):
    """Accept an event and evaluate matching workflows in the background."""
    trigger_data = _parse(trigger_type, payload)
    services.engine.spawn_evaluation(trigger_type, trigger_data)
    return TriggerEventAccepted(
        trigger_type=trigger_type, project_id=trigger_data.project_id
    )


@router.get("/variables", response_model=VariablesResponse)
def list_variables() -> VariablesResponse:
    """Substitution tokens usable in action configs."""
    return VariablesResponse(variables=VariableSubstitution.available_variables())


@router.post("/{workflow_id}/execute", response_model=WorkflowExecutionResponse)
async def execute_workflow(
    workflow_id: str,
    body: WorkflowExecuteRequest,
    services: Annotated[WorkflowServices, Depends(get_services)],
):
    """Run one workflow now, bypassing trigger matching."""
    workflow = await services.workflow_repo.get_by_id(workflow_id)
    if workflow is None:
        raise WorkflowNotFoundException(workflow_id)
    trigger_type = body.trigger_type or workflow.trigger_type.value
    trigger_data = _parse(
        trigger_type, {"project_id": workflow.project_id, **body.trigger_data}
    )
    execution = await services.engine.execute_workflow(workflow_id, trigger_data)
    return WorkflowExecutionResponse.model_validate(execution)
