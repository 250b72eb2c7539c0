"""Trigger matching and condition evaluation.

Selects the active workflows that should run for one trigger event: first by
(project, trigger type), then by the structural trigger config, then by the
generic conditions side table evaluated against the live task.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from taskflow.application.interfaces.repositories import ITaskRepository, IWorkflowRepository
from taskflow.domain.entities.triggers import (
    CustomFieldChangedConfig,
    TaskAssignedConfig,
    TaskCreatedConfig,
    TaskStatusChangedConfig,
    TriggerDataBase,
)
from taskflow.domain.entities.workflow import WorkflowDefinition
from taskflow.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


def _expected(expected: Any, actual: Any) -> bool:
    """Unset (None) expected values are wildcards."""
    return expected is None or expected == actual


class TriggerMatcher:
    """Finds workflows matching a trigger event. Read-only."""

    def __init__(
        self,
        workflow_repo: IWorkflowRepository,
        task_repo: ITaskRepository,
    ) -> None:
        self.workflow_repo = workflow_repo
        self.task_repo = task_repo

    async def find_candidates(
        self, trigger_type: str, trigger_data: TriggerDataBase
    ) -> list[WorkflowDefinition]:
        """Active workflows of the trigger's project for trigger_type ([] on error)."""
        try:
            workflows = await self.workflow_repo.list_active(
                trigger_data.project_id, trigger_type
            )
        except Exception:
            logger.exception(
                "Failed to load workflows for %s in project %s",
                trigger_type,
                trigger_data.project_id,
            )
            return []
        return [w for w in workflows if w.can_trigger_on(trigger_type)]

    def matches_trigger_config(
        self, workflow: WorkflowDefinition, trigger_data: TriggerDataBase
    ) -> bool:
        """Structural filter from the workflow's trigger config."""
        config = workflow.trigger_config
        if isinstance(config, TaskStatusChangedConfig):
            return _expected(config.from_status, trigger_data.get("from_status")) and _expected(
                config.to_status, trigger_data.get("to_status")
            )
        if isinstance(config, TaskCreatedConfig):
            return _expected(config.assigned_to, trigger_data.get("assigned_to"))
        if isinstance(config, TaskAssignedConfig):
            return _expected(config.from_user, trigger_data.get("from_user")) and _expected(
                config.to_user, trigger_data.get("to_user")
            )
        if isinstance(config, CustomFieldChangedConfig):
            return (
                _expected(config.field_id, trigger_data.get("field_id"))
                and _expected(config.from_value, trigger_data.get("from_value"))
                and _expected(config.to_value, trigger_data.get("to_value"))
            )
        return True

    async def matches_conditions(
        self, workflow: WorkflowDefinition, trigger_data: TriggerDataBase
    ) -> bool:
        """Every condition key must equal the same attribute of the triggering task.

        Fails closed: a missing task id, a missing task or an unknown
        attribute means no match.
        """
        if not workflow.conditions:
            return True

        task_id = trigger_data.task_id
        if not task_id and trigger_data.get("entity_type") == "task":
            task_id = trigger_data.get("entity_id")
        if not task_id:
            logger.warning(
                "Workflow %s has conditions but trigger carries no task, failing closed",
                workflow.id,
            )
            return False

        task = await self.task_repo.get_by_id(task_id)
        if task is None:
            logger.warning(
                "Task %s not found for conditions of workflow %s, failing closed",
                task_id,
                workflow.id,
            )
            return False

        for key, expected_value in workflow.conditions.items():
            if not hasattr(task, key):
                logger.warning(
                    "Unknown condition key '%s' in workflow %s, failing closed",
                    key,
                    workflow.id,
                )
                return False
            actual = getattr(task, key)
            if isinstance(actual, date):
                actual = actual.isoformat()
            if actual != expected_value:
                return False
        return True

    async def select(
        self, trigger_type: str, trigger_data: TriggerDataBase
    ) -> list[WorkflowDefinition]:
        """Candidates that pass both the trigger config and the conditions."""
        selected: list[WorkflowDefinition] = []
        for workflow in await self.find_candidates(trigger_type, trigger_data):
            try:
                if not self.matches_trigger_config(workflow, trigger_data):
                    continue
                if not await self.matches_conditions(workflow, trigger_data):
                    continue
            except Exception:
                logger.exception("Failed to match workflow %s, skipping", workflow.id)
                continue
            selected.append(workflow)
        logger.info(
            "Trigger %s in project %s matched %s workflow(s)",
            trigger_type,
            trigger_data.project_id,
            len(selected),
        )
        return selected
