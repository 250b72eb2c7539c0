"""Trigger emitters: typed helpers that raise workflow events from CRUD flows.

Callers are task, comment and file flows that must not fail because
automation failed, so every emitter logs and swallows errors.
"""

from __future__ import annotations

from typing import Any

from taskflow.application.interfaces.services import IWorkflowEngine
from taskflow.domain.entities.triggers import (
    CommentAddedData,
    CustomFieldChangedData,
    FileUploadedData,
    TaskAssignedData,
    TaskCreatedData,
    TaskStatusChangedData,
    TriggerDataBase,
    parse_trigger_data,
)
from taskflow.domain.entities.workflow import WorkflowExecution
from taskflow.shared.enums import TriggerType
from taskflow.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class WorkflowTriggers:
    """Build trigger data for common events and evaluate matching workflows."""

    def __init__(self, engine: IWorkflowEngine) -> None:
        self.engine = engine

    async def _emit(
        self, trigger_type: TriggerType, trigger_data: TriggerDataBase
    ) -> list[WorkflowExecution]:
        try:
            return await self.engine.evaluate_workflows(trigger_type.value, trigger_data)
        except Exception:
            logger.exception(
                "Workflow trigger %s failed for project %s",
                trigger_type.value,
                trigger_data.project_id,
            )
            return []

    async def on_task_status_changed(
        self,
        task_id: str,
        project_id: str,
        from_status: str,
        to_status: str,
        user_id: str | None = None,
    ) -> list[WorkflowExecution]:
        return await self._emit(
            TriggerType.TASK_STATUS_CHANGED,
            TaskStatusChangedData(
                project_id=project_id,
                task_id=task_id,
                from_status=from_status,
                to_status=to_status,
                user_id=user_id,
            ),
        )

    async def on_task_created(
        self,
        task_id: str,
        project_id: str,
        created_by: str | None = None,
        assigned_to: str | None = None,
    ) -> list[WorkflowExecution]:
        return await self._emit(
            TriggerType.TASK_CREATED,
            TaskCreatedData(
                project_id=project_id,
                task_id=task_id,
                created_by=created_by,
                assigned_to=assigned_to,
            ),
        )

    async def on_task_assigned(
        self,
        task_id: str,
        project_id: str,
        from_user: str | None,
        to_user: str | None,
        assigned_by: str | None = None,
    ) -> list[WorkflowExecution]:
        return await self._emit(
            TriggerType.TASK_ASSIGNED,
            TaskAssignedData(
                project_id=project_id,
                task_id=task_id,
                from_user=from_user,
                to_user=to_user,
                assigned_by=assigned_by,
            ),
        )

    async def on_file_uploaded(
        self,
        project_id: str,
        file_name: str,
        file_id: str | None = None,
        file_type: str | None = None,
        uploaded_by: str | None = None,
        task_id: str | None = None,
    ) -> list[WorkflowExecution]:
        return await self._emit(
            TriggerType.FILE_UPLOADED,
            FileUploadedData(
                project_id=project_id,
                task_id=task_id,
                file_id=file_id,
                file_name=file_name,
                file_type=file_type,
                uploaded_by=uploaded_by,
            ),
        )

    async def on_custom_field_changed(
        self,
        project_id: str,
        entity_type: str,
        entity_id: str,
        field_id: str,
        from_value: Any,
        to_value: Any,
        changed_by: str | None = None,
    ) -> list[WorkflowExecution]:
        """Emit custom_field_changed; task_id is set when the entity is a task."""
        try:
            trigger_data = CustomFieldChangedData(
                project_id=project_id,
                task_id=entity_id if entity_type == "task" else None,
                entity_type=entity_type,
                entity_id=entity_id,
                field_id=field_id,
                from_value=from_value,
                to_value=to_value,
                changed_by=changed_by,
            )
        except ValueError:
            logger.exception("Invalid custom_field_changed event for %s %s", entity_type, entity_id)
            return []
        return await self._emit(TriggerType.CUSTOM_FIELD_CHANGED, trigger_data)

    async def on_comment_added(
        self,
        task_id: str,
        project_id: str,
        comment_id: str | None = None,
        comment: str | None = None,
        created_by: str | None = None,
    ) -> list[WorkflowExecution]:
        return await self._emit(
            TriggerType.COMMENT_ADDED,
            CommentAddedData(
                project_id=project_id,
                task_id=task_id,
                comment_id=comment_id,
                comment=comment,
                created_by=created_by,
            ),
        )

    async def trigger_manual(
        self, trigger_type: str, payload: dict[str, Any]
    ) -> list[WorkflowExecution]:
        """Raise any trigger type from a raw payload (admin tools, tests)."""
        try:
            kind = TriggerType(trigger_type)
            trigger_data = parse_trigger_data(kind.value, payload)
        except ValueError:
            logger.exception("Invalid manual trigger %s", trigger_type)
            return []
        return await self._emit(kind, trigger_data)
