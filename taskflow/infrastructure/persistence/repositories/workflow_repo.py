"""Workflow definition and execution repositories (implement IWorkflowRepository, IWorkflowExecutionRepository)."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import ValidationError
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from taskflow.domain.entities.workflow import WorkflowDefinition
from taskflow.domain.entities.workflow import WorkflowExecution as WorkflowExecutionEntity
from taskflow.infrastructure.persistence.models.workflow import Workflow, WorkflowExecution
from taskflow.shared.telemetry.logging import get_logger
from taskflow.shared.utils.datetime import ensure_utc
from taskflow.shared.utils.generators import generate_cuid

logger = get_logger(__name__)


def _to_definition(row: Workflow) -> WorkflowDefinition:
    """Map Workflow ORM to the domain definition (validates trigger config and actions)."""
    data: dict[str, Any] = {
        "id": row.id,
        "project_id": row.project_id,
        "name": row.name,
        "description": row.description,
        "is_active": row.is_active,
        "trigger_type": row.trigger_type,
        "trigger_config": row.trigger_config,
        "conditions": row.conditions,
        "actions": row.actions,
        "created_by": row.created_by,
        "created_at": ensure_utc(row.created_at),
        "updated_at": ensure_utc(row.updated_at),
        "last_executed": ensure_utc(row.last_executed),
    }
    return WorkflowDefinition.model_validate(data)


def _to_execution(row: WorkflowExecution) -> WorkflowExecutionEntity:
    return WorkflowExecutionEntity(
        id=row.id,
        workflow_id=row.workflow_id,
        trigger_data=row.trigger_data or {},
        executed_actions=row.executed_actions or [],
        status=row.status,
        error_message=row.error_message,
        execution_time=ensure_utc(row.execution_time),
    )


class WorkflowRepository:
    """Workflow definition repository. Implements IWorkflowRepository."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def get_by_id(self, workflow_id: str) -> WorkflowDefinition | None:
        """Return the definition or None. Raises ValidationError for a malformed row."""
        async with self.session_factory() as session:
            row = await session.get(Workflow, workflow_id)
            return _to_definition(row) if row is not None else None

    async def _list(self, *criteria: Any) -> list[WorkflowDefinition]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Workflow)
                .where(Workflow.is_active.is_(True), *criteria)
                .order_by(Workflow.created_at.asc())
            )
            rows = list(result.scalars().all())
        definitions: list[WorkflowDefinition] = []
        for row in rows:
            try:
                definitions.append(_to_definition(row))
            except ValidationError:
                logger.exception("Skipping malformed workflow definition %s", row.id)
        return definitions

    async def list_active(
        self, project_id: str, trigger_type: str
    ) -> list[WorkflowDefinition]:
        return await self._list(
            Workflow.project_id == project_id, Workflow.trigger_type == trigger_type
        )

    async def list_active_by_trigger(self, trigger_type: str) -> list[WorkflowDefinition]:
        return await self._list(Workflow.trigger_type == trigger_type)

    async def update_last_executed(self, workflow_id: str, executed_at: datetime) -> None:
        async with self.session_factory.begin() as session:
            await session.execute(
                update(Workflow)
                .where(Workflow.id == workflow_id)
                .values(last_executed=ensure_utc(executed_at))
            )

    async def claim_scheduled_run(
        self,
        workflow_id: str,
        expected_last_executed: datetime | None,
        executed_at: datetime,
    ) -> bool:
        """Set last_executed only if it still equals expected_last_executed."""
        if expected_last_executed is None:
            current = Workflow.last_executed.is_(None)
        else:
            current = Workflow.last_executed == ensure_utc(expected_last_executed)
        async with self.session_factory.begin() as session:
            result = await session.execute(
                update(Workflow)
                .where(Workflow.id == workflow_id, current)
                .values(last_executed=ensure_utc(executed_at))
            )
            return result.rowcount == 1


class WorkflowExecutionRepository:
    """Execution audit trail. Implements IWorkflowExecutionRepository."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def insert(self, execution: WorkflowExecutionEntity) -> WorkflowExecutionEntity:
        """Persist a new execution record; return it with its id."""
        row = WorkflowExecution(
            id=execution.id or generate_cuid(),
            workflow_id=execution.workflow_id,
            trigger_data=execution.trigger_data,
            executed_actions=execution.executed_actions,
            status=execution.status.value,
            error_message=execution.error_message,
            execution_time=ensure_utc(execution.execution_time),
        )
        async with self.session_factory.begin() as session:
            session.add(row)
            await session.flush()
        return execution.model_copy(update={"id": row.id})

    async def get_by_id(self, execution_id: str) -> WorkflowExecutionEntity | None:
        async with self.session_factory() as session:
            row = await session.get(WorkflowExecution, execution_id)
            return _to_execution(row) if row is not None else None

    async def list_recent(
        self, workflow_id: str | None = None, limit: int = 50
    ) -> list[WorkflowExecutionEntity]:
        q = select(WorkflowExecution)
        if workflow_id:
            q = q.where(WorkflowExecution.workflow_id == workflow_id)
        q = q.order_by(WorkflowExecution.execution_time.desc()).limit(limit)
        async with self.session_factory() as session:
            result = await session.execute(q)
            return [_to_execution(row) for row in result.scalars().all()]

    async def count_by_status(self, workflow_id: str | None = None) -> dict[str, int]:
        q = select(WorkflowExecution.status, func.count(WorkflowExecution.id))
        if workflow_id:
            q = q.where(WorkflowExecution.workflow_id == workflow_id)
        q = q.group_by(WorkflowExecution.status)
        async with self.session_factory() as session:
            result = await session.execute(q)
            return {status: count for status, count in result.all()}

    async def update_status(
        self,
        execution_id: str,
        status: str,
        error_message: str | None = None,
    ) -> WorkflowExecutionEntity | None:
        async with self.session_factory.begin() as session:
            row = await session.get(WorkflowExecution, execution_id)
            if row is None:
                return None
            row.status = status
            if error_message is not None:
                row.error_message = error_message
            await session.flush()
            return _to_execution(row)

    async def delete(self, execution_id: str) -> bool:
        async with self.session_factory.begin() as session:
            result = await session.execute(
                delete(WorkflowExecution).where(WorkflowExecution.id == execution_id)
            )
            return result.rowcount > 0
