"""Task and task comment repositories (implement ITaskRepository, ICommentRepository)."""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from taskflow.application.dtos.task import (
    CommentCreate,
    TaskChanges,
    TaskCreate,
    TaskQuery,
    TaskRecord,
)
from taskflow.infrastructure.persistence.models.task import Task, TaskComment
from taskflow.shared.utils.datetime import ensure_utc, utc_now


def _to_record(t: Task) -> TaskRecord:
    """Map Task ORM to TaskRecord DTO."""
    return TaskRecord(
        id=t.id,
        project_id=t.project_id,
        title=t.title,
        status=t.status,
        priority=t.priority,
        created_by=t.created_by,
        description=t.description,
        assigned_to=t.assigned_to,
        due_date=t.due_date,
        parent_task_id=t.parent_task_id,
        created_at=ensure_utc(t.created_at),
        updated_at=ensure_utc(t.updated_at),
    )


class TaskRepository:
    """Task repository. Implements ITaskRepository."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def get_by_id(self, task_id: str) -> TaskRecord | None:
        async with self.session_factory() as session:
            task = await session.get(Task, task_id)
            return _to_record(task) if task is not None else None

    async def create(self, data: TaskCreate) -> TaskRecord:
        """Create a task and return the record."""
        task = Task(
            project_id=data.project_id,
            title=data.title,
            description=data.description,
            status=data.status,
            priority=data.priority,
            assigned_to=data.assigned_to,
            created_by=data.created_by,
            due_date=data.due_date,
            parent_task_id=data.parent_task_id,
        )
        async with self.session_factory.begin() as session:
            session.add(task)
            await session.flush()
            await session.refresh(task)
            return _to_record(task)

    async def update(self, task_id: str, changes: TaskChanges) -> TaskRecord | None:
        """Apply the set fields of changes; None when the task does not exist."""
        async with self.session_factory.begin() as session:
            task = await session.get(Task, task_id)
            if task is None:
                return None
            for key, value in changes.as_dict().items():
                setattr(task, key, value)
            task.updated_at = utc_now()
            await session.flush()
            await session.refresh(task)
            return _to_record(task)

    async def find(self, query: TaskQuery) -> list[TaskRecord]:
        q = select(Task)
        if query.project_id:
            q = q.where(Task.project_id == query.project_id)
        if query.statuses:
            q = q.where(Task.status.in_(query.statuses))
        if query.exclude_status:
            q = q.where(Task.status != query.exclude_status)
        if query.assigned_to:
            q = q.where(Task.assigned_to == query.assigned_to)
        if query.priorities:
            q = q.where(Task.priority.in_(query.priorities))
        if query.due_date:
            q = q.where(Task.due_date == query.due_date)
        if query.due_before:
            q = q.where(Task.due_date.is_not(None), Task.due_date < query.due_before)
        q = q.order_by(Task.created_at.asc(), Task.id.asc())
        if query.limit:
            q = q.limit(query.limit)
        async with self.session_factory() as session:
            result = await session.execute(q)
            return [_to_record(t) for t in result.scalars().all()]

    async def update_many(self, task_ids: list[str], changes: TaskChanges) -> int:
        """One bulk UPDATE over task_ids; returns the number of rows changed."""
        values = changes.as_dict()
        if not task_ids or not values:
            return 0
        async with self.session_factory.begin() as session:
            result = await session.execute(
                update(Task)
                .where(Task.id.in_(task_ids))
                .values(**values, updated_at=utc_now())
            )
            return result.rowcount


class CommentRepository:
    """Task comment repository. Implements ICommentRepository."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def create(self, data: CommentCreate) -> str:
        comment = TaskComment(
            task_id=data.task_id,
            user_id=data.user_id,
            content=data.content,
            is_system_comment=data.is_system_comment,
            comment_metadata=data.metadata or None,
        )
        async with self.session_factory.begin() as session:
            session.add(comment)
            await session.flush()
            return comment.id
