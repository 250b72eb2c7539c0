"""Task and task comment ORM models."""

from datetime import date
from typing import Any

import sqlalchemy as sa
from sqlalchemy import JSON, Boolean, Date, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from taskflow.core.constants import DEFAULT_PRIORITY, DEFAULT_TASK_STATUS
from taskflow.infrastructure.persistence.database import Base
from taskflow.infrastructure.persistence.models.mixins import (
    CreatedAtMixin,
    CuidMixin,
    TimestampMixin,
)


class Task(CuidMixin, TimestampMixin, Base):
    """Task. Table: tasks."""

    __tablename__ = "tasks"

    project_id: Mapped[str] = mapped_column(
        String, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=DEFAULT_TASK_STATUS, server_default=DEFAULT_TASK_STATUS
    )
    priority: Mapped[str] = mapped_column(
        String(32), nullable=False, default=DEFAULT_PRIORITY, server_default=DEFAULT_PRIORITY
    )
    assigned_to: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    created_by: Mapped[str] = mapped_column(String, nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    parent_task_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True
    )

    __table_args__ = (
        Index("ix_tasks_project_status", "project_id", "status"),
    )


class TaskComment(CuidMixin, CreatedAtMixin, Base):
    """Task comment (user or system). Table: task_comments."""

    __tablename__ = "task_comments"

    task_id: Mapped[str] = mapped_column(
        String, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_system_comment: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa.false()
    )
    # "metadata" is reserved on declarative classes
    comment_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSON, nullable=True
    )
