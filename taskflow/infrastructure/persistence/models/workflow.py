"""Workflow definition and execution ORM models."""

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from taskflow.infrastructure.persistence.database import Base
from taskflow.infrastructure.persistence.models.mixins import CuidMixin, TimestampMixin
from taskflow.shared.enums import WorkflowExecutionStatus
from taskflow.shared.utils.datetime import utc_now


class Workflow(CuidMixin, TimestampMixin, Base):
    """Workflow definition. Table: workflow_definitions. Trigger config, conditions, actions JSON."""

    __tablename__ = "workflow_definitions"

    project_id: Mapped[str] = mapped_column(
        String, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa.true()
    )
    trigger_type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    trigger_config: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    conditions: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    actions: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    created_by: Mapped[str] = mapped_column(String, nullable=False)
    last_executed: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index(
            "ix_workflow_definitions_active_trigger",
            "is_active",
            "trigger_type",
        ),
    )


class WorkflowExecution(CuidMixin, Base):
    """Workflow execution audit. Table: workflow_executions."""

    __tablename__ = "workflow_executions"

    workflow_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("workflow_definitions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    trigger_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    executed_actions: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )
    status: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    execution_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=sa.func.now(),
        index=True,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ({})".format(
                ", ".join(
                    "'{}'".format(v.replace("'", "''"))
                    for v in WorkflowExecutionStatus.values()
                )
            ),
            name="workflow_executions_status_check",
        ),
    )
