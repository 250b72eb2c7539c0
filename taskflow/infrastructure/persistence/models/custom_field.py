"""Custom field definition and value ORM models."""

from typing import Any

from sqlalchemy import JSON, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from taskflow.infrastructure.persistence.database import Base
from taskflow.infrastructure.persistence.models.mixins import CuidMixin, TimestampMixin


class CustomFieldDefinition(CuidMixin, TimestampMixin, Base):
    """Custom field definition scoped to project and entity type. Table: custom_field_definitions."""

    __tablename__ = "custom_field_definitions"

    project_id: Mapped[str] = mapped_column(
        String, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(32), nullable=False)
    field_type: Mapped[str] = mapped_column(
        String(32), nullable=False, default="text", server_default="text"
    )

    __table_args__ = (
        UniqueConstraint(
            "project_id", "name", "entity_type", name="uq_custom_field_definition_name"
        ),
    )


class CustomFieldValue(CuidMixin, TimestampMixin, Base):
    """Value of one custom field for one entity. Table: custom_field_values."""

    __tablename__ = "custom_field_values"

    field_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("custom_field_definitions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    entity_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(32), nullable=False)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "field_id", "entity_id", "entity_type", name="uq_custom_field_value_entity"
        ),
    )
