"""Project ORM model (fields the workflow engine reads and writes)."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from taskflow.infrastructure.persistence.database import Base
from taskflow.infrastructure.persistence.models.mixins import CuidMixin, TimestampMixin


class Project(CuidMixin, TimestampMixin, Base):
    """Project. Table: projects."""

    __tablename__ = "projects"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="active", server_default="active"
    )
    created_by: Mapped[str] = mapped_column(String, nullable=False)
