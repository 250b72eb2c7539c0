"""User profile ORM model (display name and e-mail only)."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from taskflow.infrastructure.persistence.database import Base
from taskflow.infrastructure.persistence.models.mixins import CuidMixin, TimestampMixin


class Profile(CuidMixin, TimestampMixin, Base):
    """User profile. Table: profiles."""

    __tablename__ = "profiles"

    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True, index=True)
