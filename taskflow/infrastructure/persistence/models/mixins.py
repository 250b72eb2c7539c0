"""Column mixins shared by the engine's tables."""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func

from taskflow.shared.utils.datetime import utc_now
from taskflow.shared.utils.generators import generate_cuid


def _aware_timestamp(**kwargs) -> Mapped[datetime]:
    return mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
        **kwargs,
    )


class CuidMixin:
    """String primary key; rows written by the engine get a CUID2."""

    @declared_attr
    def id(cls) -> Mapped[str]:
        return mapped_column(String, primary_key=True, default=generate_cuid)


class CreatedAtMixin:
    """Append-only rows (notifications, comments)."""

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return _aware_timestamp()


class TimestampMixin(CreatedAtMixin):
    """Mutable rows: updated_at is bumped on every ORM update."""

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return _aware_timestamp(onupdate=utc_now)
