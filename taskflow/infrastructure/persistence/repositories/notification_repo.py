"""Notification and calendar event repositories (implement INotificationRepository, ICalendarEventRepository)."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from taskflow.application.dtos.notification import (
    CalendarEventCreate,
    NotificationCreate,
    NotificationRecord,
)
from taskflow.infrastructure.persistence.models.calendar_event import CalendarEvent
from taskflow.infrastructure.persistence.models.notification import Notification
from taskflow.shared.utils.datetime import ensure_utc


def _to_record(n: Notification) -> NotificationRecord:
    return NotificationRecord(
        id=n.id,
        user_id=n.user_id,
        title=n.title,
        message=n.message,
        notification_type=n.notification_type,
        priority=n.priority,
        is_read=n.is_read,
        metadata=n.notification_metadata or {},
        task_id=n.task_id,
        project_id=n.project_id,
        created_at=ensure_utc(n.created_at),
    )


class NotificationRepository:
    """Notification repository. Implements INotificationRepository."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def create(self, data: NotificationCreate) -> NotificationRecord:
        notification = Notification(
            user_id=data.user_id,
            title=data.title,
            message=data.message,
            notification_type=data.notification_type,
            priority=data.priority,
            notification_metadata=data.metadata or None,
            task_id=data.task_id,
            project_id=data.project_id,
        )
        async with self.session_factory.begin() as session:
            session.add(notification)
            await session.flush()
            await session.refresh(notification)
            return _to_record(notification)

    async def exists_for_task_since(
        self, task_id: str, notification_type: str, since: datetime
    ) -> bool:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Notification.id)
                .where(
                    Notification.task_id == task_id,
                    Notification.notification_type == notification_type,
                    Notification.created_at >= ensure_utc(since),
                )
                .limit(1)
            )
            return result.scalar_one_or_none() is not None


class CalendarEventRepository:
    """Calendar event repository. Implements ICalendarEventRepository."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def create(self, data: CalendarEventCreate) -> str:
        event = CalendarEvent(
            title=data.title,
            description=data.description,
            start_time=ensure_utc(data.start_time),
            end_time=ensure_utc(data.end_time),
            all_day=data.all_day,
            project_id=data.project_id,
            task_id=data.task_id,
            created_by=data.created_by,
            attendees=list(data.attendees) or None,
            reminder_minutes=data.reminder_minutes,
        )
        async with self.session_factory.begin() as session:
            session.add(event)
            await session.flush()
            return event.id
