"""DTOs for in-app notifications and calendar events."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from taskflow.core.constants import DEFAULT_PRIORITY, NOTIFICATION_AUTOMATED_ACTION


@dataclass(frozen=True)
class NotificationCreate:
    """Notification to deliver to one user."""

    user_id: str
    title: str
    message: str
    notification_type: str = NOTIFICATION_AUTOMATED_ACTION
    priority: str = DEFAULT_PRIORITY
    metadata: dict[str, Any] = field(default_factory=dict)
    task_id: str | None = None
    project_id: str | None = None


@dataclass(frozen=True)
class NotificationRecord:
    """Stored notification."""

    id: str
    user_id: str
    title: str
    message: str
    notification_type: str
    priority: str
    is_read: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)
    task_id: str | None = None
    project_id: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class CalendarEventCreate:
    """Calendar event to create (create_calendar_event action)."""

    title: str
    start_time: datetime
    end_time: datetime
    created_by: str
    all_day: bool = False
    description: str | None = None
    project_id: str | None = None
    task_id: str | None = None
    attendees: tuple[str, ...] = ()
    reminder_minutes: int | None = None


@dataclass(frozen=True)
class EmailMessage:
    """Rendered e-mail ready for delivery."""

    to: str
    subject: str
    body: str
    html_body: str | None = None
