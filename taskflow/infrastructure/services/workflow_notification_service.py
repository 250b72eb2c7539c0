"""Workflow notifications: in-app notification sink and log-only e-mail sender."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from taskflow.application.dtos.notification import (
    EmailMessage,
    NotificationCreate,
    NotificationRecord,
)
from taskflow.application.interfaces.repositories import INotificationRepository
from taskflow.core.constants import DEFAULT_PRIORITY, NOTIFICATION_AUTOMATED_ACTION
from taskflow.shared.telemetry.logging import get_logger
from taskflow.shared.utils.datetime import utc_now

logger = get_logger(__name__)


class NotificationSink:
    """INotificationSink backed by the notifications table."""

    def __init__(self, notification_repo: INotificationRepository) -> None:
        self.notification_repo = notification_repo

    async def send(
        self,
        user_id: str,
        title: str,
        message: str,
        *,
        notification_type: str = NOTIFICATION_AUTOMATED_ACTION,
        priority: str = DEFAULT_PRIORITY,
        metadata: dict[str, Any] | None = None,
        task_id: str | None = None,
        project_id: str | None = None,
    ) -> NotificationRecord:
        """Store the notification for user_id and return it."""
        record = await self.notification_repo.create(
            NotificationCreate(
                user_id=user_id,
                title=title,
                message=message,
                notification_type=notification_type,
                priority=priority,
                metadata=metadata or {},
                task_id=task_id,
                project_id=project_id,
            )
        )
        logger.info(
            "Notification %s sent to user %s (type=%s)",
            record.id,
            user_id,
            notification_type,
        )
        return record

    async def exists_for_task_since(
        self, task_id: str, notification_type: str, since: datetime
    ) -> bool:
        return await self.notification_repo.exists_for_task_since(
            task_id, notification_type, since
        )


class LogOnlyEmailSender:
    """IEmailSender implementation that logs instead of sending email.

    Use when no SMTP is configured. Production can swap in an SMTP or queue-based implementation.
    """

    async def send(self, message: EmailMessage) -> None:
        """Log the e-mail; no actual email sent."""
        logger.info(
            "Workflow email: would send to %s (subject=%r)",
            message.to,
            (message.subject or "")[:80],
        )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Workflow email body (first 500 chars, at %s): %s",
                utc_now().isoformat(),
                (message.body or "")[:500],
            )
