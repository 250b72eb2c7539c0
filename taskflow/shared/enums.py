"""Domain enumerations for workflows: triggers, actions, schedules, statuses."""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class TriggerType(_ValuesMixin, str, Enum):
    """Event category a workflow listens for."""

    TASK_STATUS_CHANGED = "task_status_changed"
    TASK_CREATED = "task_created"
    TASK_ASSIGNED = "task_assigned"
    DUE_DATE_APPROACHING = "due_date_approaching"
    CUSTOM_FIELD_CHANGED = "custom_field_changed"
    FILE_UPLOADED = "file_uploaded"
    COMMENT_ADDED = "comment_added"
    PROJECT_STATUS_CHANGED = "project_status_changed"
    TEAM_MEMBER_ADDED = "team_member_added"
    SCHEDULED = "scheduled"


class ActionType(_ValuesMixin, str, Enum):
    """Effect a workflow action performs."""

    UPDATE_TASK = "update_task"
    CREATE_TASK = "create_task"
    SEND_NOTIFICATION = "send_notification"
    SEND_EMAIL = "send_email"
    UPDATE_CUSTOM_FIELD = "update_custom_field"
    ADD_COMMENT = "add_comment"
    MOVE_TO_PROJECT = "move_to_project"
    ASSIGN_TO_USER = "assign_to_user"
    CREATE_CALENDAR_EVENT = "create_calendar_event"
    UPDATE_PROJECT_STATUS = "update_project_status"
    BATCH_UPDATE_TASKS = "batch_update_tasks"


class ScheduleType(_ValuesMixin, str, Enum):
    """Calendar schedule variants for scheduled workflows."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CRON = "cron"


class WorkflowExecutionStatus(_ValuesMixin, str, Enum):
    """Workflow execution status.

    Runs end in SUCCESS, PARTIAL or FAILED. RUNNING and CANCELLED exist for
    records managed out of band (cancel of a logged running execution).
    """

    RUNNING = "running"
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
    CANCELLED = "cancelled"


class EntityType(_ValuesMixin, str, Enum):
    """Entity kinds that carry custom field values."""

    TASK = "task"
    PROJECT = "project"
