"""Trigger configuration and trigger data models.

Both are closed unions keyed by ``trigger_type``. Trigger configs are the
structural filter stored on a workflow definition; trigger data is the
ephemeral event payload archived verbatim in each execution record.
"""

from datetime import date, datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from taskflow.shared.utils.datetime import utc_now

# Keys that may name the acting user, in lookup order.
ACTING_USER_KEYS: tuple[str, ...] = (
    "user_id",
    "created_by",
    "assigned_by",
    "changed_by",
    "uploaded_by",
)

GENERIC_TRIGGER_TYPES = (
    "file_uploaded",
    "comment_added",
    "project_status_changed",
    "team_member_added",
)


# --- Trigger configs ---


class _TriggerConfigBase(BaseModel):
    model_config = ConfigDict(extra="ignore")


class TaskStatusChangedConfig(_TriggerConfigBase):
    """Matches status transitions; unset fields are wildcards."""

    trigger_type: Literal["task_status_changed"] = "task_status_changed"
    from_status: str | None = None
    to_status: str | None = None


class TaskCreatedConfig(_TriggerConfigBase):
    trigger_type: Literal["task_created"] = "task_created"
    assigned_to: str | None = None


class TaskAssignedConfig(_TriggerConfigBase):
    trigger_type: Literal["task_assigned"] = "task_assigned"
    from_user: str | None = None
    to_user: str | None = None


class DueDateConfig(_TriggerConfigBase):
    """Due-date sweep settings: run `days_before` due date at `time_of_day`."""

    trigger_type: Literal["due_date_approaching"] = "due_date_approaching"
    days_before: int = Field(default=1, ge=0)
    priority_filter: list[str] | None = None
    time_of_day: str = "09:00"


class CustomFieldChangedConfig(_TriggerConfigBase):
    trigger_type: Literal["custom_field_changed"] = "custom_field_changed"
    field_id: str | None = None
    from_value: Any = None
    to_value: Any = None


class ScheduleConfig(_TriggerConfigBase):
    """Calendar schedule for `scheduled` workflows.

    days_of_week uses 0 = Sunday through 6 = Saturday. schedule_type is kept
    as a plain string so unknown values load and simply never run.
    """

    trigger_type: Literal["scheduled"] = "scheduled"
    schedule_type: str | None = None
    schedule_time: str | None = None
    days_of_week: list[int] | None = None
    day_of_month: int | None = None
    cron_expression: str | None = None
    timezone: str | None = None


class GenericTriggerConfig(BaseModel):
    """Config for trigger types without a structural filter; extra keys kept."""

    model_config = ConfigDict(extra="allow")

    trigger_type: Literal[
        "file_uploaded",
        "comment_added",
        "project_status_changed",
        "team_member_added",
    ]


TriggerConfig = Annotated[
    TaskStatusChangedConfig
    | TaskCreatedConfig
    | TaskAssignedConfig
    | DueDateConfig
    | CustomFieldChangedConfig
    | ScheduleConfig
    | GenericTriggerConfig,
    Field(discriminator="trigger_type"),
]


# --- Trigger data ---


class TriggerDataBase(BaseModel):
    """Common trigger payload. Extra keys are preserved for archiving."""

    model_config = ConfigDict(extra="allow")

    project_id: str
    timestamp: datetime = Field(default_factory=utc_now)
    task_id: str | None = None
    user_id: str | None = None

    def has(self, key: str) -> bool:
        """Return True when `key` was supplied (declared field or extra key)."""
        return key in self.model_fields_set or key in (self.model_extra or {})

    def get(self, key: str, default: Any = None) -> Any:
        """Return a declared field or extra key, else `default`."""
        if key in type(self).model_fields:
            value = getattr(self, key)
            return default if value is None else value
        return (self.model_extra or {}).get(key, default)

    def acting_user_id(self) -> str | None:
        """First present user key among user_id, created_by, assigned_by, changed_by, uploaded_by."""
        for key in ACTING_USER_KEYS:
            value = self.get(key)
            if value:
                return str(value)
        return None

    def archive(self) -> dict[str, Any]:
        """JSON-safe dict of the payload, as stored on the execution record."""
        return self.model_dump(mode="json", exclude_none=True)


class TaskStatusChangedData(TriggerDataBase):
    trigger_type: Literal["task_status_changed"] = "task_status_changed"
    task_id: str
    from_status: str
    to_status: str


class TaskCreatedData(TriggerDataBase):
    trigger_type: Literal["task_created"] = "task_created"
    task_id: str
    created_by: str | None = None
    assigned_to: str | None = None


class TaskAssignedData(TriggerDataBase):
    trigger_type: Literal["task_assigned"] = "task_assigned"
    task_id: str
    from_user: str | None = None
    to_user: str | None = None
    assigned_by: str | None = None


class DueDateApproachingData(TriggerDataBase):
    trigger_type: Literal["due_date_approaching"] = "due_date_approaching"
    task_id: str
    due_date: date | None = None
    days_until_due: int | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class CustomFieldChangedData(TriggerDataBase):
    trigger_type: Literal["custom_field_changed"] = "custom_field_changed"
    entity_type: Literal["task", "project"]
    entity_id: str
    field_id: str
    from_value: Any = None
    to_value: Any = None
    changed_by: str | None = None


class FileUploadedData(TriggerDataBase):
    trigger_type: Literal["file_uploaded"] = "file_uploaded"
    file_id: str | None = None
    file_name: str
    file_type: str | None = None
    uploaded_by: str | None = None


class CommentAddedData(TriggerDataBase):
    trigger_type: Literal["comment_added"] = "comment_added"
    task_id: str
    comment_id: str | None = None
    comment: str | None = None
    created_by: str | None = None


class ScheduledData(TriggerDataBase):
    trigger_type: Literal["scheduled"] = "scheduled"
    metadata: dict[str, Any] = Field(default_factory=dict)


class GenericTriggerData(TriggerDataBase):
    trigger_type: Literal["project_status_changed", "team_member_added"]


TriggerData = Annotated[
    TaskStatusChangedData
    | TaskCreatedData
    | TaskAssignedData
    | DueDateApproachingData
    | CustomFieldChangedData
    | FileUploadedData
    | CommentAddedData
    | ScheduledData
    | GenericTriggerData,
    Field(discriminator="trigger_type"),
]

_trigger_data_adapter: TypeAdapter[TriggerData] = TypeAdapter(TriggerData)


def parse_trigger_data(trigger_type: str, payload: dict[str, Any]) -> TriggerDataBase:
    """Validate a raw payload as the trigger data variant for `trigger_type`.

    Raises:
        pydantic.ValidationError: If the payload does not fit the variant.
    """
    return _trigger_data_adapter.validate_python(
        {**payload, "trigger_type": trigger_type}
    )
