"""Workflow action models.

An action is a ``{"type": ..., "config": {...}}`` pair. The union is closed
over the known action kinds. An unrecognised ``type`` loads as UnknownAction
and a known type with a config that does not validate loads as InvalidAction,
so a single bad action never prevents a definition from loading. Executing
either fails that action only.
"""

from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    ValidationError,
    model_validator,
)

from taskflow.core.constants import (
    DEFAULT_PRIORITY,
    DEFAULT_TASK_STATUS,
    DEFAULT_TASK_TITLE,
    NOTIFICATION_AUTOMATED_ACTION,
)
from taskflow.shared.enums import ActionType


class _ActionConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")


class UpdateTaskConfig(_ActionConfig):
    task_id: str | None = None
    status: str | None = None
    priority: str | None = None
    assigned_to: str | None = None
    due_date: str | None = None
    title: str | None = None
    description: str | None = None


class CreateTaskConfig(_ActionConfig):
    title: str = DEFAULT_TASK_TITLE
    description: str | None = None
    project_id: str | None = None
    assigned_to: str | None = None
    priority: str = DEFAULT_PRIORITY
    due_date: str | None = None
    status: str = DEFAULT_TASK_STATUS
    parent_task_id: str | None = None


class SendNotificationConfig(_ActionConfig):
    message: str
    title: str | None = None
    recipient_id: str | None = None
    priority: str = DEFAULT_PRIORITY
    notification_type: str = NOTIFICATION_AUTOMATED_ACTION


class AddCommentConfig(_ActionConfig):
    comment: str
    task_id: str | None = None
    is_system_comment: bool = True


class CustomFieldValidation(_ActionConfig):
    """Validation rules applied before a custom field value is written."""

    required: bool = False
    min: float | None = None
    max: float | None = None

    @model_validator(mode="before")
    @classmethod
    def flatten_range(cls, data: Any) -> Any:
        """Accept the nested form {"range": {"min": .., "max": ..}}."""
        if isinstance(data, dict) and isinstance(data.get("range"), dict):
            data = dict(data)
            value_range = data.pop("range")
            data.setdefault("min", value_range.get("min"))
            data.setdefault("max", value_range.get("max"))
        return data


class UpdateCustomFieldConfig(_ActionConfig):
    field_id: str | None = None
    field_name: str | None = None
    value: Any
    entity_type: Literal["task", "project"]
    entity_id: str | None = None
    validation: CustomFieldValidation | None = None


class SendEmailConfig(_ActionConfig):
    subject: str
    content: str
    recipient_id: str | None = None
    recipient_email: str | None = None
    template: str | None = None

    @model_validator(mode="before")
    @classmethod
    def accept_message_key(cls, data: Any) -> Any:
        """Older definitions store the body under "message"."""
        if isinstance(data, dict) and "content" not in data and "message" in data:
            data = {**data, "content": data["message"]}
        return data


class CalendarReminder(_ActionConfig):
    enabled: bool = True
    minutes_before: int = Field(default=15, ge=0)


class CreateCalendarEventConfig(_ActionConfig):
    title: str
    start_date: str
    end_date: str | None = None
    all_day: bool = False
    description: str | None = None
    project_id: str | None = None
    attendees: list[str] | None = None
    reminder: CalendarReminder | None = None


class MoveToProjectConfig(_ActionConfig):
    target_project_id: str
    task_id: str | None = None


class AssignToUserConfig(_ActionConfig):
    user_id: str
    task_id: str | None = None


class UpdateProjectStatusConfig(_ActionConfig):
    status: str
    project_id: str | None = None


class BatchTaskFilter(_ActionConfig):
    project_id: str | None = None
    status: list[str] | None = None
    assigned_to: str | None = None
    priority: list[str] | None = None


class BatchTaskUpdates(_ActionConfig):
    status: str | None = None
    priority: str | None = None
    assigned_to: str | None = None


class BatchUpdateTasksConfig(_ActionConfig):
    filter: BatchTaskFilter = Field(default_factory=BatchTaskFilter)
    updates: BatchTaskUpdates = Field(default_factory=BatchTaskUpdates)
    limit: int | None = Field(default=None, ge=1)


class UpdateTaskAction(BaseModel):
    type: Literal["update_task"] = "update_task"
    config: UpdateTaskConfig = Field(default_factory=UpdateTaskConfig)


class CreateTaskAction(BaseModel):
    type: Literal["create_task"] = "create_task"
    config: CreateTaskConfig = Field(default_factory=CreateTaskConfig)


class SendNotificationAction(BaseModel):
    type: Literal["send_notification"] = "send_notification"
    config: SendNotificationConfig


class SendEmailAction(BaseModel):
    type: Literal["send_email"] = "send_email"
    config: SendEmailConfig


class UpdateCustomFieldAction(BaseModel):
    type: Literal["update_custom_field"] = "update_custom_field"
    config: UpdateCustomFieldConfig


class AddCommentAction(BaseModel):
    type: Literal["add_comment"] = "add_comment"
    config: AddCommentConfig


class MoveToProjectAction(BaseModel):
    type: Literal["move_to_project"] = "move_to_project"
    config: MoveToProjectConfig


class AssignToUserAction(BaseModel):
    type: Literal["assign_to_user"] = "assign_to_user"
    config: AssignToUserConfig


class CreateCalendarEventAction(BaseModel):
    type: Literal["create_calendar_event"] = "create_calendar_event"
    config: CreateCalendarEventConfig


class UpdateProjectStatusAction(BaseModel):
    type: Literal["update_project_status"] = "update_project_status"
    config: UpdateProjectStatusConfig


class BatchUpdateTasksAction(BaseModel):
    type: Literal["batch_update_tasks"] = "batch_update_tasks"
    config: BatchUpdateTasksConfig = Field(default_factory=BatchUpdateTasksConfig)


class UnknownAction(BaseModel):
    """Action whose type has no executor; config kept as raw data."""

    type: str
    config: dict[str, Any] = Field(default_factory=dict)


class InvalidAction(BaseModel):
    """Known action type whose stored config does not validate.

    Kept as raw data so the rest of the definition still loads; executing it
    fails that action only.
    """

    type: str
    config: Any = None

    def config_error(self) -> str:
        """Validation problems of the stored config, one per field."""
        model = _CONFIG_MODELS.get(self.type)
        if model is None:
            return "unknown action type"
        try:
            model.model_validate(self.config)
        except ValidationError as exc:
            return "; ".join(
                f"{'.'.join(str(part) for part in err['loc']) or 'config'}: {err['msg']}"
                for err in exc.errors()
            )
        return "invalid config"


_CONFIG_MODELS: dict[str, type[_ActionConfig]] = {
    ActionType.UPDATE_TASK.value: UpdateTaskConfig,
    ActionType.CREATE_TASK.value: CreateTaskConfig,
    ActionType.SEND_NOTIFICATION.value: SendNotificationConfig,
    ActionType.SEND_EMAIL.value: SendEmailConfig,
    ActionType.UPDATE_CUSTOM_FIELD.value: UpdateCustomFieldConfig,
    ActionType.ADD_COMMENT.value: AddCommentConfig,
    ActionType.MOVE_TO_PROJECT.value: MoveToProjectConfig,
    ActionType.ASSIGN_TO_USER.value: AssignToUserConfig,
    ActionType.CREATE_CALENDAR_EVENT.value: CreateCalendarEventConfig,
    ActionType.UPDATE_PROJECT_STATUS.value: UpdateProjectStatusConfig,
    ActionType.BATCH_UPDATE_TASKS.value: BatchUpdateTasksConfig,
}


# Kinds whose config may be omitted entirely (every field has a default)
_OPTIONAL_CONFIG_TYPES = frozenset(
    {
        ActionType.UPDATE_TASK.value,
        ActionType.CREATE_TASK.value,
        ActionType.BATCH_UPDATE_TASKS.value,
    }
)


def _config_is_valid(action_type: str, config: Any) -> bool:
    if config is None and action_type in _OPTIONAL_CONFIG_TYPES:
        return True
    try:
        _CONFIG_MODELS[action_type].model_validate(config)
    except ValidationError:
        return False
    return True


def _action_tag(value: Any) -> str:
    if isinstance(value, InvalidAction):
        return "invalid"
    if isinstance(value, dict):
        action_type = value.get("type")
    else:
        action_type = getattr(value, "type", None)
    if isinstance(action_type, ActionType):
        action_type = action_type.value
    if action_type not in _CONFIG_MODELS:
        return "unknown"
    if isinstance(value, dict) and not _config_is_valid(action_type, value.get("config")):
        return "invalid"
    return action_type


Action = Annotated[
    Annotated[UpdateTaskAction, Tag("update_task")]
    | Annotated[CreateTaskAction, Tag("create_task")]
    | Annotated[SendNotificationAction, Tag("send_notification")]
    | Annotated[SendEmailAction, Tag("send_email")]
    | Annotated[UpdateCustomFieldAction, Tag("update_custom_field")]
    | Annotated[AddCommentAction, Tag("add_comment")]
    | Annotated[MoveToProjectAction, Tag("move_to_project")]
    | Annotated[AssignToUserAction, Tag("assign_to_user")]
    | Annotated[CreateCalendarEventAction, Tag("create_calendar_event")]
    | Annotated[UpdateProjectStatusAction, Tag("update_project_status")]
    | Annotated[BatchUpdateTasksAction, Tag("batch_update_tasks")]
    | Annotated[UnknownAction, Tag("unknown")]
    | Annotated[InvalidAction, Tag("invalid")],
    Discriminator(_action_tag),
]
