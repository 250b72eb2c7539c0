"""Workflow action executors: one executor per action kind plus a registry.

Every executor resolves its implicit target (task, project or entity from the
trigger data when the config leaves it unset), prepares its write model
(variable substitution, date parsing) and applies it with one persistence
call per logical effect. Failures raise ActionExecutionException; the engine
catches them per action.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Any, ClassVar

from taskflow.application.dtos.custom_field import CustomFieldValueRecord
from taskflow.application.dtos.notification import (
    CalendarEventCreate,
    EmailMessage,
    NotificationCreate,
)
from taskflow.application.dtos.task import CommentCreate, TaskChanges, TaskCreate, TaskQuery
from taskflow.application.interfaces.repositories import (
    ICalendarEventRepository,
    ICommentRepository,
    ICustomFieldRepository,
    IProjectRepository,
    ITaskRepository,
)
from taskflow.application.interfaces.services import IEmailSender, INotificationSink
from taskflow.application.services.entity_reader import EntityReader
from taskflow.application.services.variable_substitution import (
    VariableSubstitution,
    render_value,
)
from taskflow.core.config import Settings
from taskflow.core.constants import DEFAULT_NOTIFICATION_TITLE, DEFAULT_TASK_TITLE
from taskflow.domain.entities.actions import (
    AddCommentConfig,
    AssignToUserConfig,
    BatchUpdateTasksConfig,
    CreateCalendarEventConfig,
    CreateTaskConfig,
    CustomFieldValidation,
    InvalidAction,
    MoveToProjectConfig,
    SendEmailConfig,
    SendNotificationConfig,
    UpdateCustomFieldConfig,
    UpdateProjectStatusConfig,
    UpdateTaskConfig,
)
from taskflow.domain.entities.workflow import WorkflowExecutionContext
from taskflow.domain.exceptions import (
    ActionExecutionException,
    CustomFieldValidationException,
    MissingActionTargetException,
    UnsupportedActionException,
)
from taskflow.infrastructure.services.workflow_template_renderer import (
    WorkflowTemplateRenderer,
)
from taskflow.shared.enums import ActionType
from taskflow.shared.telemetry.logging import get_logger
from taskflow.shared.utils.datetime import to_local

logger = get_logger(__name__)


@dataclass
class ActionDependencies:
    """Collaborators shared by all executors (built once per process)."""

    task_repo: ITaskRepository
    project_repo: IProjectRepository
    custom_field_repo: ICustomFieldRepository
    comment_repo: ICommentRepository
    calendar_repo: ICalendarEventRepository
    notifications: INotificationSink
    email_sender: IEmailSender
    reader: EntityReader
    substitution: VariableSubstitution
    template_renderer: WorkflowTemplateRenderer
    settings: Settings


@dataclass(frozen=True)
class TaskUpdate:
    task_id: str
    changes: TaskChanges


@dataclass(frozen=True)
class ProjectStatusUpdate:
    project_id: str
    status: str


@dataclass(frozen=True)
class BatchTaskUpdate:
    query: TaskQuery
    changes: TaskChanges


def _workflow_metadata(context: WorkflowExecutionContext, action_type: str) -> dict[str, Any]:
    return {
        "workflow_id": context.workflow.id,
        "workflow_name": context.workflow.name,
        "trigger_type": context.workflow.trigger_type.value,
        "action_type": action_type,
        "created_by_workflow": True,
    }


class BaseActionExecutor:
    """Base executor: resolve_target -> prepare -> apply."""

    action_type: ClassVar[ActionType]

    def __init__(self, deps: ActionDependencies) -> None:
        self.deps = deps

    async def resolve_target(self, config: Any, context: WorkflowExecutionContext) -> str | None:
        """Return the id the action operates on (None when not applicable)."""
        return None

    async def prepare(
        self, config: Any, context: WorkflowExecutionContext, target: str | None
    ) -> Any:
        """Build the write model (substitution and date parsing happen here)."""
        raise NotImplementedError

    async def apply(self, prepared: Any, context: WorkflowExecutionContext) -> dict[str, Any]:
        """Perform the effect; return a small result summary for logs."""
        raise NotImplementedError

    async def _text(self, value: str | None, context: WorkflowExecutionContext) -> str | None:
        if value is None:
            return None
        return await self.deps.substitution.substitute(value, context)

    async def _due_date(
        self, expression: str | None, context: WorkflowExecutionContext
    ) -> date | None:
        """Substitute then parse a date expression into a local calendar date."""
        if not expression:
            return None
        text = await self._text(expression, context)
        moment = self.deps.substitution.parse_date_expression(text or "")
        return to_local(moment, self.deps.settings.tzinfo).date()

    def _task_target(self, explicit: str | None, context: WorkflowExecutionContext) -> str:
        task_id = explicit or context.trigger_data.task_id
        if not task_id:
            raise MissingActionTargetException(self.action_type.value, "task ID")
        return task_id

    async def _update_task(self, update: TaskUpdate) -> dict[str, Any]:
        task = await self.deps.task_repo.update(update.task_id, update.changes)
        if task is None:
            raise ActionExecutionException(
                self.action_type.value, f"Task not found: {update.task_id}"
            )
        await self.deps.reader.forget_task(update.task_id)
        return {"task_id": task.id, "changes": update.changes.as_dict()}


class UpdateTaskExecutor(BaseActionExecutor):
    action_type = ActionType.UPDATE_TASK

    async def resolve_target(
        self, config: UpdateTaskConfig, context: WorkflowExecutionContext
    ) -> str:
        return self._task_target(config.task_id, context)

    async def prepare(
        self, config: UpdateTaskConfig, context: WorkflowExecutionContext, target: str | None
    ) -> TaskUpdate:
        changes = TaskChanges(
            title=await self._text(config.title, context),
            description=await self._text(config.description, context),
            status=await self._text(config.status, context),
            priority=await self._text(config.priority, context),
            assigned_to=await self._text(config.assigned_to, context),
            due_date=await self._due_date(config.due_date, context),
        )
        return TaskUpdate(task_id=target, changes=changes)

    async def apply(self, prepared: TaskUpdate, context: WorkflowExecutionContext) -> dict[str, Any]:
        if prepared.changes.is_empty():
            logger.info("update_task on %s: nothing to change", prepared.task_id)
            return {"task_id": prepared.task_id, "changes": {}}
        result = await self._update_task(prepared)
        logger.info("Task %s updated: %s", prepared.task_id, result["changes"])
        return result


class CreateTaskExecutor(BaseActionExecutor):
    action_type = ActionType.CREATE_TASK

    async def resolve_target(
        self, config: CreateTaskConfig, context: WorkflowExecutionContext
    ) -> str:
        return config.project_id or context.project_id

    async def prepare(
        self, config: CreateTaskConfig, context: WorkflowExecutionContext, target: str | None
    ) -> TaskCreate:
        title = (await self._text(config.title, context) or "").strip()
        return TaskCreate(
            project_id=target,
            title=title or DEFAULT_TASK_TITLE,
            created_by=context.user_id,
            status=config.status,
            priority=config.priority,
            description=await self._text(config.description, context),
            assigned_to=await self._text(config.assigned_to, context),
            due_date=await self._due_date(config.due_date, context),
            parent_task_id=config.parent_task_id,
        )

    async def apply(self, prepared: TaskCreate, context: WorkflowExecutionContext) -> dict[str, Any]:
        task = await self.deps.task_repo.create(prepared)
        logger.info("Task %s created in project %s: %r", task.id, task.project_id, task.title)
        return {"task_id": task.id}


class SendNotificationExecutor(BaseActionExecutor):
    action_type = ActionType.SEND_NOTIFICATION

    async def resolve_target(
        self, config: SendNotificationConfig, context: WorkflowExecutionContext
    ) -> str:
        recipient = await self._text(config.recipient_id, context)
        if not recipient and context.trigger_data.task_id:
            task = await self.deps.reader.get_task(context.trigger_data.task_id)
            if task is not None:
                recipient = task.notification_recipient
        if not recipient:
            raise MissingActionTargetException(self.action_type.value, "recipient")
        return recipient

    async def prepare(
        self,
        config: SendNotificationConfig,
        context: WorkflowExecutionContext,
        target: str | None,
    ) -> NotificationCreate:
        title = await self._text(config.title, context) if config.title else None
        return NotificationCreate(
            user_id=target,
            title=title or DEFAULT_NOTIFICATION_TITLE,
            message=await self._text(config.message, context),
            notification_type=config.notification_type,
            priority=config.priority,
            metadata={
                **_workflow_metadata(context, self.action_type.value),
                "original_template": config.message,
            },
            task_id=context.trigger_data.task_id,
            project_id=context.project_id,
        )

    async def apply(
        self, prepared: NotificationCreate, context: WorkflowExecutionContext
    ) -> dict[str, Any]:
        record = await self.deps.notifications.send(
            prepared.user_id,
            prepared.title,
            prepared.message,
            notification_type=prepared.notification_type,
            priority=prepared.priority,
            metadata=prepared.metadata,
            task_id=prepared.task_id,
            project_id=prepared.project_id,
        )
        return {"notification_id": record.id, "recipient_id": prepared.user_id}


class AddCommentExecutor(BaseActionExecutor):
    action_type = ActionType.ADD_COMMENT

    async def resolve_target(
        self, config: AddCommentConfig, context: WorkflowExecutionContext
    ) -> str:
        return self._task_target(config.task_id, context)

    async def prepare(
        self, config: AddCommentConfig, context: WorkflowExecutionContext, target: str | None
    ) -> CommentCreate:
        return CommentCreate(
            task_id=target,
            user_id=context.user_id,
            content=await self._text(config.comment, context),
            is_system_comment=config.is_system_comment,
            metadata={
                **_workflow_metadata(context, self.action_type.value),
                "original_template": config.comment,
            },
        )

    async def apply(self, prepared: CommentCreate, context: WorkflowExecutionContext) -> dict[str, Any]:
        comment_id = await self.deps.comment_repo.create(prepared)
        logger.info("Comment %s added to task %s", comment_id, prepared.task_id)
        return {"comment_id": comment_id, "task_id": prepared.task_id}


class UpdateCustomFieldExecutor(BaseActionExecutor):
    action_type = ActionType.UPDATE_CUSTOM_FIELD

    async def resolve_target(
        self, config: UpdateCustomFieldConfig, context: WorkflowExecutionContext
    ) -> str:
        trigger_data = context.trigger_data
        entity_id = config.entity_id
        if not entity_id and trigger_data.get("entity_type") == config.entity_type:
            entity_id = trigger_data.get("entity_id")
        if not entity_id:
            entity_id = (
                trigger_data.task_id if config.entity_type == "task" else context.project_id
            )
        if not entity_id:
            raise MissingActionTargetException(
                self.action_type.value, f"{config.entity_type} ID"
            )
        return entity_id

    async def _field_id(
        self, config: UpdateCustomFieldConfig, context: WorkflowExecutionContext
    ) -> str:
        if config.field_id:
            return config.field_id
        if config.field_name:
            definition = await self.deps.custom_field_repo.find_definition_by_name(
                context.project_id, config.field_name, config.entity_type
            )
            if definition is not None:
                return definition.id
        raise ActionExecutionException(
            self.action_type.value,
            f"Custom field not found: {config.field_name or 'unknown'}",
        )

    @staticmethod
    def validate_value(value: str, validation: CustomFieldValidation) -> None:
        """Apply required/range rules; non-numeric values skip the range check."""
        if validation.required and not value.strip():
            raise CustomFieldValidationException(
                "Custom field value is required but empty", value
            )
        if validation.min is None and validation.max is None:
            return
        try:
            number = float(value)
        except ValueError:
            return
        if validation.min is not None and number < validation.min:
            raise CustomFieldValidationException(
                f"Value {value} is below minimum {validation.min:g}", value
            )
        if validation.max is not None and number > validation.max:
            raise CustomFieldValidationException(
                f"Value {value} is above maximum {validation.max:g}", value
            )

    async def prepare(
        self,
        config: UpdateCustomFieldConfig,
        context: WorkflowExecutionContext,
        target: str | None,
    ) -> CustomFieldValueRecord:
        field_id = await self._field_id(config, context)
        value = await self._text(render_value(config.value), context)
        if config.validation is not None:
            self.validate_value(value, config.validation)
        return CustomFieldValueRecord(
            field_id=field_id,
            entity_id=target,
            entity_type=config.entity_type,
            value=value,
        )

    async def apply(
        self, prepared: CustomFieldValueRecord, context: WorkflowExecutionContext
    ) -> dict[str, Any]:
        await self.deps.custom_field_repo.upsert_value(prepared)
        await self.deps.reader.forget_custom_field_value(
            prepared.entity_type, prepared.entity_id, prepared.field_id
        )
        logger.info(
            "Custom field %s set to %r for %s %s",
            prepared.field_id,
            prepared.value,
            prepared.entity_type,
            prepared.entity_id,
        )
        return {"field_id": prepared.field_id, "entity_id": prepared.entity_id}


class SendEmailExecutor(BaseActionExecutor):
    action_type = ActionType.SEND_EMAIL

    async def resolve_target(
        self, config: SendEmailConfig, context: WorkflowExecutionContext
    ) -> str:
        recipient = await self._text(config.recipient_id or config.recipient_email, context)
        if not recipient:
            raise MissingActionTargetException(self.action_type.value, "recipient")
        if "@" in recipient:
            return recipient
        user = await self.deps.reader.get_user(recipient)
        if user is None or not user.email:
            raise ActionExecutionException(
                self.action_type.value, f"Failed to resolve email for: {recipient}"
            )
        return user.email

    async def prepare(
        self, config: SendEmailConfig, context: WorkflowExecutionContext, target: str | None
    ) -> EmailMessage:
        subject = await self._text(config.subject, context)
        content = await self._text(config.content, context)
        if config.template:
            try:
                subject, content = self.deps.template_renderer.render(
                    config.template,
                    subject=subject,
                    content=content,
                    workflow=context.workflow,
                    data=context.trigger_data.archive(),
                )
            except KeyError as e:
                raise ActionExecutionException(self.action_type.value, str(e)) from e
        return EmailMessage(to=target, subject=subject, body=content)

    async def apply(self, prepared: EmailMessage, context: WorkflowExecutionContext) -> dict[str, Any]:
        await self.deps.email_sender.send(prepared)
        return {"recipient": prepared.to}


class CreateCalendarEventExecutor(BaseActionExecutor):
    action_type = ActionType.CREATE_CALENDAR_EVENT

    async def resolve_target(
        self, config: CreateCalendarEventConfig, context: WorkflowExecutionContext
    ) -> str:
        return config.project_id or context.project_id

    async def prepare(
        self,
        config: CreateCalendarEventConfig,
        context: WorkflowExecutionContext,
        target: str | None,
    ) -> CalendarEventCreate:
        substitution = self.deps.substitution
        start = substitution.parse_date_expression(
            await self._text(config.start_date, context) or ""
        )
        end = (
            substitution.parse_date_expression(await self._text(config.end_date, context) or "")
            if config.end_date
            else start
        )
        reminder = config.reminder
        return CalendarEventCreate(
            title=await self._text(config.title, context),
            start_time=start,
            end_time=end,
            created_by=context.user_id,
            all_day=config.all_day,
            description=await self._text(config.description, context),
            project_id=target,
            task_id=context.trigger_data.task_id,
            attendees=tuple(config.attendees or ()),
            reminder_minutes=reminder.minutes_before if reminder and reminder.enabled else None,
        )

    async def apply(
        self, prepared: CalendarEventCreate, context: WorkflowExecutionContext
    ) -> dict[str, Any]:
        event_id = await self.deps.calendar_repo.create(prepared)
        logger.info(
            "Calendar event %s created: %r at %s",
            event_id,
            prepared.title,
            prepared.start_time.isoformat(),
        )
        return {"event_id": event_id}


class MoveToProjectExecutor(BaseActionExecutor):
    action_type = ActionType.MOVE_TO_PROJECT

    async def resolve_target(
        self, config: MoveToProjectConfig, context: WorkflowExecutionContext
    ) -> str:
        return self._task_target(config.task_id, context)

    async def prepare(
        self, config: MoveToProjectConfig, context: WorkflowExecutionContext, target: str | None
    ) -> TaskUpdate:
        project_id = await self._text(config.target_project_id, context)
        return TaskUpdate(task_id=target, changes=TaskChanges(project_id=project_id))

    async def apply(self, prepared: TaskUpdate, context: WorkflowExecutionContext) -> dict[str, Any]:
        result = await self._update_task(prepared)
        logger.info("Task %s moved to project %s", prepared.task_id, prepared.changes.project_id)
        return result


class AssignToUserExecutor(BaseActionExecutor):
    action_type = ActionType.ASSIGN_TO_USER

    async def resolve_target(
        self, config: AssignToUserConfig, context: WorkflowExecutionContext
    ) -> str:
        return self._task_target(config.task_id, context)

    async def prepare(
        self, config: AssignToUserConfig, context: WorkflowExecutionContext, target: str | None
    ) -> TaskUpdate:
        user_id = await self._text(config.user_id, context)
        return TaskUpdate(task_id=target, changes=TaskChanges(assigned_to=user_id))

    async def apply(self, prepared: TaskUpdate, context: WorkflowExecutionContext) -> dict[str, Any]:
        result = await self._update_task(prepared)
        logger.info("Task %s assigned to %s", prepared.task_id, prepared.changes.assigned_to)
        return result


class UpdateProjectStatusExecutor(BaseActionExecutor):
    action_type = ActionType.UPDATE_PROJECT_STATUS

    async def resolve_target(
        self, config: UpdateProjectStatusConfig, context: WorkflowExecutionContext
    ) -> str:
        return config.project_id or context.project_id

    async def prepare(
        self,
        config: UpdateProjectStatusConfig,
        context: WorkflowExecutionContext,
        target: str | None,
    ) -> ProjectStatusUpdate:
        return ProjectStatusUpdate(
            project_id=target, status=await self._text(config.status, context)
        )

    async def apply(
        self, prepared: ProjectStatusUpdate, context: WorkflowExecutionContext
    ) -> dict[str, Any]:
        project = await self.deps.project_repo.update_status(
            prepared.project_id, prepared.status
        )
        if project is None:
            raise ActionExecutionException(
                self.action_type.value, f"Project not found: {prepared.project_id}"
            )
        await self.deps.reader.forget_project(prepared.project_id)
        logger.info("Project %s status set to %s", prepared.project_id, prepared.status)
        return {"project_id": prepared.project_id, "status": prepared.status}


class BatchUpdateTasksExecutor(BaseActionExecutor):
    action_type = ActionType.BATCH_UPDATE_TASKS

    async def resolve_target(
        self, config: BatchUpdateTasksConfig, context: WorkflowExecutionContext
    ) -> str:
        return config.filter.project_id or context.project_id

    async def prepare(
        self,
        config: BatchUpdateTasksConfig,
        context: WorkflowExecutionContext,
        target: str | None,
    ) -> BatchTaskUpdate:
        max_limit = self.deps.settings.batch_update_limit
        limit = min(config.limit or max_limit, max_limit)
        task_filter = config.filter
        query = TaskQuery(
            project_id=target,
            statuses=tuple(task_filter.status) if task_filter.status else None,
            assigned_to=task_filter.assigned_to,
            priorities=tuple(task_filter.priority) if task_filter.priority else None,
            limit=limit,
        )
        changes = TaskChanges(
            status=await self._text(config.updates.status, context),
            priority=await self._text(config.updates.priority, context),
            assigned_to=await self._text(config.updates.assigned_to, context),
        )
        return BatchTaskUpdate(query=query, changes=changes)

    async def apply(
        self, prepared: BatchTaskUpdate, context: WorkflowExecutionContext
    ) -> dict[str, Any]:
        if prepared.changes.is_empty():
            logger.info("batch_update_tasks: no updates configured")
            return {"updated": 0}
        tasks = await self.deps.task_repo.find(prepared.query)
        if not tasks:
            logger.info("batch_update_tasks: no tasks matched the filter")
            return {"updated": 0}
        task_ids = [task.id for task in tasks]
        updated = await self.deps.task_repo.update_many(task_ids, prepared.changes)
        for task_id in task_ids:
            await self.deps.reader.forget_task(task_id)
        logger.info(
            "Batch updated %s task(s) in project %s: %s",
            updated,
            prepared.query.project_id,
            prepared.changes.as_dict(),
        )
        return {"updated": updated, "task_ids": task_ids}


_DEFAULT_EXECUTORS: tuple[type[BaseActionExecutor], ...] = (
    UpdateTaskExecutor,
    CreateTaskExecutor,
    SendNotificationExecutor,
    AddCommentExecutor,
    UpdateCustomFieldExecutor,
    SendEmailExecutor,
    CreateCalendarEventExecutor,
    MoveToProjectExecutor,
    AssignToUserExecutor,
    UpdateProjectStatusExecutor,
    BatchUpdateTasksExecutor,
)


class ActionExecutorRegistry:
    """Maps action kinds to executors and runs one action at a time."""

    def __init__(self, executors: Iterable[BaseActionExecutor] = ()) -> None:
        self._executors: dict[str, BaseActionExecutor] = {}
        for executor in executors:
            self.register(executor)

    @classmethod
    def with_defaults(cls, deps: ActionDependencies) -> ActionExecutorRegistry:
        """Registry with one executor per built-in action kind."""
        return cls(executor_cls(deps) for executor_cls in _DEFAULT_EXECUTORS)

    def register(self, executor: BaseActionExecutor) -> None:
        self._executors[executor.action_type.value] = executor

    def supported_types(self) -> list[str]:
        return sorted(self._executors)

    def get(self, action_type: str) -> BaseActionExecutor:
        """Return the executor for action_type. Raises UnsupportedActionException."""
        executor = self._executors.get(action_type)
        if executor is None:
            raise UnsupportedActionException(action_type)
        return executor

    async def execute(self, action: Any, context: WorkflowExecutionContext) -> dict[str, Any]:
        """Run one action: resolve target, prepare, apply.

        Raises:
            ActionExecutionException: On any failure (unsupported kind and
                invalid stored config included).
        """
        if isinstance(action, InvalidAction):
            raise ActionExecutionException(
                action.type, f"Invalid configuration: {action.config_error()}"
            )
        executor = self.get(action.type)
        try:
            target = await executor.resolve_target(action.config, context)
            prepared = await executor.prepare(action.config, context, target)
            return await executor.apply(prepared, context)
        except ActionExecutionException:
            raise
        except Exception as e:
            raise ActionExecutionException(action.type, str(e) or type(e).__name__) from e
