"""Variable substitution for workflow action parameters.

Replaces ``{{path.field}}`` tokens in free-text action parameters with values
from the triggering task, project, users, custom fields, trigger data and the
current date/time. Also parses relative date expressions such as "+3 days".
"""

from __future__ import annotations

import json
import math
import re
from datetime import datetime, timedelta, tzinfo
from typing import Any

from taskflow.application.services.entity_reader import EntityReader
from taskflow.core.config import Settings, get_settings
from taskflow.core.constants import UNKNOWN_USER_NAME
from taskflow.domain.entities.triggers import TriggerDataBase
from taskflow.domain.entities.workflow import WorkflowExecutionContext
from taskflow.shared.telemetry.logging import get_logger
from taskflow.shared.utils.datetime import local_midnight, to_local, utc_now

logger = get_logger(__name__)

_CUSTOM_FIELD_TOKEN_RE = re.compile(r"\{\{custom_field\.(\w+)\}\}")
_RELATIVE_DATE_RE = re.compile(
    r"^([+-])(\d+)\s*(days|day|hours|hour|weeks|week)", re.IGNORECASE
)

_AVAILABLE_VARIABLES: dict[str, list[str]] = {
    "Task Variables": [
        "{{task.id}}",
        "{{task.title}}",
        "{{task.description}}",
        "{{task.status}}",
        "{{task.priority}}",
        "{{task.due_date}}",
        "{{task.assigned_to_name}}",
        "{{task.created_by_name}}",
        "{{task.due_in_days}}",
    ],
    "Project Variables": [
        "{{project.id}}",
        "{{project.name}}",
        "{{project.description}}",
        "{{project.status}}",
    ],
    "User Variables": [
        "{{user.name}}",
        "{{user.email}}",
        "{{trigger_user.name}}",
        "{{trigger_user.email}}",
    ],
    "Date/Time Variables": [
        "{{current_date}}",
        "{{current_time}}",
        "{{current_timestamp}}",
        "{{current_iso_date}}",
    ],
    "Custom Field Variables": ["{{custom_field.field_name}}"],
    "Trigger Variables": [
        "{{trigger.from_status}}",
        "{{trigger.to_status}}",
        "{{trigger.file_name}}",
        "{{trigger.file_type}}",
        "{{trigger.from_user}}",
        "{{trigger.to_user}}",
    ],
}


def render_value(value: Any) -> str:
    """Render a value for insertion into a template."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, dict | list):
        return json.dumps(value)
    return str(value)


def _replace(template: str, token: str, value: Any) -> str:
    return template.replace("{{" + token + "}}", render_value(value))


def parse_date_expression(
    expression: str,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> datetime:
    """Parse a relative or absolute date expression. Never raises.

    Supported forms: "+3 days", "-2 hours", "+1 week" (case-insensitive),
    "today", "tomorrow", "yesterday", and ISO-8601 ("Z" accepted). Naive ISO
    values take `tz` (default: configured timezone). Anything else yields now.

    Args:
        expression: Expression to parse.
        now: Reference time (defaults to the current UTC time).
        tz: Zone for naive ISO values.

    Returns:
        Timezone-aware datetime.
    """
    now = now or utc_now()
    expr = (expression or "").strip()

    if expr[:1] in ("+", "-"):
        match = _RELATIVE_DATE_RE.match(expr)
        if match:
            amount = int(match.group(2)) * (1 if match.group(1) == "+" else -1)
            unit = match.group(3).lower()
            if unit.startswith("day"):
                return now + timedelta(days=amount)
            if unit.startswith("hour"):
                return now + timedelta(hours=amount)
            return now + timedelta(weeks=amount)

    keyword = expr.lower()
    if keyword == "today":
        return now
    if keyword == "tomorrow":
        return now + timedelta(days=1)
    if keyword == "yesterday":
        return now - timedelta(days=1)

    try:
        parsed = datetime.fromisoformat(expr.replace("Z", "+00:00"))
    except ValueError:
        return now
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz or get_settings().tzinfo)
    return parsed


class VariableSubstitution:
    """Resolves {{...}} tokens against the execution context. Never raises."""

    def __init__(self, reader: EntityReader, settings: Settings | None = None) -> None:
        self.reader = reader
        self.settings = settings or get_settings()

    @staticmethod
    def available_variables() -> dict[str, list[str]]:
        """Token catalog grouped by category (for help screens)."""
        return {category: list(tokens) for category, tokens in _AVAILABLE_VARIABLES.items()}

    def parse_date_expression(self, expression: str, now: datetime | None = None) -> datetime:
        """parse_date_expression() with the configured timezone."""
        return parse_date_expression(expression, now=now, tz=self.settings.tzinfo)

    async def substitute(
        self,
        template: Any,
        context: WorkflowExecutionContext,
        now: datetime | None = None,
    ) -> Any:
        """Replace every known token in template.

        Non-string or empty templates are returned unchanged; unresolved
        tokens stay in place. On any internal error the original template is
        returned.

        Args:
            template: Text with {{...}} tokens.
            context: Execution context of the current run.
            now: Reference time for date tokens (defaults to the current time).

        Returns:
            The substituted text.
        """
        if not template or not isinstance(template, str):
            return template
        now = now or utc_now()
        trigger_data = context.trigger_data
        try:
            result = template
            if trigger_data.task_id:
                result = await self._substitute_task(result, trigger_data.task_id, now)
            result = await self._substitute_project(result, context.project_id)
            result = await self._substitute_users(result, context)
            result = self._substitute_datetime(result, now)
            if trigger_data.task_id:
                result = await self._substitute_custom_fields(
                    result, trigger_data.task_id, context.project_id
                )
            result = self._substitute_trigger(result, trigger_data)
        except Exception:
            logger.exception("Variable substitution failed for %r", template)
            return template
        if result != template:
            logger.debug("Variable substitution: %r -> %r", template, result)
        return result

    async def _user_name(self, user_id: str) -> str:
        user = await self.reader.get_user(user_id)
        return user.display_name if user else UNKNOWN_USER_NAME

    async def _substitute_task(self, template: str, task_id: str, now: datetime) -> str:
        task = await self.reader.get_task(task_id)
        if task is None:
            return template
        result = template
        result = _replace(result, "task.id", task.id)
        result = _replace(result, "task.title", task.title)
        result = _replace(result, "task.description", task.description)
        result = _replace(result, "task.status", task.status)
        result = _replace(result, "task.priority", task.priority)
        result = _replace(
            result,
            "task.due_date",
            task.due_date.strftime(self.settings.date_format) if task.due_date else "",
        )
        if "{{task.assigned_to_name}}" in result and task.assigned_to:
            result = _replace(
                result, "task.assigned_to_name", await self._user_name(task.assigned_to)
            )
        if "{{task.created_by_name}}" in result and task.created_by:
            result = _replace(
                result, "task.created_by_name", await self._user_name(task.created_by)
            )
        if "{{task.due_in_days}}" in result and task.due_date:
            due_at = local_midnight(task.due_date, self.settings.tzinfo)
            days = math.ceil((due_at - now).total_seconds() / 86400)
            result = _replace(result, "task.due_in_days", days)
        return result

    async def _substitute_project(self, template: str, project_id: str) -> str:
        project = await self.reader.get_project(project_id)
        if project is None:
            return template
        result = template
        result = _replace(result, "project.id", project.id)
        result = _replace(result, "project.name", project.name)
        result = _replace(result, "project.description", project.description)
        result = _replace(result, "project.status", project.status)
        return result

    async def _substitute_users(
        self, template: str, context: WorkflowExecutionContext
    ) -> str:
        user = await self.reader.get_user(context.user_id)
        if user is None:
            return template
        result = _replace(template, "user.name", user.display_name)
        result = _replace(result, "user.email", user.email)

        trigger_user_id = context.trigger_data.user_id
        if trigger_user_id:
            trigger_user = await self.reader.get_user(trigger_user_id)
            if trigger_user is not None:
                result = _replace(result, "trigger_user.name", trigger_user.display_name)
                result = _replace(result, "trigger_user.email", trigger_user.email)
        return result

    def _substitute_datetime(self, template: str, now: datetime) -> str:
        local_now = to_local(now, self.settings.tzinfo)
        current_date = local_now.strftime(self.settings.date_format)
        current_time = local_now.strftime(self.settings.time_format)
        result = _replace(template, "current_date", current_date)
        result = _replace(result, "current_time", current_time)
        result = _replace(result, "current_timestamp", f"{current_date}, {current_time}")
        result = _replace(result, "current_iso_date", local_now.date().isoformat())
        return result

    async def _substitute_custom_fields(
        self, template: str, task_id: str, project_id: str
    ) -> str:
        result = template
        for field_name in dict.fromkeys(_CUSTOM_FIELD_TOKEN_RE.findall(template)):
            record = await self.reader.get_custom_field_value(
                task_id, field_name, "task", project_id
            )
            result = _replace(
                result, f"custom_field.{field_name}", record.value if record else ""
            )
        return result

    def _substitute_trigger(self, template: str, trigger_data: TriggerDataBase) -> str:
        result = template
        if trigger_data.has("from_status") and trigger_data.has("to_status"):
            result = _replace(result, "trigger.from_status", trigger_data.get("from_status"))
            result = _replace(result, "trigger.to_status", trigger_data.get("to_status"))
        if trigger_data.has("file_name"):
            result = _replace(result, "trigger.file_name", trigger_data.get("file_name"))
            result = _replace(result, "trigger.file_type", trigger_data.get("file_type"))
        if trigger_data.has("from_user") and trigger_data.has("to_user"):
            result = _replace(result, "trigger.from_user", trigger_data.get("from_user"))
            result = _replace(result, "trigger.to_user", trigger_data.get("to_user"))
        return result
