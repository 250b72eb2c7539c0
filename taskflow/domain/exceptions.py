"""Domain exceptions for the taskflow engine.

Defines domain-level exceptions for workflow lookup, action execution and
validation failures. Independent of infrastructure; the presentation layer
maps them to HTTP responses in exception handlers.
"""

from typing import Any


class TaskflowException(Exception):
    """Base exception for all taskflow errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON error body used by the API exception handler."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(TaskflowException):
    """Raised when input validation fails (e.g. invalid format or state)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class ResourceNotFoundException(TaskflowException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'workflow_execution').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class WorkflowNotFoundException(ResourceNotFoundException):
    """Raised when a workflow definition cannot be loaded for execution."""

    def __init__(self, workflow_id: str) -> None:
        super().__init__("workflow", workflow_id)
        self.message = f"Workflow not found: {workflow_id}"
        self.args = (self.message,)


class ActionExecutionException(TaskflowException):
    """Raised when a single workflow action fails.

    The engine catches it per action and downgrades the run to partial.
    """

    def __init__(
        self,
        action_type: str,
        reason: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the failing action type and a reason.

        Args:
            action_type: The action kind (e.g. 'update_task').
            reason: Human-readable reason.
            details: Optional extra context merged into details.
        """
        self.action_type = action_type
        self.reason = reason
        super().__init__(
            f"{action_type}: {reason}",
            "ACTION_EXECUTION_ERROR",
            {"action_type": action_type, **(details or {})},
        )


class UnsupportedActionException(ActionExecutionException):
    """Raised when an action kind has no registered executor."""

    def __init__(self, action_type: str) -> None:
        super().__init__(action_type, f"Unsupported action type: {action_type}")
        self.error_code = "UNSUPPORTED_ACTION"


class MissingActionTargetException(ActionExecutionException):
    """Raised when an action has no explicit or implicit target entity."""

    def __init__(self, action_type: str, target: str) -> None:
        super().__init__(
            action_type,
            f"No {target} available for {action_type} action",
            {"target": target},
        )
        self.error_code = "MISSING_ACTION_TARGET"


class CustomFieldValidationException(ActionExecutionException):
    """Raised when a custom field value fails the action's validation rules."""

    def __init__(self, reason: str, value: Any = None) -> None:
        super().__init__("update_custom_field", reason, {"value": value})
        self.error_code = "CUSTOM_FIELD_VALIDATION_ERROR"


class SqlNotConfiguredException(TaskflowException):
    """Raised when an operation requires the database but DATABASE_URL is unset."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires a SQL database that is not configured.",
            error_code="SERVICE_UNAVAILABLE",
        )


class SchedulerAuthException(TaskflowException):
    """Raised when the scheduler endpoint is called without the shared secret."""

    def __init__(self) -> None:
        super().__init__("Invalid or missing scheduler secret", "SCHEDULER_AUTH_ERROR")
