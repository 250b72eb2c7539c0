"""Core constants: cache key prefixes and shared literal values.

Single source of truth for cache key structure (DRY). Used by
infrastructure cache and the engine services.
"""

# Cache key prefixes (used with :<kind>:<id parts>)
CACHE_PREFIX_ENTITY = "entity"
CACHE_PREFIX_WORKFLOWS = "workflows"

# Delimiter for composite keys
CACHE_KEY_SEP = ":"

# Entity cache kinds
CACHE_KIND_TASK = "task"
CACHE_KIND_PROJECT = "project"
CACHE_KIND_USER = "user"
CACHE_KIND_CUSTOM_FIELD_VALUE = "custom_field_value"
CACHE_KIND_WORKFLOWS = "workflows"

# Task status treated as closed by the scheduler sweeps
TASK_STATUS_DONE = "done"

# Defaults applied by actions when config leaves them unset
DEFAULT_TASK_TITLE = "New Task"
DEFAULT_TASK_STATUS = "todo"
DEFAULT_PRIORITY = "medium"
DEFAULT_NOTIFICATION_TITLE = "Automated workflow action"
UNKNOWN_USER_NAME = "Unknown user"

# Notification types written to the notification sink
NOTIFICATION_AUTOMATED_ACTION = "automated_action"
NOTIFICATION_WORKFLOW_EXECUTED = "workflow_executed"
NOTIFICATION_WORKFLOW_FAILED = "workflow_failed"
NOTIFICATION_WORKFLOW_PARTIAL = "workflow_partial"
NOTIFICATION_OVERDUE = "overdue"
