"""Domain entities: workflow definitions, triggers, actions, executions."""

from taskflow.domain.entities.actions import Action, InvalidAction, UnknownAction
from taskflow.domain.entities.triggers import (
    CommentAddedData,
    CustomFieldChangedConfig,
    CustomFieldChangedData,
    DueDateApproachingData,
    DueDateConfig,
    FileUploadedData,
    GenericTriggerConfig,
    GenericTriggerData,
    ScheduleConfig,
    ScheduledData,
    TaskAssignedConfig,
    TaskAssignedData,
    TaskCreatedConfig,
    TaskCreatedData,
    TaskStatusChangedConfig,
    TaskStatusChangedData,
    TriggerConfig,
    TriggerData,
    TriggerDataBase,
    parse_trigger_data,
)
from taskflow.domain.entities.workflow import (
    WorkflowDefinition,
    WorkflowExecution,
    WorkflowExecutionContext,
)

__all__ = [
    "Action",
    "InvalidAction",
    "UnknownAction",
    "TriggerConfig",
    "TaskStatusChangedConfig",
    "TaskCreatedConfig",
    "TaskAssignedConfig",
    "DueDateConfig",
    "CustomFieldChangedConfig",
    "ScheduleConfig",
    "GenericTriggerConfig",
    "TriggerData",
    "TriggerDataBase",
    "TaskStatusChangedData",
    "TaskCreatedData",
    "TaskAssignedData",
    "DueDateApproachingData",
    "CustomFieldChangedData",
    "FileUploadedData",
    "CommentAddedData",
    "ScheduledData",
    "GenericTriggerData",
    "parse_trigger_data",
    "WorkflowDefinition",
    "WorkflowExecution",
    "WorkflowExecutionContext",
]
