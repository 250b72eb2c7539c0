"""Application use cases: execution management and trigger emitters."""

from taskflow.application.use_cases.executions import ExecutionService
from taskflow.application.use_cases.triggers import WorkflowTriggers

__all__ = [
    "ExecutionService",
    "WorkflowTriggers",
]
