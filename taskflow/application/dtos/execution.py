"""DTOs for execution statistics."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ExecutionStats:
    """Execution counts by outcome; success_rate is a percentage (0-100)."""

    total: int
    success: int
    partial: int
    failed: int
    success_rate: float
