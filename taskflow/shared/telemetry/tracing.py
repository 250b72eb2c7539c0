"""Spans around engine entry points (evaluate, execute, scheduler passes).

The global tracer is a no-op until TelemetryConfig.setup_telemetry() installs
a provider, so @traced costs nothing when telemetry is disabled.
"""

from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, ParamSpec, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

P = ParamSpec("P")
R = TypeVar("R")

_tracer = trace.get_tracer("taskflow")

# Keyword arguments recorded as span attributes; everything else (trigger
# payloads, action config) may carry user content and is left out.
_RECORDED_KWARGS = frozenset(
    {"workflow_id", "execution_id", "trigger_type", "project_id", "task_id", "status", "limit"}
)

Attribute = str | int | float | bool


def traced(
    name: str, **static_attributes: Attribute
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Run the decorated coroutine inside a span called name.

    Exceptions mark the span as errored and are re-raised unchanged.
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            with _tracer.start_as_current_span(
                name, record_exception=False, set_status_on_exception=False
            ) as span:
                for key, value in static_attributes.items():
                    span.set_attribute(key, value)
                for key, value in kwargs.items():
                    if key in _RECORDED_KWARGS and value is not None:
                        span.set_attribute(f"taskflow.{key}", str(value))
                try:
                    result = await func(*args, **kwargs)
                except Exception as exc:
                    span.record_exception(exc)
                    span.set_status(Status(StatusCode.ERROR, str(exc)))
                    raise
                span.set_status(Status(StatusCode.OK))
                return result

        return wrapper

    return decorator


def add_span_attributes(**attributes: Any) -> None:
    """Tag the active span; None values are skipped."""
    span = trace.get_current_span()
    if not span.is_recording():
        return
    for key, value in attributes.items():
        if value is not None:
            span.set_attribute(f"taskflow.{key}", value)
