"""Logging setup, the OpenTelemetry provider and span helpers."""

from taskflow.shared.telemetry.logging import get_logger, setup_logging
from taskflow.shared.telemetry.telemetry import TelemetryConfig
from taskflow.shared.telemetry.tracing import add_span_attributes, traced

__all__ = [
    "TelemetryConfig",
    "add_span_attributes",
    "get_logger",
    "setup_logging",
    "traced",
]
