"""Shared utilities: datetime, generators, background tasks."""

from taskflow.shared.utils.datetime import (
    ensure_utc,
    local_midnight,
    local_today,
    parse_hhmm,
    to_local,
    utc_now,
    within_window,
)
from taskflow.shared.utils.generators import generate_cuid

__all__ = [
    "generate_cuid",
    "utc_now",
    "ensure_utc",
    "to_local",
    "local_today",
    "local_midnight",
    "parse_hhmm",
    "within_window",
]
