"""Timezone helpers.

Persisted timestamps are aware UTC. Wall-clock rules (schedule times, "today",
date tokens in templates) are evaluated in the configured zone via the local_*
helpers.
"""

from datetime import UTC, date, datetime, time, timedelta, tzinfo


def utc_now() -> datetime:
    """Aware UTC now; the only clock engine code reads directly."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Normalize a value read back from the database to aware UTC.

    SQLite drops tzinfo, so naive values are taken as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_local(dt: datetime, tz: tzinfo) -> datetime:
    """Convert a datetime to the given zone; naive values are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(tz)


def local_today(now: datetime, tz: tzinfo) -> date:
    """Return the calendar date of `now` in the given zone."""
    return to_local(now, tz).date()


def local_midnight(day: date, tz: tzinfo) -> datetime:
    """Return 00:00 of `day` in the given zone as an aware datetime."""
    return datetime.combine(day, time.min, tzinfo=tz)


def parse_hhmm(value: str) -> time:
    """
    Parse an "HH:MM" wall-clock string.

    Raises:
        ValueError: If the value is not HH:MM with valid hour and minute.
    """
    hours_str, minutes_str = value.strip().split(":", 1)
    return time(hour=int(hours_str), minute=int(minutes_str))


def within_window(now: datetime, target: datetime, minutes: int) -> bool:
    """Return True when |now - target| <= minutes (inclusive)."""
    return abs(now - target) <= timedelta(minutes=minutes)
