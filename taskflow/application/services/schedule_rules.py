"""Schedule eligibility rules for the scheduler sweeps.

Pure functions over (config, last_executed, now). All wall-clock checks use
the schedule's own timezone when valid, else the configured default.
"""

from __future__ import annotations

from datetime import datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from taskflow.domain.entities.triggers import DueDateConfig, ScheduleConfig
from taskflow.shared.enums import ScheduleType
from taskflow.shared.telemetry.logging import get_logger
from taskflow.shared.utils.datetime import local_midnight, parse_hhmm, to_local, within_window

logger = get_logger(__name__)


def resolve_timezone(name: str | None, default: tzinfo) -> tzinfo:
    """ZoneInfo for name, or default when name is empty or unknown."""
    if not name:
        return default
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown schedule timezone %r, using default", name)
        return default


def js_weekday(moment: datetime) -> int:
    """Day of week with 0 = Sunday .. 6 = Saturday."""
    return (moment.weekday() + 1) % 7


def _slot_today(local_now: datetime, schedule_time: str) -> datetime | None:
    try:
        slot = parse_hhmm(schedule_time)
    except ValueError:
        logger.warning("Invalid schedule time %r", schedule_time)
        return None
    return local_now.replace(
        hour=slot.hour, minute=slot.minute, second=0, microsecond=0
    )


def in_time_slot(
    schedule_time: str, now: datetime, tz: tzinfo, window_minutes: int
) -> bool:
    """True when now is within +/- window_minutes of today's HH:MM in tz."""
    local_now = to_local(now, tz)
    slot = _slot_today(local_now, schedule_time)
    return slot is not None and within_window(local_now, slot, window_minutes)


def week_start(now: datetime, tz: tzinfo) -> datetime:
    """Local midnight of the Sunday starting the current week."""
    local_now = to_local(now, tz)
    sunday = local_now.date() - timedelta(days=js_weekday(local_now))
    return local_midnight(sunday, tz)


def due_date_slot_open(
    config: DueDateConfig,
    now: datetime,
    tz: tzinfo,
    window_minutes: int,
    default_time: str = "09:00",
) -> bool:
    """Whether the due-date sweep should evaluate this workflow now."""
    return in_time_slot(config.time_of_day or default_time, now, tz, window_minutes)


def _should_execute_daily(
    config: ScheduleConfig, last_executed: datetime | None, now: datetime, tz: tzinfo, window: int
) -> bool:
    if not config.schedule_time or not in_time_slot(config.schedule_time, now, tz, window):
        return False
    if last_executed and to_local(last_executed, tz).date() == to_local(now, tz).date():
        return False
    return True


def _should_execute_weekly(
    config: ScheduleConfig, last_executed: datetime | None, now: datetime, tz: tzinfo, window: int
) -> bool:
    if not config.days_of_week or not config.schedule_time:
        return False
    if js_weekday(to_local(now, tz)) not in config.days_of_week:
        return False
    if not in_time_slot(config.schedule_time, now, tz, window):
        return False
    if last_executed and last_executed >= week_start(now, tz):
        return False
    return True


def _should_execute_monthly(
    config: ScheduleConfig, last_executed: datetime | None, now: datetime, tz: tzinfo, window: int
) -> bool:
    if not config.day_of_month or not config.schedule_time:
        return False
    local_now = to_local(now, tz)
    if local_now.day != config.day_of_month:
        return False
    if not in_time_slot(config.schedule_time, now, tz, window):
        return False
    if last_executed:
        local_last = to_local(last_executed, tz)
        if (local_last.year, local_last.month) == (local_now.year, local_now.month):
            return False
    return True


def should_execute(
    config: ScheduleConfig,
    last_executed: datetime | None,
    now: datetime,
    default_tz: tzinfo,
    window_minutes: int = 15,
) -> bool:
    """Whether a scheduled workflow is due at now.

    daily: within the window of schedule_time, not yet run today.
    weekly: today in days_of_week (0 = Sunday), within the window, not yet
    run since the week started (Sunday 00:00).
    monthly: today is day_of_month, within the window, not yet run this month.
    cron: unsupported, never runs. Unknown types never run.

    Args:
        config: The workflow's schedule config.
        last_executed: Last scheduler dispatch, if any.
        now: Current time (aware).
        default_tz: Zone used when the config has no valid timezone.
        window_minutes: Half-width of the execution window.

    Returns:
        True when the workflow should run now.
    """
    tz = resolve_timezone(config.timezone, default_tz)
    schedule_type = config.schedule_type
    if schedule_type == ScheduleType.DAILY:
        return _should_execute_daily(config, last_executed, now, tz, window_minutes)
    if schedule_type == ScheduleType.WEEKLY:
        return _should_execute_weekly(config, last_executed, now, tz, window_minutes)
    if schedule_type == ScheduleType.MONTHLY:
        return _should_execute_monthly(config, last_executed, now, tz, window_minutes)
    if schedule_type == ScheduleType.CRON:
        logger.warning(
            "Cron schedules are not supported, skipping (expression=%r)",
            config.cron_expression,
        )
        return False
    logger.warning("Unknown schedule type: %r", schedule_type)
    return False
