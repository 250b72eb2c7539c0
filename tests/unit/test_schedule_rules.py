"""Schedule eligibility rules (daily, weekly, monthly, cron, due-date slot)."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from taskflow.application.services.schedule_rules import (
    due_date_slot_open,
    in_time_slot,
    js_weekday,
    resolve_timezone,
    should_execute,
    week_start,
)
from taskflow.domain.entities.triggers import DueDateConfig, ScheduleConfig

UTC = timezone.utc
# Saturday
NOW = datetime(2026, 10, 17, 9, 0, tzinfo=UTC)


def _daily(**overrides) -> ScheduleConfig:
    return ScheduleConfig(**{"schedule_type": "daily", "schedule_time": "09:00", **overrides})


def test_js_weekday_starts_on_sunday() -> None:
    assert js_weekday(NOW) == 6
    assert js_weekday(datetime(2026, 10, 18, 12, 0, tzinfo=UTC)) == 0
    assert js_weekday(datetime(2026, 10, 19, 12, 0, tzinfo=UTC)) == 1


def test_week_start_is_previous_sunday_midnight() -> None:
    assert week_start(NOW, UTC) == datetime(2026, 10, 11, 0, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    ("schedule_time", "expected"),
    [("09:00", True), ("09:15", True), ("08:45", True), ("09:16", False), ("25:99", False)],
)
def test_in_time_slot_window_is_inclusive(schedule_time: str, expected: bool) -> None:
    assert in_time_slot(schedule_time, NOW, UTC, 15) is expected


def test_daily_runs_once_per_day() -> None:
    config = _daily()
    assert should_execute(config, None, NOW, UTC)
    assert not should_execute(config, datetime(2026, 10, 17, 0, 5, tzinfo=UTC), NOW, UTC)
    assert should_execute(config, datetime(2026, 10, 16, 9, 0, tzinfo=UTC), NOW, UTC)


def test_daily_outside_window_or_without_time() -> None:
    assert not should_execute(_daily(schedule_time="11:00"), None, NOW, UTC)
    assert not should_execute(_daily(schedule_time=None), None, NOW, UTC)


def test_weekly_checks_day_window_and_week() -> None:
    config = ScheduleConfig(schedule_type="weekly", schedule_time="09:00", days_of_week=[6])
    assert should_execute(config, None, NOW, UTC)
    # Already ran this week (since Sunday 2026-10-11)
    assert not should_execute(config, datetime(2026, 10, 12, 9, 0, tzinfo=UTC), NOW, UTC)
    # Last run in the previous week
    assert should_execute(config, datetime(2026, 10, 10, 9, 0, tzinfo=UTC), NOW, UTC)

    wrong_day = ScheduleConfig(schedule_type="weekly", schedule_time="09:00", days_of_week=[1, 3])
    assert not should_execute(wrong_day, None, NOW, UTC)
    assert not should_execute(
        ScheduleConfig(schedule_type="weekly", schedule_time="09:00"), None, NOW, UTC
    )


def test_monthly_checks_day_and_month() -> None:
    config = ScheduleConfig(schedule_type="monthly", schedule_time="09:00", day_of_month=17)
    assert should_execute(config, None, NOW, UTC)
    assert not should_execute(config, datetime(2026, 10, 1, 9, 0, tzinfo=UTC), NOW, UTC)
    assert should_execute(config, datetime(2026, 9, 17, 9, 0, tzinfo=UTC), NOW, UTC)

    other_day = ScheduleConfig(schedule_type="monthly", schedule_time="09:00", day_of_month=16)
    assert not should_execute(other_day, None, NOW, UTC)


def test_cron_and_unknown_types_never_run() -> None:
    cron = ScheduleConfig(schedule_type="cron", cron_expression="0 9 * * *", schedule_time="09:00")
    assert not should_execute(cron, None, NOW, UTC)
    assert not should_execute(ScheduleConfig(schedule_type="hourly"), None, NOW, UTC)
    assert not should_execute(ScheduleConfig(), None, NOW, UTC)


def test_schedule_timezone_overrides_default() -> None:
    """09:00 UTC is 11:00 in Berlin (CEST) on 2026-10-17."""
    berlin = _daily(schedule_time="11:00", timezone="Europe/Berlin")
    assert should_execute(berlin, None, NOW, UTC)
    assert not should_execute(_daily(schedule_time="11:00"), None, NOW, UTC)


def test_invalid_schedule_timezone_falls_back_to_default() -> None:
    assert resolve_timezone("Mars/Olympus", UTC) is UTC
    assert resolve_timezone(None, UTC) is UTC
    assert resolve_timezone("Europe/Berlin", UTC) == ZoneInfo("Europe/Berlin")
    assert should_execute(_daily(timezone="Mars/Olympus"), None, NOW, UTC)


def test_due_date_slot_uses_time_of_day() -> None:
    assert due_date_slot_open(DueDateConfig(time_of_day="09:10"), NOW, UTC, 15)
    assert not due_date_slot_open(DueDateConfig(time_of_day="10:00"), NOW, UTC, 15)
    assert due_date_slot_open(DueDateConfig(time_of_day=""), NOW, UTC, 15, default_time="09:00")
