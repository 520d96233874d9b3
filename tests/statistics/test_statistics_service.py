from datetime import date, datetime, timedelta

import pytest

from src.shift_tracker.shift_tracker.core.enums import StatsPeriod
from src.shift_tracker.shift_tracker.core.exceptions import ValidationError
from src.shift_tracker.shift_tracker.shifts.memory_shift_repository import InMemoryShiftRepository
from src.shift_tracker.shift_tracker.shifts.model import Location
from src.shift_tracker.shift_tracker.shifts.service import ShiftService
from src.shift_tracker.shift_tracker.statistics.controller import stats_to_json
from src.shift_tracker.shift_tracker.statistics.service import StatisticsService

HERE = Location(latitude=0.0, longitude=0.0)


def work_day(svc, employee_id, day, hours, break_minutes=0):
    start = datetime.combine(day, datetime.min.time()).replace(hour=8)
    svc.start_shift(employee_id, HERE, now=start)
    if break_minutes:
        svc.start_break(employee_id, "lunch", HERE, now=start + timedelta(hours=3))
        svc.end_break(employee_id, HERE, now=start + timedelta(hours=3, minutes=break_minutes))
    svc.end_shift(employee_id, HERE, now=start + timedelta(hours=hours))


@pytest.fixture()
def stats():
    repo = InMemoryShiftRepository()
    svc = ShiftService(repo)
    work_day(svc, 1, date(2025, 3, 2), 6)                       # Sunday, ISO week 9
    work_day(svc, 1, date(2025, 3, 3), 8, break_minutes=30)     # Monday, ISO week 10
    work_day(svc, 1, date(2025, 3, 8), 4)                       # Saturday
    work_day(svc, 1, date(2025, 3, 9), 5)                       # next Sunday
    work_day(svc, 2, date(2025, 3, 3), 10)
    # still running, not counted
    svc.start_shift(1, HERE, now=datetime(2025, 3, 5, 9, 0))
    return StatisticsService(repo)


def test_daily(stats):
    s = stats.get_statistics(1, "day", date(2025, 3, 3))

    assert (s.start_date, s.end_date) == (date(2025, 3, 3), date(2025, 3, 3))
    assert s.total_shifts == 1
    assert s.total_work_minutes == pytest.approx(450)
    assert s.total_break_minutes == pytest.approx(30)
    assert len(s.shifts) == 1


def test_daily_ignores_in_progress_shift(stats):
    s = stats.daily(1, date(2025, 3, 5))
    assert s.total_shifts == 0
    assert s.total_work_minutes == 0


def test_weekly_runs_sunday_to_saturday(stats):
    s = stats.get_statistics(1, StatsPeriod.WEEK, date(2025, 3, 5))

    assert (s.start_date, s.end_date) == (date(2025, 3, 2), date(2025, 3, 8))
    assert s.total_shifts == 3
    assert s.total_work_minutes == pytest.approx(360 + 450 + 240)
    assert s.total_hours == pytest.approx(17.5)
    assert [b.label for b in s.buckets][0] == "Sunday"
    assert [b.total_shifts for b in s.buckets] == [1, 1, 0, 0, 0, 0, 1]
    assert s.buckets[1].key == "2025-03-03"


def test_monthly_groups_by_iso_week(stats):
    s = stats.get_statistics(1, "month", date(2025, 3, 15))

    assert (s.start_date, s.end_date) == (date(2025, 3, 1), date(2025, 3, 31))
    assert s.total_shifts == 4
    assert s.total_work_minutes == pytest.approx(360 + 450 + 240 + 300)
    assert [(b.key, b.total_shifts) for b in s.buckets] == [("9", 1), ("10", 3)]


def test_invalid_period(stats):
    with pytest.raises(ValidationError):
        stats.get_statistics(1, "year", date(2025, 3, 3))


def test_stats_json_shapes(stats):
    week = stats_to_json(stats.weekly(1, date(2025, 3, 3)))
    assert week["totalHours"] == 17.5
    assert week["dailyStats"][0]["dayOfWeek"] == "Sunday"
    assert len(week["dailyStats"]) == 7

    month = stats_to_json(stats.monthly(1, date(2025, 3, 3)))
    assert (month["month"], month["year"]) == (3, 2025)
    assert month["weeklyStats"][1]["weekNumber"] == 10

    day = stats_to_json(stats.daily(1, date(2025, 3, 3)))
    assert day["shifts"][0]["totalWorkDuration"] == 450
