from dataclasses import replace
from datetime import date, datetime, timedelta

import pytest

from src.shift_tracker.shift_tracker.core.enums import ShiftStatus
from src.shift_tracker.shift_tracker.core.exceptions import (
    ConcurrentModificationError,
    DuplicateActiveShiftError,
    ShiftNotFoundError,
)
from src.shift_tracker.shift_tracker.shifts.memory_shift_repository import InMemoryShiftRepository
from src.shift_tracker.shift_tracker.shifts.model import Location, Shift, TimestampLocation

T0 = datetime(2025, 3, 3, 8, 0)
HERE = Location(latitude=0.0, longitude=0.0)


def new_shift(employee_id=1, start=T0, status=ShiftStatus.ACTIVE):
    end = TimestampLocation(start + timedelta(hours=8), HERE) if status is ShiftStatus.COMPLETED else None
    return Shift(
        shift_id=None,
        employee_id=employee_id,
        work_date=start.date(),
        status=status,
        start_time=TimestampLocation(start, HERE),
        end_time=end,
    )


def test_create_assigns_id_and_version():
    repo = InMemoryShiftRepository()
    a = repo.create(new_shift())
    b = repo.create(new_shift(employee_id=2))

    assert (a.shift_id, a.version) == (1, 1)
    assert b.shift_id == 2
    assert repo.get_active_for_employee(1) == a


def test_create_rejects_second_in_progress_shift():
    repo = InMemoryShiftRepository()
    repo.create(new_shift())
    with pytest.raises(DuplicateActiveShiftError):
        repo.create(new_shift(start=T0 + timedelta(hours=1)))
    repo.create(new_shift(start=T0 - timedelta(days=1), status=ShiftStatus.COMPLETED))


def test_update_is_conditional_on_version():
    repo = InMemoryShiftRepository()
    s = repo.create(new_shift())

    updated = repo.update(replace(s, notes="a"), expected_version=s.version)
    assert updated.version == 2

    with pytest.raises(ConcurrentModificationError):
        repo.update(replace(s, notes="b"), expected_version=s.version)
    assert repo.get_by_id(s.shift_id).notes == "a"


def test_update_missing_shift():
    repo = InMemoryShiftRepository()
    with pytest.raises(ShiftNotFoundError):
        repo.update(replace(new_shift(), shift_id=5), expected_version=1)


def test_update_cannot_create_second_active_shift():
    repo = InMemoryShiftRepository()
    old = repo.create(new_shift(start=T0 - timedelta(days=1), status=ShiftStatus.COMPLETED))
    repo.create(new_shift())

    with pytest.raises(DuplicateActiveShiftError):
        repo.update(replace(old, status=ShiftStatus.ACTIVE, end_time=None), expected_version=old.version)


def test_filters_and_paging():
    repo = InMemoryShiftRepository()
    for day in range(5):
        repo.create(new_shift(start=T0 + timedelta(days=day), status=ShiftStatus.COMPLETED))
    repo.create(new_shift(employee_id=2, status=ShiftStatus.COMPLETED))

    window = repo.list_for_employee(1, start_date=date(2025, 3, 4), end_date=date(2025, 3, 6))
    assert [s.work_date.day for s in window] == [6, 5, 4]
    assert repo.count_for_employee(1, start_date=date(2025, 3, 4)) == 4

    oldest = repo.list_for_employee(1, limit=2, newest_first=False)
    assert [s.work_date.day for s in oldest] == [3, 4]

    assert repo.count_all() == 6
    assert repo.count_all(employee_id=2) == 1
    assert len(repo.list_all(limit=2, offset=5)) == 1
    assert repo.list_all(status=ShiftStatus.ACTIVE) == []


def test_delete():
    repo = InMemoryShiftRepository()
    s = repo.create(new_shift())
    assert repo.delete(s.shift_id) is True
    assert repo.delete(s.shift_id) is False
    assert repo.get_active_for_employee(1) is None
