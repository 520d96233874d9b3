from datetime import datetime, timedelta

import pytest

from src.shift_tracker.shift_tracker.core.enums import BreakType, Role, ShiftStatus
from src.shift_tracker.shift_tracker.core.exceptions import (
    AuthorizationError,
    DuplicateActiveShiftError,
    InvalidBreakTypeError,
    ShiftNotFoundError,
    ValidationError,
)
from src.shift_tracker.shift_tracker.shifts.durations import DurationAccountant
from src.shift_tracker.shift_tracker.shifts.memory_shift_repository import InMemoryShiftRepository
from src.shift_tracker.shift_tracker.shifts.model import Location
from src.shift_tracker.shift_tracker.shifts.override import ShiftOverride, parse_override
from src.shift_tracker.shift_tracker.shifts.serializers import shift_to_json
from src.shift_tracker.shift_tracker.shifts.service import ShiftService

T0 = datetime(2025, 3, 3, 8, 0)
HQ = Location(latitude=10.0, longitude=106.0, address="HQ")


@pytest.fixture()
def service():
    return ShiftService(InMemoryShiftRepository())


@pytest.fixture()
def completed(service):
    service.start_shift(7, HQ, now=T0)
    return service.end_shift(7, HQ, now=T0 + timedelta(hours=8)).shift


def test_parse_override_reads_camel_case_body():
    o = parse_override(
        {
            "startTime": "2025-03-03T07:30:00",
            "endTime": "2025-03-03T16:00:00",
            "status": "completed",
            "breaks": [
                {"type": "lunch", "startTime": "2025-03-03T12:00:00", "endTime": "2025-03-03T12:45:00",
                 "startLocation": {"latitude": 1, "longitude": 2}},
            ],
            "notes": "fixed by admin",
        }
    )
    assert o.start_time == datetime(2025, 3, 3, 7, 30)
    assert o.status is ShiftStatus.COMPLETED
    assert o.breaks[0].break_type is BreakType.LUNCH
    assert o.breaks[0].start_location == Location(1.0, 2.0, "")
    assert o.notes == "fixed by admin"


@pytest.mark.parametrize(
    "body, error",
    [
        ({"status": "paused"}, ValidationError),
        ({"breaks": "lunch"}, ValidationError),
        ({"breaks": [{"type": "nap", "startTime": "2025-03-03T12:00:00"}]}, InvalidBreakTypeError),
        ({"breaks": [{"type": "short"}]}, ValidationError),
        ({"startTime": "yesterday"}, ValidationError),
        ({"notes": 42}, ValidationError),
    ],
)
def test_parse_override_rejects_bad_bodies(body, error):
    with pytest.raises(error):
        parse_override(body)


def test_override_recomputes_durations(service, completed):
    o = parse_override(
        {
            "startTime": "2025-03-03T07:00:00",
            "breaks": [
                {"type": "short", "startTime": "2025-03-03T10:00:00", "endTime": "2025-03-03T10:10:00"},
                {"type": "lunch", "startTime": "2025-03-03T12:00:00", "endTime": "2025-03-03T12:50:00"},
            ],
        }
    )

    edited = service.admin_override_shift(current_role=Role.ADMIN, shift_id=completed.shift_id, override=o)

    assert edited.status is ShiftStatus.COMPLETED
    assert edited.total_break_duration == pytest.approx(60)
    # 07:00 -> 16:00 is 540 minutes
    assert edited.total_work_duration == pytest.approx(480)
    assert [b.break_id for b in edited.breaks] == [1, 2]
    assert edited.breaks[0].start_time.location == HQ


def test_override_reopens_a_completed_shift(service, completed):
    edited = service.admin_override_shift(
        current_role=Role.ADMIN, shift_id=completed.shift_id, override=ShiftOverride(status=ShiftStatus.ACTIVE)
    )

    assert edited.status is ShiftStatus.ACTIVE
    assert edited.end_time is None
    assert service.get_current_shift(7) == edited


def test_override_cannot_reopen_when_another_shift_is_active(service, completed):
    service.start_shift(7, HQ, now=T0 + timedelta(days=1))

    with pytest.raises(DuplicateActiveShiftError):
        service.admin_override_shift(
            current_role=Role.ADMIN, shift_id=completed.shift_id, override=ShiftOverride(status=ShiftStatus.ACTIVE)
        )


def test_override_end_time_completes_an_active_shift(service):
    shift = service.start_shift(7, HQ, now=T0)

    edited = service.admin_override_shift(
        current_role=Role.ADMIN,
        shift_id=shift.shift_id,
        override=ShiftOverride(end_time=T0 + timedelta(hours=4)),
    )

    assert edited.status is ShiftStatus.COMPLETED
    assert edited.total_work_duration == pytest.approx(240)
    assert service.get_current_shift(7) is None


@pytest.mark.parametrize(
    "override",
    [
        ShiftOverride(status=ShiftStatus.ON_BREAK),
        ShiftOverride(status=ShiftStatus.ACTIVE, end_time=T0 + timedelta(hours=1)),
    ],
)
def test_override_rejects_inconsistent_status(service, completed, override):
    with pytest.raises(ValidationError):
        service.admin_override_shift(current_role=Role.ADMIN, shift_id=completed.shift_id, override=override)


def test_override_rejects_open_break_before_the_last(service, completed):
    o = parse_override(
        {
            "breaks": [
                {"type": "short", "startTime": "2025-03-03T10:00:00"},
                {"type": "lunch", "startTime": "2025-03-03T12:00:00", "endTime": "2025-03-03T12:30:00"},
            ]
        }
    )
    with pytest.raises(ValidationError):
        service.admin_override_shift(current_role=Role.ADMIN, shift_id=completed.shift_id, override=o)


def test_override_needs_admin_and_an_existing_shift(service, completed):
    with pytest.raises(AuthorizationError):
        service.admin_override_shift(
            current_role=Role.EMPLOYEE, shift_id=completed.shift_id, override=ShiftOverride(notes="x")
        )
    with pytest.raises(ShiftNotFoundError):
        service.admin_override_shift(current_role=Role.ADMIN, shift_id=999, override=ShiftOverride(notes="x"))
    with pytest.raises(ValidationError):
        service.admin_override_shift(current_role=Role.ADMIN, shift_id=completed.shift_id, override=ShiftOverride())


def test_override_with_reversed_break_is_flagged(service, completed):
    o = parse_override(
        {"breaks": [{"type": "lunch", "startTime": "2025-03-03T11:20:00", "endTime": "2025-03-03T10:20:00"}]}
    )

    edited = service.admin_override_shift(current_role=Role.ADMIN, shift_id=completed.shift_id, override=o)

    assert edited.total_break_duration == 0
    assert edited.total_work_duration == pytest.approx(480)
    assert "break 1 ends before it starts" in DurationAccountant().anomalies(edited)
    assert "break 1 ends before it starts" in shift_to_json(edited)["anomalies"]
