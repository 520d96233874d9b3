from datetime import date, datetime

import pytest

from src.shift_tracker.shift_tracker.core.enums import BreakType, NotificationType, ShiftStatus
from src.shift_tracker.shift_tracker.core.exceptions import NotificationNotFoundError
from src.shift_tracker.shift_tracker.notifications.memory_notification_repository import InMemoryNotificationRepository
from src.shift_tracker.shift_tracker.notifications.service import NotificationService
from src.shift_tracker.shift_tracker.shifts.model import Location, Shift, TimestampLocation

NOW = datetime(2025, 3, 3, 17, 0)


@pytest.fixture()
def service():
    return NotificationService(InMemoryNotificationRepository())


def completed_shift(employee_id=4):
    here = Location(latitude=1.0, longitude=1.0)
    return Shift(
        shift_id=12,
        employee_id=employee_id,
        work_date=date(2025, 3, 3),
        status=ShiftStatus.COMPLETED,
        start_time=TimestampLocation(datetime(2025, 3, 3, 8, 0), here),
        end_time=TimestampLocation(NOW, here),
        total_work_duration=415,
        total_break_duration=65,
    )


def test_shift_completed_message(service):
    service.shift_completed(completed_shift(), now=NOW)

    [n] = service.list_for_employee(4)
    assert n.notification_type is NotificationType.SHIFT_COMPLETED
    assert n.message == (
        "You have completed your shift with a total of 415.00 minutes worked and 65.00 minutes on breaks."
    )
    assert n.created_at == NOW
    assert n.is_read is False


def test_break_exceeded_message(service):
    service.break_exceeded(4, BreakType.LUNCH, 5, now=NOW)

    [n] = service.list_for_employee(4)
    assert n.notification_type is NotificationType.BREAK_EXCEEDED
    assert n.message == "Your lunch break has exceeded the recommended duration by 5 minutes."


def test_list_newest_first_and_unread_filter(service):
    first = service.break_exceeded(4, BreakType.SHORT, 3, now=datetime(2025, 3, 3, 10, 0))
    second = service.shift_completed(completed_shift(), now=NOW)
    service.break_exceeded(9, BreakType.SHORT, 1, now=NOW)

    assert [n.notification_id for n in service.list_for_employee(4)] == [second, first]

    service.mark_read(employee_id=4, notification_id=second)
    assert [n.notification_id for n in service.list_for_employee(4, unread_only=True)] == [first]
    assert len(service.list_for_employee(4, limit=1)) == 1


def test_mark_read_hides_other_employees_notifications(service):
    nid = service.break_exceeded(4, BreakType.SHORT, 3, now=NOW)

    with pytest.raises(NotificationNotFoundError):
        service.mark_read(employee_id=5, notification_id=nid)
    with pytest.raises(NotificationNotFoundError):
        service.mark_read(employee_id=4, notification_id=nid + 100)
    assert service.list_for_employee(4)[0].is_read is False
