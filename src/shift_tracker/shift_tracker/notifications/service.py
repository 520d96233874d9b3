from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_NOTIFICATION_LIMIT
from ..core.enums import BreakType, NotificationType
from ..core.exceptions import NotificationNotFoundError
from ..shifts.model import Shift
from .model import Notification
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    """Stores "shift completed" and "break exceeded" events for employees to read.

    Delivery beyond the stored record (mail, push) is left to other consumers.
    """

    def __init__(self, notifications: NotificationRepository):
        self._notifications = notifications

    def shift_completed(self, shift: Shift, *, now: datetime | None = None) -> int:
        message = (
            f"You have completed your shift with a total of {shift.total_work_duration:.2f} "
            f"minutes worked and {shift.total_break_duration:.2f} minutes on breaks."
        )
        return self._create(shift.employee_id, NotificationType.SHIFT_COMPLETED, message, now)

    def break_exceeded(self, employee_id: int, break_type: BreakType, exceeded_by: int, *, now: datetime | None = None) -> int:
        message = (
            f"Your {break_type.value.lower()} break has exceeded the recommended duration "
            f"by {exceeded_by} minutes."
        )
        return self._create(employee_id, NotificationType.BREAK_EXCEEDED, message, now)

    def _create(self, employee_id: int, kind: NotificationType, message: str, now: datetime | None) -> int:
        nid = self._notifications.create(
            Notification(
                notification_id=None,
                employee_id=int(employee_id),
                notification_type=kind,
                message=message,
                created_at=now or now_local(),
            )
        )
        logger.info("Notification %s (%s) stored for employee %s", nid, kind.value, employee_id)
        return nid

    def list_for_employee(
        self, employee_id: int, *, unread_only: bool = False, limit: int = DEFAULT_NOTIFICATION_LIMIT
    ) -> Sequence[Notification]:
        return self._notifications.list_for_employee(int(employee_id), unread_only=unread_only, limit=limit)

    def mark_read(self, *, employee_id: int, notification_id: int) -> None:
        n = self._notifications.get_by_id(int(notification_id))
        # Someone else's notification is reported exactly like a missing one.
        if n is None or n.employee_id != int(employee_id):
            raise NotificationNotFoundError(f"Notification {notification_id} not found")
        self._notifications.mark_read(n.notification_id)
