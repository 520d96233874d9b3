from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Notification


class NotificationRepository(Protocol):
    def create(self, notification: Notification) -> int:
        raise NotImplementedError

    def list_for_employee(self, employee_id: int, *, unread_only: bool = False, limit: int = 50) -> Sequence[Notification]:
        raise NotImplementedError

    def get_by_id(self, notification_id: int) -> Optional[Notification]:
        raise NotImplementedError

    def mark_read(self, notification_id: int) -> bool:
        raise NotImplementedError
