from __future__ import annotations

from dataclasses import replace
from threading import Lock
from typing import Optional, Sequence

from .model import Notification
from .repository import NotificationRepository


class InMemoryNotificationRepository(NotificationRepository):
    def __init__(self):
        self._lock = Lock()
        self._items: dict[int, Notification] = {}
        self._next_id = 1

    def create(self, notification: Notification) -> int:
        with self._lock:
            nid = self._next_id
            self._next_id += 1
            self._items[nid] = replace(notification, notification_id=nid)
            return nid

    def list_for_employee(self, employee_id: int, *, unread_only: bool = False, limit: int = 50) -> Sequence[Notification]:
        with self._lock:
            items = [n for n in self._items.values() if n.employee_id == int(employee_id)]
        if unread_only:
            items = [n for n in items if not n.is_read]
        items.sort(key=lambda n: (n.created_at, n.notification_id), reverse=True)
        return items[:limit]

    def get_by_id(self, notification_id: int) -> Optional[Notification]:
        with self._lock:
            return self._items.get(int(notification_id))

    def mark_read(self, notification_id: int) -> bool:
        with self._lock:
            n = self._items.get(int(notification_id))
            if n is None:
                return False
            self._items[n.notification_id] = replace(n, is_read=True)
            return True
