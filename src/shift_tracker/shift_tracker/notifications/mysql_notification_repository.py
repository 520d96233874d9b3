from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import NotificationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, storage_errors
from .model import Notification
from .repository import NotificationRepository


def _from_row(r: dict) -> Notification:
    return Notification(
        notification_id=int(r["notification_id"]),
        employee_id=int(r["employee_id"]),
        notification_type=NotificationType(r["notification_type"]),
        message=r["message"],
        created_at=r["created_at"],
        is_read=bool(r["is_read"]),
    )


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, notification: Notification) -> int:
        with storage_errors("create notification"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notifications(employee_id, notification_type, message, is_read, created_at)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (
                    notification.employee_id,
                    notification.notification_type.value,
                    notification.message,
                    int(notification.is_read),
                    notification.created_at,
                ),
            )
            return int(cur.lastrowid)

    def list_for_employee(self, employee_id: int, *, unread_only: bool = False, limit: int = 50) -> Sequence[Notification]:
        where = "WHERE employee_id=%s"
        if unread_only:
            where += " AND is_read=0"
        with storage_errors("list notifications"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT notification_id, employee_id, notification_type, message, is_read, created_at
                FROM notifications
                {where}
                ORDER BY created_at DESC, notification_id DESC
                LIMIT %s
                """,
                (int(employee_id), int(limit)),
            )
            return [_from_row(r) for r in fetchall(cur)]

    def get_by_id(self, notification_id: int) -> Optional[Notification]:
        with storage_errors("get notification"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT notification_id, employee_id, notification_type, message, is_read, created_at
                FROM notifications
                WHERE notification_id=%s
                """,
                (int(notification_id),),
            )
            r = fetchone(cur)
            return _from_row(r) if r else None

    def mark_read(self, notification_id: int) -> bool:
        with storage_errors("mark notification read"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE notifications SET is_read=1 WHERE notification_id=%s", (int(notification_id),))
            return cur.rowcount > 0
