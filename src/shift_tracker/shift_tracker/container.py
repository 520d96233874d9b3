from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .database.connection import DBConfig, DatabaseConnection
from .notifications.memory_notification_repository import InMemoryNotificationRepository
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.repository import NotificationRepository
from .notifications.service import NotificationService
from .shifts.durations import DurationAccountant
from .shifts.locks import EmployeeLocks
from .shifts.memory_shift_repository import InMemoryShiftRepository
from .shifts.mysql_shift_repository import MySQLShiftRepository
from .shifts.repository import ShiftRepository
from .shifts.service import ShiftService
from .statistics.service import StatisticsService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    shifts_repo: ShiftRepository
    notifications_repo: NotificationRepository

    accountant: DurationAccountant
    notification_service: NotificationService
    shift_service: ShiftService
    statistics_service: StatisticsService


def build_container(*, db_config: dict, storage_backend: str = "mysql") -> Container:
    conn = None
    if storage_backend == "memory":
        shifts_repo = InMemoryShiftRepository()
        notifications_repo = InMemoryNotificationRepository()
    elif storage_backend == "mysql":
        conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
        shifts_repo = MySQLShiftRepository(conn)
        notifications_repo = MySQLNotificationRepository(conn)
    else:
        raise ValueError(f"Unknown storage backend {storage_backend!r}")

    accountant = DurationAccountant()
    notification_service = NotificationService(notifications_repo)
    shift_service = ShiftService(
        shifts_repo,
        notifications=notification_service,
        accountant=accountant,
        locks=EmployeeLocks(),
    )
    statistics_service = StatisticsService(shifts_repo, accountant=accountant)

    return Container(
        conn=conn,
        shifts_repo=shifts_repo,
        notifications_repo=notifications_repo,
        accountant=accountant,
        notification_service=notification_service,
        shift_service=shift_service,
        statistics_service=statistics_service,
    )
