from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import NotificationType


@dataclass(frozen=True)
class Notification:
    notification_id: Optional[int]
    employee_id: int
    notification_type: NotificationType
    message: str
    created_at: datetime
    is_read: bool = False
