from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role claim supplied with every request by the authentication layer."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class ShiftStatus(str, Enum):
    """Lifecycle state of a shift. COMPLETED is terminal."""

    ACTIVE = "ACTIVE"
    ON_BREAK = "ON_BREAK"
    COMPLETED = "COMPLETED"

    @property
    def in_progress(self) -> bool:
        return self is not ShiftStatus.COMPLETED


class ShiftAction(str, Enum):
    START_SHIFT = "START_SHIFT"
    START_BREAK = "START_BREAK"
    END_BREAK = "END_BREAK"
    END_SHIFT = "END_SHIFT"


class BreakType(str, Enum):
    """Break kind. Each kind carries its recommended maximum duration."""

    LUNCH = "LUNCH"
    SHORT = "SHORT"

    @property
    def max_minutes(self) -> int:
        return {BreakType.LUNCH: 60, BreakType.SHORT: 15}[self]

    @classmethod
    def parse(cls, value: object) -> "BreakType | None":
        if isinstance(value, BreakType):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


class StatsPeriod(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class NotificationType(str, Enum):
    SHIFT_COMPLETED = "shift_completed"
    BREAK_EXCEEDED = "break_exceeded"
