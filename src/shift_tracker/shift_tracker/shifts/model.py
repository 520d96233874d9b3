from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import BreakType, ShiftStatus
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    address: str = ""


@dataclass(frozen=True)
class TimestampLocation:
    """A moment and the place it was captured at, recorded together."""

    timestamp: datetime
    location: Location


@dataclass(frozen=True)
class Break:
    """A pause within a shift. ``duration`` stays 0 until the break ends."""

    break_id: int
    break_type: BreakType
    start_time: TimestampLocation
    end_time: Optional[TimestampLocation] = None
    duration: float = 0.0

    @property
    def is_open(self) -> bool:
        return self.end_time is None


@dataclass(frozen=True)
class Shift:
    """Domain entity: one employee work session from clock-in to clock-out.

    Instances are immutable; every transition produces a new value that only
    becomes visible once the repository has stored it. ``version`` is the
    optimistic-concurrency token owned by the repository.
    """

    shift_id: Optional[int]
    employee_id: int
    work_date: date
    status: ShiftStatus
    start_time: TimestampLocation
    breaks: tuple[Break, ...] = ()
    end_time: Optional[TimestampLocation] = None
    total_work_duration: float = 0.0
    total_break_duration: float = 0.0
    notes: str = ""
    version: int = 0

    @property
    def last_break(self) -> Optional[Break]:
        return self.breaks[-1] if self.breaks else None

    @property
    def open_break(self) -> Optional[Break]:
        last = self.last_break
        return last if last is not None and last.is_open else None

    @property
    def closed_breaks(self) -> tuple[Break, ...]:
        return tuple(b for b in self.breaks if not b.is_open)

    @property
    def is_in_progress(self) -> bool:
        return self.status.in_progress


def validate_break_sequence(breaks: Sequence[Break]) -> None:
    """Only the last break of a shift may still be open."""
    for b in breaks[:-1]:
        if b.is_open:
            raise ValidationError(f"Break {b.break_id} is open but is not the last break of the shift")
