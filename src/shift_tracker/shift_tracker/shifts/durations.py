from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from ..common.datetime_utils import minutes_between
from .model import Break, Shift


@dataclass(frozen=True)
class LiveDuration:
    """Advisory elapsed time of an in-progress shift as of ``as_of``.

    ``work_minutes`` covers the current work stretch (since the shift start or
    the end of the most recent closed break); ``total_work_minutes`` is all
    work so far with every break taken out.
    """

    as_of: datetime
    work_minutes: float
    break_minutes: float
    total_work_minutes: float


@dataclass(frozen=True)
class BreakOutcome:
    """A closed break paired with how far it went past its recommended length."""

    closed_break: Break
    exceeded: bool
    exceeded_by: int


class DurationAccountant:
    """Pure duration arithmetic over shift records. Inputs are never mutated."""

    def compute_break_duration(self, b: Break) -> float:
        if b.end_time is None:
            raise ValueError(f"Break {b.break_id} has not ended")
        return max(minutes_between(b.start_time.timestamp, b.end_time.timestamp), 0.0)

    def compute_total_break_duration(self, shift: Shift) -> float:
        return sum(self.compute_break_duration(b) for b in shift.closed_breaks)

    def compute_work_duration(self, shift: Shift) -> float:
        # May be negative for inconsistent data; see ``anomalies``.
        if shift.end_time is None:
            raise ValueError(f"Shift {shift.shift_id} has not ended")
        elapsed = minutes_between(shift.start_time.timestamp, shift.end_time.timestamp)
        return elapsed - self.compute_total_break_duration(shift)

    def compute_live_duration(self, shift: Shift, now: datetime) -> LiveDuration:
        if not shift.is_in_progress:
            raise ValueError(f"Shift {shift.shift_id} is not in progress")

        open_break = shift.open_break
        if open_break is not None:
            previous = shift.breaks[-2] if len(shift.breaks) > 1 else None
            stretch_start = previous.end_time.timestamp if previous and previous.end_time else shift.start_time.timestamp
            work = minutes_between(stretch_start, open_break.start_time.timestamp)
            on_break = minutes_between(open_break.start_time.timestamp, now)
        else:
            last = shift.last_break
            stretch_start = last.end_time.timestamp if last and last.end_time else shift.start_time.timestamp
            work = minutes_between(stretch_start, now)
            on_break = 0.0

        total = minutes_between(shift.start_time.timestamp, now) - self.compute_total_break_duration(shift) - on_break
        return LiveDuration(
            as_of=now,
            work_minutes=max(work, 0.0),
            break_minutes=max(on_break, 0.0),
            total_work_minutes=max(total, 0.0),
        )

    def break_outcome(self, b: Break) -> BreakOutcome:
        duration = self.compute_break_duration(b)
        over = duration - b.break_type.max_minutes
        return BreakOutcome(closed_break=b, exceeded=over > 0, exceeded_by=max(math.floor(over + 0.5), 0))

    def anomalies(self, shift: Shift) -> list[str]:
        """Describe duration inconsistencies that are stored as-is but worth flagging."""
        found: list[str] = []
        if shift.end_time is not None and shift.total_work_duration < 0:
            found.append(f"negative work duration ({shift.total_work_duration:.2f} min)")

        start = shift.start_time.timestamp
        end = shift.end_time.timestamp if shift.end_time else None
        for b in shift.breaks:
            if b.start_time.timestamp < start or (end is not None and b.start_time.timestamp > end):
                found.append(f"break {b.break_id} starts outside the shift")
            if b.end_time is not None and b.end_time.timestamp < b.start_time.timestamp:
                found.append(f"break {b.break_id} ends before it starts")
            if b.end_time is not None and end is not None and b.end_time.timestamp > end:
                found.append(f"break {b.break_id} ends after the shift")
        return found
