"""Shift lifecycle transitions.

``TRANSITIONS`` is the single source of truth for which action is legal from
which status. The machine only builds new ``Shift`` values; persisting them is
the caller's job.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from ..core.enums import BreakType, ShiftAction, ShiftStatus
from ..core.exceptions import (
    DuplicateActiveShiftError,
    InvalidBreakTypeError,
    InvalidTransitionError,
    NoActiveShiftError,
    NoOpenBreakError,
)
from .durations import BreakOutcome, DurationAccountant
from .model import Break, Shift, TimestampLocation

TRANSITIONS: dict[tuple[Optional[ShiftStatus], ShiftAction], ShiftStatus] = {
    (None, ShiftAction.START_SHIFT): ShiftStatus.ACTIVE,
    (ShiftStatus.ACTIVE, ShiftAction.START_BREAK): ShiftStatus.ON_BREAK,
    (ShiftStatus.ON_BREAK, ShiftAction.END_BREAK): ShiftStatus.ACTIVE,
    (ShiftStatus.ACTIVE, ShiftAction.END_SHIFT): ShiftStatus.COMPLETED,
    (ShiftStatus.ON_BREAK, ShiftAction.END_SHIFT): ShiftStatus.COMPLETED,
}


def next_status(current: Optional[ShiftStatus], action: ShiftAction) -> ShiftStatus:
    try:
        return TRANSITIONS[(current, action)]
    except KeyError:
        state = current.value if current else "NONE"
        raise InvalidTransitionError(f"{action.value} is not allowed from {state}")


def is_allowed(current: Optional[ShiftStatus], action: ShiftAction) -> bool:
    return (current, action) in TRANSITIONS


@dataclass(frozen=True)
class BreakStarted:
    shift: Shift
    started_break: Break


@dataclass(frozen=True)
class BreakEnded:
    shift: Shift
    outcome: BreakOutcome


@dataclass(frozen=True)
class ShiftEnded:
    shift: Shift
    # Set when the shift was on break and that break was closed first.
    closed_break: Optional[BreakOutcome] = None


class ShiftStateMachine:
    """Guards and effects for the four lifecycle actions of one employee's shift."""

    def __init__(self, accountant: DurationAccountant | None = None):
        self._accountant = accountant or DurationAccountant()

    def start_shift(self, *, employee_id: int, current: Optional[Shift], capture: TimestampLocation) -> Shift:
        if current is not None and current.is_in_progress:
            raise DuplicateActiveShiftError(
                f"Employee {employee_id} already has an active shift (id={current.shift_id})"
            )
        status = next_status(None, ShiftAction.START_SHIFT)
        return Shift(
            shift_id=None,
            employee_id=employee_id,
            work_date=capture.timestamp.date(),
            status=status,
            start_time=capture,
        )

    def start_break(self, current: Optional[Shift], break_type: object, capture: TimestampLocation) -> BreakStarted:
        parsed = BreakType.parse(break_type)
        if parsed is None:
            allowed = ", ".join(t.value for t in BreakType)
            raise InvalidBreakTypeError(f"Invalid break type {break_type!r}, expected one of: {allowed}")
        if current is None or not is_allowed(current.status, ShiftAction.START_BREAK):
            raise NoActiveShiftError("No active shift to start a break on")

        new_break = Break(break_id=len(current.breaks) + 1, break_type=parsed, start_time=capture)
        shift = replace(
            current,
            status=next_status(current.status, ShiftAction.START_BREAK),
            breaks=current.breaks + (new_break,),
        )
        return BreakStarted(shift=shift, started_break=new_break)

    def end_break(self, current: Optional[Shift], capture: TimestampLocation) -> BreakEnded:
        if current is None or not current.is_in_progress:
            raise NoActiveShiftError("No active shift found")
        open_break = current.open_break
        if open_break is None or not is_allowed(current.status, ShiftAction.END_BREAK):
            raise NoOpenBreakError("No open break to end")

        closed = replace(open_break, end_time=capture)
        closed = replace(closed, duration=self._accountant.compute_break_duration(closed))
        shift = replace(
            current,
            status=next_status(current.status, ShiftAction.END_BREAK),
            breaks=current.breaks[:-1] + (closed,),
            total_break_duration=current.total_break_duration + closed.duration,
        )
        return BreakEnded(shift=shift, outcome=self._accountant.break_outcome(closed))

    def end_shift(self, current: Optional[Shift], capture: TimestampLocation, *, notes: str | None = None) -> ShiftEnded:
        if current is None or not is_allowed(current.status, ShiftAction.END_SHIFT):
            raise NoActiveShiftError("No active shift to end")

        closed_break = None
        shift = current
        if shift.status is ShiftStatus.ON_BREAK:
            ended = self.end_break(shift, capture)
            shift, closed_break = ended.shift, ended.outcome

        shift = replace(
            shift,
            status=next_status(shift.status, ShiftAction.END_SHIFT),
            end_time=capture,
            notes=notes if notes else shift.notes,
        )
        shift = replace(shift, total_work_duration=self._accountant.compute_work_duration(shift))
        return ShiftEnded(shift=shift, closed_break=closed_break)
