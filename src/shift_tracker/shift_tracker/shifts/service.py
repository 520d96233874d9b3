from __future__ import annotations

import logging
import math
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Iterator, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_PAGE_SIZE
from ..core.enums import Role, ShiftStatus
from ..core.exceptions import AuthorizationError, DomainError, ShiftError, ShiftNotFoundError, ValidationError
from ..notifications.service import NotificationService
from .durations import DurationAccountant, LiveDuration
from .locks import EmployeeLocks
from .model import Location, Shift, TimestampLocation
from .override import ShiftOverride, apply_override
from .repository import ShiftRepository
from .state_machine import BreakEnded, BreakStarted, ShiftEnded, ShiftStateMachine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShiftPage:
    shifts: Sequence[Shift]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


class ShiftService:
    """Employee clock-in/out actions and administrator edits on shifts.

    Each action runs fetch -> guard -> mutate -> persist while holding the
    employee's lock. The stored record only changes if the conditional write
    succeeds, so a failed write leaves nothing half-applied.
    """

    def __init__(
        self,
        shifts: ShiftRepository,
        *,
        notifications: NotificationService | None = None,
        machine: ShiftStateMachine | None = None,
        accountant: DurationAccountant | None = None,
        locks: EmployeeLocks | None = None,
    ):
        self._shifts = shifts
        self._notifications = notifications
        self._accountant = accountant or DurationAccountant()
        self._machine = machine or ShiftStateMachine(self._accountant)
        self._locks = locks or EmployeeLocks()

    @contextmanager
    def _action(self, name: str, employee_id: int) -> Iterator[None]:
        with self._locks.hold(employee_id):
            try:
                yield
            except ShiftError as e:
                logger.info("%s rejected for employee %s: %s (%s)", name, employee_id, e.code, e)
                raise

    def _flag_anomalies(self, shift: Shift) -> None:
        for problem in self._accountant.anomalies(shift):
            logger.warning("Shift %s of employee %s: %s", shift.shift_id, shift.employee_id, problem)

    def _notify(self, what: str, send) -> None:
        # The transition is already stored; a failed notification must not undo it.
        if self._notifications is None:
            return
        try:
            send(self._notifications)
        except DomainError:
            logger.exception("Could not store %s notification", what)

    # Employee lifecycle actions

    def start_shift(self, employee_id: int, location: Location, *, now: datetime | None = None) -> Shift:
        capture = TimestampLocation(now or now_local(), location)
        with self._action("start_shift", employee_id):
            current = self._shifts.get_active_for_employee(employee_id)
            shift = self._machine.start_shift(employee_id=employee_id, current=current, capture=capture)
            stored = self._shifts.create(shift)
        logger.info("Employee %s started shift %s", employee_id, stored.shift_id)
        return stored

    def start_break(self, employee_id: int, break_type: object, location: Location, *, now: datetime | None = None) -> BreakStarted:
        capture = TimestampLocation(now or now_local(), location)
        with self._action("start_break", employee_id):
            current = self._shifts.get_active_for_employee(employee_id)
            started = self._machine.start_break(current, break_type, capture)
            stored = self._shifts.update(started.shift, expected_version=current.version)
        logger.info(
            "Employee %s started a %s break on shift %s",
            employee_id, started.started_break.break_type.value, stored.shift_id,
        )
        return replace(started, shift=stored)

    def end_break(self, employee_id: int, location: Location, *, now: datetime | None = None) -> BreakEnded:
        capture = TimestampLocation(now or now_local(), location)
        with self._action("end_break", employee_id):
            current = self._shifts.get_active_for_employee(employee_id)
            ended = self._machine.end_break(current, capture)
            stored = self._shifts.update(ended.shift, expected_version=current.version)

        outcome = ended.outcome
        logger.info(
            "Employee %s ended break %s on shift %s after %.2f min",
            employee_id, outcome.closed_break.break_id, stored.shift_id, outcome.closed_break.duration,
        )
        if outcome.exceeded:
            self._notify(
                "break exceeded",
                lambda n: n.break_exceeded(employee_id, outcome.closed_break.break_type, outcome.exceeded_by, now=capture.timestamp),
            )
        return replace(ended, shift=stored)

    def end_shift(
        self, employee_id: int, location: Location, *, notes: str | None = None, now: datetime | None = None
    ) -> ShiftEnded:
        capture = TimestampLocation(now or now_local(), location)
        with self._action("end_shift", employee_id):
            current = self._shifts.get_active_for_employee(employee_id)
            ended = self._machine.end_shift(current, capture, notes=notes)
            stored = self._shifts.update(ended.shift, expected_version=current.version)

        logger.info(
            "Employee %s completed shift %s: %.2f min worked, %.2f min on breaks",
            employee_id, stored.shift_id, stored.total_work_duration, stored.total_break_duration,
        )
        self._flag_anomalies(stored)
        closed = ended.closed_break
        if closed is not None and closed.exceeded:
            self._notify(
                "break exceeded",
                lambda n: n.break_exceeded(employee_id, closed.closed_break.break_type, closed.exceeded_by, now=capture.timestamp),
            )
        self._notify("shift completed", lambda n: n.shift_completed(stored, now=capture.timestamp))
        return replace(ended, shift=stored)

    # Reads

    def get_current_shift(self, employee_id: int) -> Optional[Shift]:
        return self._shifts.get_active_for_employee(employee_id)

    def get_live_duration(self, employee_id: int, *, now: datetime | None = None) -> Optional[LiveDuration]:
        shift = self._shifts.get_active_for_employee(employee_id)
        if shift is None:
            return None
        return self._accountant.compute_live_duration(shift, now or now_local())

    def get_shift(self, *, actor_id: int, current_role: Role, shift_id: int) -> Shift:
        shift = self._shifts.get_by_id(shift_id)
        # Employees get the same answer for someone else's shift as for a missing one.
        if shift is None or (current_role != Role.ADMIN and shift.employee_id != int(actor_id)):
            raise ShiftNotFoundError(f"Shift {shift_id} not found")
        return shift

    def get_history(
        self,
        employee_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[ShiftStatus] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> ShiftPage:
        shifts = self._shifts.list_for_employee(
            employee_id,
            start_date=start_date,
            end_date=end_date,
            status=status,
            limit=limit,
            offset=(page - 1) * limit,
        )
        total = self._shifts.count_for_employee(employee_id, start_date=start_date, end_date=end_date, status=status)
        return ShiftPage(shifts=shifts, page=page, limit=limit, total=total)

    def update_notes(self, *, actor_id: int, current_role: Role, shift_id: int, notes: str) -> Shift:
        if not isinstance(notes, str):
            raise ValidationError("notes must be a string")
        shift = self.get_shift(actor_id=actor_id, current_role=current_role, shift_id=shift_id)
        with self._action("update_notes", shift.employee_id):
            current = self._shifts.get_by_id(shift_id)
            if current is None:
                raise ShiftNotFoundError(f"Shift {shift_id} not found")
            return self._shifts.update(replace(current, notes=notes), expected_version=current.version)

    # Administrator actions

    @staticmethod
    def _require_admin(current_role: Role) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Administrator access required")

    def list_shifts(
        self,
        *,
        current_role: Role,
        employee_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[ShiftStatus] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> ShiftPage:
        self._require_admin(current_role)
        filters = dict(employee_id=employee_id, start_date=start_date, end_date=end_date, status=status)
        shifts = self._shifts.list_all(**filters, limit=limit, offset=(page - 1) * limit)
        return ShiftPage(shifts=shifts, page=page, limit=limit, total=self._shifts.count_all(**filters))

    def list_active_shifts(
        self, *, current_role: Role, now: datetime | None = None
    ) -> list[tuple[Shift, LiveDuration]]:
        """Every ACTIVE or ON_BREAK shift, oldest start first, with its live duration."""
        self._require_admin(current_role)
        now = now or now_local()
        shifts = [
            *self._shifts.list_all(status=ShiftStatus.ACTIVE),
            *self._shifts.list_all(status=ShiftStatus.ON_BREAK),
        ]
        shifts.sort(key=lambda s: (s.start_time.timestamp, s.shift_id or 0))
        return [(s, self._accountant.compute_live_duration(s, now)) for s in shifts]

    def admin_override_shift(self, *, current_role: Role, shift_id: int, override: ShiftOverride) -> Shift:
        self._require_admin(current_role)
        if override.is_empty:
            raise ValidationError("Nothing to update")

        existing = self._shifts.get_by_id(shift_id)
        if existing is None:
            raise ShiftNotFoundError(f"Shift {shift_id} not found")

        with self._action("admin_override", existing.employee_id):
            current = self._shifts.get_by_id(shift_id)
            if current is None:
                raise ShiftNotFoundError(f"Shift {shift_id} not found")
            edited = apply_override(current, override, self._accountant)
            stored = self._shifts.update(edited, expected_version=current.version)

        logger.info("Administrator override applied to shift %s (status=%s)", stored.shift_id, stored.status.value)
        self._flag_anomalies(stored)
        return stored

    def delete_shift(self, *, current_role: Role, shift_id: int) -> None:
        self._require_admin(current_role)
        if not self._shifts.delete(shift_id):
            raise ShiftNotFoundError(f"Shift {shift_id} not found")
        logger.info("Administrator deleted shift %s", shift_id)
