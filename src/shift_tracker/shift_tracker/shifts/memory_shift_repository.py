from __future__ import annotations

from dataclasses import replace
from datetime import date
from threading import Lock
from typing import Optional, Sequence

from ..core.enums import ShiftStatus
from ..core.exceptions import ConcurrentModificationError, DuplicateActiveShiftError, ShiftNotFoundError
from .model import Shift
from .repository import ShiftRepository


class InMemoryShiftRepository(ShiftRepository):
    """Process-local store with the same conditional-write rules as the MySQL one."""

    def __init__(self):
        self._lock = Lock()
        self._shifts: dict[int, Shift] = {}
        self._next_id = 1

    def _active_for(self, employee_id: int, *, exclude: Optional[int] = None) -> Optional[Shift]:
        for s in self._shifts.values():
            if s.employee_id == employee_id and s.is_in_progress and s.shift_id != exclude:
                return s
        return None

    def get_active_for_employee(self, employee_id: int) -> Optional[Shift]:
        with self._lock:
            return self._active_for(int(employee_id))

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        with self._lock:
            return self._shifts.get(int(shift_id))

    def create(self, shift: Shift) -> Shift:
        with self._lock:
            if shift.is_in_progress and self._active_for(shift.employee_id) is not None:
                raise DuplicateActiveShiftError(f"Employee {shift.employee_id} already has an active shift")
            stored = replace(shift, shift_id=self._next_id, version=1)
            self._shifts[self._next_id] = stored
            self._next_id += 1
            return stored

    def update(self, shift: Shift, *, expected_version: int) -> Shift:
        with self._lock:
            current = self._shifts.get(int(shift.shift_id or 0))
            if current is None:
                raise ShiftNotFoundError(f"Shift {shift.shift_id} not found")
            if current.version != expected_version:
                raise ConcurrentModificationError(f"Shift {shift.shift_id} was modified concurrently")
            if shift.is_in_progress and self._active_for(shift.employee_id, exclude=current.shift_id) is not None:
                raise DuplicateActiveShiftError(f"Employee {shift.employee_id} already has an active shift")
            stored = replace(shift, version=expected_version + 1)
            self._shifts[current.shift_id] = stored
            return stored

    def delete(self, shift_id: int) -> bool:
        with self._lock:
            return self._shifts.pop(int(shift_id), None) is not None

    def _select(
        self,
        *,
        employee_id: Optional[int],
        start_date: Optional[date],
        end_date: Optional[date],
        status: Optional[ShiftStatus],
    ) -> list[Shift]:
        with self._lock:
            items = list(self._shifts.values())
        if employee_id is not None:
            items = [s for s in items if s.employee_id == int(employee_id)]
        if start_date is not None:
            items = [s for s in items if s.work_date >= start_date]
        if end_date is not None:
            items = [s for s in items if s.work_date <= end_date]
        if status is not None:
            items = [s for s in items if s.status is status]
        return items

    @staticmethod
    def _page(items: list[Shift], *, limit: Optional[int], offset: int, newest_first: bool) -> list[Shift]:
        items.sort(key=lambda s: (s.start_time.timestamp, s.shift_id or 0), reverse=newest_first)
        if limit is None:
            return items[offset:]
        return items[offset : offset + limit]

    def list_for_employee(
        self,
        employee_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[ShiftStatus] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        newest_first: bool = True,
    ) -> Sequence[Shift]:
        items = self._select(employee_id=employee_id, start_date=start_date, end_date=end_date, status=status)
        return self._page(items, limit=limit, offset=offset, newest_first=newest_first)

    def count_for_employee(
        self,
        employee_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[ShiftStatus] = None,
    ) -> int:
        return len(self._select(employee_id=employee_id, start_date=start_date, end_date=end_date, status=status))

    def list_all(
        self,
        *,
        employee_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[ShiftStatus] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Sequence[Shift]:
        items = self._select(employee_id=employee_id, start_date=start_date, end_date=end_date, status=status)
        return self._page(items, limit=limit, offset=offset, newest_first=True)

    def count_all(
        self,
        *,
        employee_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[ShiftStatus] = None,
    ) -> int:
        return len(self._select(employee_id=employee_id, start_date=start_date, end_date=end_date, status=status))
