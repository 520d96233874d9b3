from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import ShiftStatus
from .model import Shift


class ShiftRepository(Protocol):
    def get_active_for_employee(self, employee_id: int) -> Optional[Shift]:
        """The employee's ACTIVE or ON_BREAK shift, if any."""

        raise NotImplementedError

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        raise NotImplementedError

    def create(self, shift: Shift) -> Shift:
        """Insert a new in-progress shift and return it with its id and version.

        Raises DuplicateActiveShiftError if the employee already has one.
        """

        raise NotImplementedError

    def update(self, shift: Shift, *, expected_version: int) -> Shift:
        """Replace the stored shift (breaks included) if its version still matches.

        Raises ConcurrentModificationError when another writer got there first.
        """

        raise NotImplementedError

    def delete(self, shift_id: int) -> bool:
        raise NotImplementedError

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
        raise NotImplementedError

    def count_for_employee(
        self,
        employee_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[ShiftStatus] = None,
    ) -> int:
        raise NotImplementedError

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
        raise NotImplementedError

    def count_all(
        self,
        *,
        employee_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[ShiftStatus] = None,
    ) -> int:
        raise NotImplementedError
