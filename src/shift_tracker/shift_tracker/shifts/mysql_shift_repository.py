from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Any, Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..core.enums import BreakType, ShiftStatus
from ..core.exceptions import ConcurrentModificationError, DuplicateActiveShiftError, ShiftNotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, placeholders, storage_errors
from .model import Break, Location, Shift, TimestampLocation
from .repository import ShiftRepository

_SHIFT_COLUMNS = """
    shift_id, employee_id, work_date, status,
    start_at, start_latitude, start_longitude, start_address,
    end_at, end_latitude, end_longitude, end_address,
    total_work_minutes, total_break_minutes, notes, version
"""

_BREAK_COLUMNS = """
    shift_id, break_id, break_type,
    start_at, start_latitude, start_longitude, start_address,
    end_at, end_latitude, end_longitude, end_address,
    duration_minutes
"""


def _capture_from_row(r: dict, prefix: str) -> Optional[TimestampLocation]:
    ts = r.get(f"{prefix}_at")
    if ts is None:
        return None
    return TimestampLocation(
        timestamp=ts,
        location=Location(
            latitude=float(r[f"{prefix}_latitude"]),
            longitude=float(r[f"{prefix}_longitude"]),
            address=r.get(f"{prefix}_address") or "",
        ),
    )


def _capture_params(capture: Optional[TimestampLocation]) -> tuple[Any, Any, Any, Any]:
    if capture is None:
        return None, None, None, None
    loc = capture.location
    return capture.timestamp, loc.latitude, loc.longitude, loc.address


def _break_from_row(r: dict) -> Break:
    return Break(
        break_id=int(r["break_id"]),
        break_type=BreakType(r["break_type"]),
        start_time=_capture_from_row(r, "start"),
        end_time=_capture_from_row(r, "end"),
        duration=float(r.get("duration_minutes") or 0),
    )


def _shift_from_row(r: dict, breaks: Sequence[Break]) -> Shift:
    return Shift(
        shift_id=int(r["shift_id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        status=ShiftStatus(r["status"]),
        start_time=_capture_from_row(r, "start"),
        breaks=tuple(breaks),
        end_time=_capture_from_row(r, "end"),
        total_work_duration=float(r.get("total_work_minutes") or 0),
        total_break_duration=float(r.get("total_break_minutes") or 0),
        notes=r.get("notes") or "",
        version=int(r["version"]),
    )


def _filters(
    *,
    employee_id: Optional[int],
    start_date: Optional[date],
    end_date: Optional[date],
    status: Optional[ShiftStatus],
) -> tuple[str, list]:
    clauses: list[str] = []
    params: list = []
    if employee_id is not None:
        clauses.append("employee_id=%s")
        params.append(int(employee_id))
    if start_date is not None:
        clauses.append("work_date>=%s")
        params.append(start_date)
    if end_date is not None:
        clauses.append("work_date<=%s")
        params.append(end_date)
    if status is not None:
        clauses.append("status=%s")
        params.append(status.value)
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    return where, params


class MySQLShiftRepository(ShiftRepository):
    """Shifts in ``shifts``, their breaks in ``shift_breaks``; both written in one transaction.

    Updates are compare-and-swap on ``version``. The unique index on the
    generated ``active_employee_id`` column rejects a second in-progress shift
    for the same employee even across processes.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load_breaks(self, cur, shift_ids: Sequence[int]) -> dict[int, list[Break]]:
        by_shift: dict[int, list[Break]] = {sid: [] for sid in shift_ids}
        if not shift_ids:
            return by_shift
        cur.execute(
            f"""
            SELECT {_BREAK_COLUMNS}
            FROM shift_breaks
            WHERE shift_id IN ({placeholders(len(shift_ids))})
            ORDER BY shift_id, break_id
            """,
            tuple(shift_ids),
        )
        for r in fetchall(cur):
            by_shift[int(r["shift_id"])].append(_break_from_row(r))
        return by_shift

    def _hydrate(self, cur, rows: list[dict]) -> list[Shift]:
        breaks = self._load_breaks(cur, [int(r["shift_id"]) for r in rows])
        return [_shift_from_row(r, breaks[int(r["shift_id"])]) for r in rows]

    def _write_breaks(self, cur, shift_id: int, breaks: Sequence[Break]) -> None:
        cur.execute("DELETE FROM shift_breaks WHERE shift_id=%s", (shift_id,))
        if not breaks:
            return
        cur.executemany(
            f"""
            INSERT INTO shift_breaks({_BREAK_COLUMNS})
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            [
                (shift_id, b.break_id, b.break_type.value, *_capture_params(b.start_time), *_capture_params(b.end_time), b.duration)
                for b in breaks
            ],
        )

    def get_active_for_employee(self, employee_id: int) -> Optional[Shift]:
        with storage_errors("get active shift"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SHIFT_COLUMNS}
                FROM shifts
                WHERE employee_id=%s AND status IN (%s, %s)
                """,
                (int(employee_id), ShiftStatus.ACTIVE.value, ShiftStatus.ON_BREAK.value),
            )
            r = fetchone(cur)
            if not r:
                return None
            return self._hydrate(cur, [r])[0]

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        with storage_errors("get shift"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SHIFT_COLUMNS} FROM shifts WHERE shift_id=%s", (int(shift_id),))
            r = fetchone(cur)
            if not r:
                return None
            return self._hydrate(cur, [r])[0]

    def create(self, shift: Shift) -> Shift:
        with storage_errors("create shift"):
            try:
                with db_cursor(self._conn_factory) as (_, cur):
                    cur.execute(
                        """
                        INSERT INTO shifts(
                            employee_id, work_date, status,
                            start_at, start_latitude, start_longitude, start_address,
                            end_at, end_latitude, end_longitude, end_address,
                            total_work_minutes, total_break_minutes, notes, version
                        )
                        VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
                        """,
                        (
                            shift.employee_id,
                            shift.work_date,
                            shift.status.value,
                            *_capture_params(shift.start_time),
                            *_capture_params(shift.end_time),
                            shift.total_work_duration,
                            shift.total_break_duration,
                            shift.notes,
                        ),
                    )
                    shift_id = int(cur.lastrowid)
                    self._write_breaks(cur, shift_id, shift.breaks)
            except mysql.connector.IntegrityError as e:
                if e.errno == errorcode.ER_DUP_ENTRY:
                    raise DuplicateActiveShiftError(
                        f"Employee {shift.employee_id} already has an active shift"
                    ) from e
                raise
        return replace(shift, shift_id=shift_id, version=1)

    def update(self, shift: Shift, *, expected_version: int) -> Shift:
        with storage_errors("update shift"):
            try:
                with db_cursor(self._conn_factory) as (_, cur):
                    cur.execute(
                        """
                        UPDATE shifts
                        SET work_date=%s, status=%s,
                            start_at=%s, start_latitude=%s, start_longitude=%s, start_address=%s,
                            end_at=%s, end_latitude=%s, end_longitude=%s, end_address=%s,
                            total_work_minutes=%s, total_break_minutes=%s, notes=%s,
                            version=version+1
                        WHERE shift_id=%s AND version=%s
                        """,
                        (
                            shift.work_date,
                            shift.status.value,
                            *_capture_params(shift.start_time),
                            *_capture_params(shift.end_time),
                            shift.total_work_duration,
                            shift.total_break_duration,
                            shift.notes,
                            shift.shift_id,
                            int(expected_version),
                        ),
                    )
                    if cur.rowcount == 0:
                        cur.execute("SELECT 1 AS found FROM shifts WHERE shift_id=%s", (shift.shift_id,))
                        if fetchone(cur) is None:
                            raise ShiftNotFoundError(f"Shift {shift.shift_id} not found")
                        raise ConcurrentModificationError(f"Shift {shift.shift_id} was modified concurrently")
                    self._write_breaks(cur, int(shift.shift_id), shift.breaks)
            except mysql.connector.IntegrityError as e:
                if e.errno == errorcode.ER_DUP_ENTRY:
                    raise DuplicateActiveShiftError(
                        f"Employee {shift.employee_id} already has an active shift"
                    ) from e
                raise
        return replace(shift, version=int(expected_version) + 1)

    def delete(self, shift_id: int) -> bool:
        with storage_errors("delete shift"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM shifts WHERE shift_id=%s", (int(shift_id),))
            return cur.rowcount > 0

    def _list(self, *, where: str, params: list, limit: Optional[int], offset: int, newest_first: bool) -> list[Shift]:
        order = "DESC" if newest_first else "ASC"
        sql = f"SELECT {_SHIFT_COLUMNS} FROM shifts {where} ORDER BY start_at {order}, shift_id {order}"
        if limit is not None:
            sql += " LIMIT %s OFFSET %s"
            params = [*params, int(limit), int(offset)]
        with storage_errors("list shifts"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return self._hydrate(cur, fetchall(cur))

    def _count(self, *, where: str, params: list) -> int:
        with storage_errors("count shifts"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM shifts {where}", tuple(params))
            r = fetchone(cur)
            return int(r["total"]) if r else 0

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
        where, params = _filters(employee_id=employee_id, start_date=start_date, end_date=end_date, status=status)
        return self._list(where=where, params=params, limit=limit, offset=offset, newest_first=newest_first)

    def count_for_employee(
        self,
        employee_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[ShiftStatus] = None,
    ) -> int:
        where, params = _filters(employee_id=employee_id, start_date=start_date, end_date=end_date, status=status)
        return self._count(where=where, params=params)

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
        where, params = _filters(employee_id=employee_id, start_date=start_date, end_date=end_date, status=status)
        return self._list(where=where, params=params, limit=limit, offset=offset, newest_first=True)

    def count_all(
        self,
        *,
        employee_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[ShiftStatus] = None,
    ) -> int:
        where, params = _filters(employee_id=employee_id, start_date=start_date, end_date=end_date, status=status)
        return self._count(where=where, params=params)
