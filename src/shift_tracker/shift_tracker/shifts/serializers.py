from __future__ import annotations

from typing import Any, Optional

from .durations import DurationAccountant, LiveDuration
from .model import Break, Shift, TimestampLocation

_accountant = DurationAccountant()


def _minutes(value: float) -> float:
    return round(value, 2)


def capture_to_json(capture: Optional[TimestampLocation]) -> Optional[dict[str, Any]]:
    if capture is None:
        return None
    loc = capture.location
    return {
        "timestamp": capture.timestamp.isoformat(),
        "location": {"latitude": loc.latitude, "longitude": loc.longitude, "address": loc.address},
    }


def break_to_json(b: Break) -> dict[str, Any]:
    return {
        "id": b.break_id,
        "type": b.break_type.value,
        "startTime": capture_to_json(b.start_time),
        "endTime": capture_to_json(b.end_time),
        "duration": _minutes(b.duration),
        "maxMinutes": b.break_type.max_minutes,
    }


def shift_to_json(shift: Shift) -> dict[str, Any]:
    return {
        "id": shift.shift_id,
        "employeeId": shift.employee_id,
        "date": shift.work_date.isoformat(),
        "status": shift.status.value,
        "startTime": capture_to_json(shift.start_time),
        "breaks": [break_to_json(b) for b in shift.breaks],
        "endTime": capture_to_json(shift.end_time),
        "totalWorkDuration": _minutes(shift.total_work_duration),
        "totalBreakDuration": _minutes(shift.total_break_duration),
        "notes": shift.notes,
        "version": shift.version,
        "anomalies": _accountant.anomalies(shift),
    }


def live_to_json(live: LiveDuration) -> dict[str, Any]:
    return {
        "asOf": live.as_of.isoformat(),
        "workMinutes": _minutes(live.work_minutes),
        "breakMinutes": _minutes(live.break_minutes),
        "totalWorkMinutes": _minutes(live.total_work_minutes),
    }


def page_to_json(page) -> dict[str, Any]:
    return {
        "shifts": [shift_to_json(s) for s in page.shifts],
        "pagination": {"page": page.page, "limit": page.limit, "total": page.total, "pages": page.pages},
    }
