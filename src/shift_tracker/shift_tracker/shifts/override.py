"""Administrator edits that bypass the lifecycle guards.

The edited shift still has to be structurally valid (only the last break may
be open, an end time exactly when completed) and its derived durations are
always recomputed from the new timestamps.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import parse_iso_datetime
from ..common.validators import require_location_fields
from ..core.enums import BreakType, ShiftStatus
from ..core.exceptions import InvalidBreakTypeError, ValidationError
from .durations import DurationAccountant
from .model import Break, Location, Shift, TimestampLocation, validate_break_sequence


@dataclass(frozen=True)
class BreakOverride:
    break_type: BreakType
    start_time: datetime
    end_time: Optional[datetime] = None
    start_location: Optional[Location] = None
    end_location: Optional[Location] = None


@dataclass(frozen=True)
class ShiftOverride:
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    breaks: Optional[tuple[BreakOverride, ...]] = None
    status: Optional[ShiftStatus] = None
    notes: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return all(v is None for v in (self.start_time, self.end_time, self.breaks, self.status, self.notes))


def _parse_location(value: Any, field_name: str) -> Optional[Location]:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise ValidationError(f"{field_name} must be an object")
    latitude, longitude, address = require_location_fields(value)
    return Location(latitude=latitude, longitude=longitude, address=address)


def _parse_break(item: Any, index: int) -> BreakOverride:
    if not isinstance(item, Mapping):
        raise ValidationError(f"Break #{index} must be an object")
    break_type = BreakType.parse(item.get("type"))
    if break_type is None:
        raise InvalidBreakTypeError(f"Break #{index} has invalid type {item.get('type')!r}")
    if not item.get("startTime"):
        raise ValidationError(f"Break #{index} needs a startTime")
    return BreakOverride(
        break_type=break_type,
        start_time=parse_iso_datetime(item["startTime"]),
        end_time=parse_iso_datetime(item["endTime"]) if item.get("endTime") else None,
        start_location=_parse_location(item.get("startLocation"), f"Break #{index} startLocation"),
        end_location=_parse_location(item.get("endLocation"), f"Break #{index} endLocation"),
    )


def parse_override(payload: Mapping[str, Any]) -> ShiftOverride:
    """Build a ShiftOverride from a JSON request body (camelCase keys)."""
    status = None
    if payload.get("status") is not None:
        try:
            status = ShiftStatus(str(payload["status"]).strip().upper())
        except ValueError:
            raise ValidationError(f"Invalid status {payload['status']!r}")

    breaks = None
    if payload.get("breaks") is not None:
        if not isinstance(payload["breaks"], list):
            raise ValidationError("breaks must be a list")
        breaks = tuple(_parse_break(item, i) for i, item in enumerate(payload["breaks"], start=1))

    notes = payload.get("notes")
    if notes is not None and not isinstance(notes, str):
        raise ValidationError("notes must be a string")

    return ShiftOverride(
        start_time=parse_iso_datetime(payload["startTime"]) if payload.get("startTime") else None,
        end_time=parse_iso_datetime(payload["endTime"]) if payload.get("endTime") else None,
        breaks=breaks,
        status=status,
        notes=notes,
    )


def _build_breaks(items: Sequence[BreakOverride], fallback: Location, accountant: DurationAccountant) -> tuple[Break, ...]:
    out: list[Break] = []
    for i, item in enumerate(items, start=1):
        start = TimestampLocation(item.start_time, item.start_location or fallback)
        end = None
        if item.end_time is not None:
            end = TimestampLocation(item.end_time, item.end_location or item.start_location or fallback)
        b = Break(break_id=i, break_type=item.break_type, start_time=start, end_time=end)
        if end is not None:
            b = replace(b, duration=accountant.compute_break_duration(b))
        out.append(b)
    return tuple(out)


def apply_override(shift: Shift, override: ShiftOverride, accountant: DurationAccountant) -> Shift:
    start = shift.start_time
    if override.start_time is not None:
        start = replace(start, timestamp=override.start_time)

    breaks = shift.breaks
    if override.breaks is not None:
        breaks = _build_breaks(override.breaks, start.location, accountant)
    validate_break_sequence(breaks)

    status = override.status
    if status is None:
        status = ShiftStatus.COMPLETED if override.end_time is not None else shift.status

    end = shift.end_time
    if override.end_time is not None:
        end = TimestampLocation(override.end_time, end.location if end else start.location)

    if status.in_progress:
        if override.end_time is not None:
            raise ValidationError(f"An end time cannot be set on a {status.value} shift")
        end = None
        open_break = breaks[-1] if breaks and breaks[-1].is_open else None
        if status is ShiftStatus.ON_BREAK and open_break is None:
            raise ValidationError("An ON_BREAK shift needs an open last break")
        if status is ShiftStatus.ACTIVE and open_break is not None:
            raise ValidationError("An ACTIVE shift cannot have an open break")
    else:
        if end is None:
            raise ValidationError("A COMPLETED shift needs an end time")
        if breaks and breaks[-1].is_open:
            raise ValidationError("A COMPLETED shift cannot have an open break")

    edited = replace(
        shift,
        status=status,
        start_time=start,
        work_date=start.timestamp.date(),
        breaks=breaks,
        end_time=end,
        notes=override.notes if override.notes is not None else shift.notes,
    )
    edited = replace(edited, total_break_duration=accountant.compute_total_break_duration(edited))
    work = accountant.compute_work_duration(edited) if edited.end_time is not None else 0.0
    return replace(edited, total_work_duration=work)
