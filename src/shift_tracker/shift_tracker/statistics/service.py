from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Sequence

from ..common.datetime_utils import month_bounds, week_number, week_start
from ..core.constants import DAY_NAMES
from ..core.enums import ShiftStatus, StatsPeriod
from ..core.exceptions import ValidationError
from ..shifts.durations import DurationAccountant
from ..shifts.model import Shift
from ..shifts.repository import ShiftRepository


@dataclass
class StatsBucket:
    """Sub-total over part of the window: one day of a week, or one week of a month."""

    key: str
    label: str
    total_shifts: int = 0
    total_work_minutes: float = 0.0
    total_break_minutes: float = 0.0


@dataclass(frozen=True)
class ShiftStatistics:
    period: StatsPeriod
    start_date: date
    end_date: date
    total_shifts: int
    total_work_minutes: float
    total_break_minutes: float
    buckets: tuple[StatsBucket, ...]
    shifts: tuple[Shift, ...]

    @property
    def total_hours(self) -> float:
        return self.total_work_minutes / 60


class StatisticsService:
    """Totals over completed shifts whose work date falls in a day, week or month.

    Weeks run Sunday to Saturday. Monthly figures are also broken down by
    ISO week of the year.
    """

    def __init__(self, shifts: ShiftRepository, *, accountant: DurationAccountant | None = None):
        self._shifts = shifts
        self._accountant = accountant or DurationAccountant()

    def get_statistics(self, employee_id: int, period: StatsPeriod | str, reference_date: date) -> ShiftStatistics:
        try:
            period = StatsPeriod(period)
        except ValueError:
            raise ValidationError(f"Invalid period {period!r}, expected day, week or month")

        if period is StatsPeriod.DAY:
            return self.daily(employee_id, reference_date)
        if period is StatsPeriod.WEEK:
            return self.weekly(employee_id, reference_date)
        return self.monthly(employee_id, reference_date)

    def _completed(self, employee_id: int, start: date, end: date) -> Sequence[Shift]:
        return self._shifts.list_for_employee(
            employee_id,
            start_date=start,
            end_date=end,
            status=ShiftStatus.COMPLETED,
            newest_first=False,
        )

    def _add(self, bucket: StatsBucket, shift: Shift) -> None:
        bucket.total_shifts += 1
        bucket.total_work_minutes += self._accountant.compute_work_duration(shift)
        bucket.total_break_minutes += self._accountant.compute_total_break_duration(shift)

    def _summarize(
        self, period: StatsPeriod, start: date, end: date, shifts: Sequence[Shift], buckets: Sequence[StatsBucket]
    ) -> ShiftStatistics:
        return ShiftStatistics(
            period=period,
            start_date=start,
            end_date=end,
            total_shifts=len(shifts),
            total_work_minutes=sum(self._accountant.compute_work_duration(s) for s in shifts),
            total_break_minutes=sum(self._accountant.compute_total_break_duration(s) for s in shifts),
            buckets=tuple(buckets),
            shifts=tuple(shifts),
        )

    def daily(self, employee_id: int, day: date) -> ShiftStatistics:
        shifts = self._completed(employee_id, day, day)
        return self._summarize(StatsPeriod.DAY, day, day, shifts, [])

    def weekly(self, employee_id: int, reference_date: date) -> ShiftStatistics:
        start = week_start(reference_date)
        end = start + timedelta(days=6)
        shifts = self._completed(employee_id, start, end)

        days = [
            StatsBucket(key=(start + timedelta(days=i)).isoformat(), label=DAY_NAMES[i])
            for i in range(7)
        ]
        for s in shifts:
            self._add(days[(s.work_date - start).days], s)
        return self._summarize(StatsPeriod.WEEK, start, end, shifts, days)

    def monthly(self, employee_id: int, reference_date: date) -> ShiftStatistics:
        start, end = month_bounds(reference_date)
        shifts = self._completed(employee_id, start, end)

        weeks: dict[int, StatsBucket] = {}
        for s in shifts:
            number = week_number(s.work_date)
            bucket = weeks.get(number)
            if bucket is None:
                bucket = weeks[number] = StatsBucket(key=str(number), label=f"Week {number}")
            self._add(bucket, s)
        return self._summarize(StatsPeriod.MONTH, start, end, shifts, list(weeks.values()))
