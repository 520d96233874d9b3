from __future__ import annotations

from datetime import date
from typing import Any

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.web import current_actor, login_required
from ..container import Container
from ..core.enums import StatsPeriod
from ..shifts.serializers import shift_to_json
from .service import ShiftStatistics, StatsBucket


def _bucket_to_json(bucket: StatsBucket, period: StatsPeriod) -> dict[str, Any]:
    out: dict[str, Any] = {
        "totalShifts": bucket.total_shifts,
        "totalHours": round(bucket.total_work_minutes / 60, 2),
        "totalWorkMinutes": round(bucket.total_work_minutes, 2),
        "totalBreakMinutes": round(bucket.total_break_minutes, 2),
    }
    if period is StatsPeriod.WEEK:
        out.update({"date": bucket.key, "dayOfWeek": bucket.label})
    else:
        out.update({"weekNumber": int(bucket.key)})
    return out


def stats_to_json(stats: ShiftStatistics) -> dict[str, Any]:
    out: dict[str, Any] = {
        "period": stats.period.value,
        "startDate": stats.start_date.isoformat(),
        "endDate": stats.end_date.isoformat(),
        "totalShifts": stats.total_shifts,
        "totalHours": round(stats.total_hours, 2),
        "totalWorkMinutes": round(stats.total_work_minutes, 2),
        "totalBreakMinutes": round(stats.total_break_minutes, 2),
    }
    if stats.period is StatsPeriod.DAY:
        out["shifts"] = [shift_to_json(s) for s in stats.shifts]
    elif stats.period is StatsPeriod.WEEK:
        out["dailyStats"] = [_bucket_to_json(b, stats.period) for b in stats.buckets]
    else:
        out.update(
            {
                "month": stats.start_date.month,
                "year": stats.start_date.year,
                "weeklyStats": [_bucket_to_json(b, stats.period) for b in stats.buckets],
            }
        )
    return out


def register(app: Flask, container: Container) -> None:
    @app.route("/api/shifts/stats/<period>", methods=["GET"], endpoint="shift_stats")
    @login_required
    def shift_stats(period: str):
        employee_id, _ = current_actor()
        raw_date = request.args.get("date")
        reference = parse_iso_date(raw_date) if raw_date else date.today()
        stats = container.statistics_service.get_statistics(employee_id, period, reference)
        return jsonify(stats_to_json(stats))
