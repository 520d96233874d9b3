from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_location_fields, require_positive_int
from ..common.web import current_actor, json_body, login_required
from ..container import Container
from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..core.enums import ShiftStatus
from ..core.exceptions import ValidationError
from .model import Location
from .serializers import break_to_json, live_to_json, page_to_json, shift_to_json


def location_from_body(body: dict) -> Location:
    latitude, longitude, address = require_location_fields(body)
    return Location(latitude=latitude, longitude=longitude, address=address)


def parse_status(value: str | None) -> ShiftStatus | None:
    if not value:
        return None
    try:
        return ShiftStatus(value.strip().upper())
    except ValueError:
        raise ValidationError(f"Invalid status {value!r}")


def parse_optional_date(value: str | None):
    return parse_iso_date(value) if value else None


def register(app: Flask, container: Container) -> None:
    shifts = container.shift_service

    @app.route("/api/shifts/start", methods=["POST"], endpoint="shift_start")
    @login_required
    def shift_start():
        employee_id, _ = current_actor()
        body = json_body()
        shift = shifts.start_shift(employee_id, location_from_body(body))
        return jsonify({"success": True, "message": "Shift started successfully", "shift": shift_to_json(shift)}), 201

    @app.route("/api/shifts/break/start", methods=["POST"], endpoint="break_start")
    @login_required
    def break_start():
        employee_id, _ = current_actor()
        body = json_body()
        location = location_from_body(body)
        started = shifts.start_break(employee_id, body.get("type"), location)
        return jsonify(
            {
                "success": True,
                "message": f"{started.started_break.break_type.value.lower()} break started successfully",
                "shift": shift_to_json(started.shift),
                "breakDetails": break_to_json(started.started_break),
            }
        )

    @app.route("/api/shifts/break/end", methods=["POST"], endpoint="break_end")
    @login_required
    def break_end():
        employee_id, _ = current_actor()
        ended = shifts.end_break(employee_id, location_from_body(json_body()))
        return jsonify(
            {
                "success": True,
                "message": "Break ended successfully",
                "shift": shift_to_json(ended.shift),
                "breakDetails": break_to_json(ended.outcome.closed_break),
                "exceeded": ended.outcome.exceeded,
                "exceededBy": ended.outcome.exceeded_by,
            }
        )

    @app.route("/api/shifts/end", methods=["POST"], endpoint="shift_end")
    @login_required
    def shift_end():
        employee_id, _ = current_actor()
        body = json_body()
        notes = body.get("notes")
        if notes is not None and not isinstance(notes, str):
            raise ValidationError("notes must be a string")
        ended = shifts.end_shift(employee_id, location_from_body(body), notes=notes)
        return jsonify({"success": True, "message": "Shift ended successfully", "shift": shift_to_json(ended.shift)})

    @app.route("/api/shifts/current", methods=["GET"], endpoint="shift_current")
    @login_required
    def shift_current():
        employee_id, _ = current_actor()
        shift = shifts.get_current_shift(employee_id)
        if shift is None:
            return jsonify({"active": False})
        return jsonify({"active": True, "shift": shift_to_json(shift)})

    @app.route("/api/shifts/live", methods=["GET"], endpoint="shift_live")
    @login_required
    def shift_live():
        employee_id, _ = current_actor()
        live = shifts.get_live_duration(employee_id)
        if live is None:
            return jsonify({"active": False})
        return jsonify({"active": True, "live": live_to_json(live)})

    @app.route("/api/shifts/history", methods=["GET"], endpoint="shift_history")
    @login_required
    def shift_history():
        employee_id, _ = current_actor()
        page = shifts.get_history(
            employee_id,
            start_date=parse_optional_date(request.args.get("startDate")),
            end_date=parse_optional_date(request.args.get("endDate")),
            status=parse_status(request.args.get("status")),
            page=require_positive_int(request.args.get("page"), "page", default=1),
            limit=require_positive_int(request.args.get("limit"), "limit", default=DEFAULT_PAGE_SIZE, maximum=MAX_PAGE_SIZE),
        )
        return jsonify(page_to_json(page))

    @app.route("/api/shifts/<int:shift_id>", methods=["GET"], endpoint="shift_detail")
    @login_required
    def shift_detail(shift_id: int):
        actor_id, role = current_actor()
        shift = shifts.get_shift(actor_id=actor_id, current_role=role, shift_id=shift_id)
        return jsonify({"success": True, "shift": shift_to_json(shift)})

    @app.route("/api/shifts/<int:shift_id>/notes", methods=["PUT"], endpoint="shift_notes")
    @login_required
    def shift_notes(shift_id: int):
        actor_id, role = current_actor()
        body = json_body()
        shift = shifts.update_notes(actor_id=actor_id, current_role=role, shift_id=shift_id, notes=body.get("notes", ""))
        return jsonify({"success": True, "message": "Shift notes updated successfully", "shift": shift_to_json(shift)})
