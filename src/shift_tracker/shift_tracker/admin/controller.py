from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.validators import require_positive_int
from ..common.web import admin_required, current_actor, json_body
from ..container import Container
from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..shifts.controller import parse_optional_date, parse_status
from ..shifts.override import parse_override
from ..shifts.serializers import live_to_json, page_to_json, shift_to_json


def register(app: Flask, container: Container) -> None:
    shifts = container.shift_service

    @app.route("/api/admin/shifts", methods=["GET"], endpoint="admin_shifts")
    @admin_required
    def admin_shifts():
        _, role = current_actor()
        employee_id = request.args.get("employeeId")
        page = shifts.list_shifts(
            current_role=role,
            employee_id=require_positive_int(employee_id, "employeeId") if employee_id else None,
            start_date=parse_optional_date(request.args.get("startDate")),
            end_date=parse_optional_date(request.args.get("endDate")),
            status=parse_status(request.args.get("status")),
            page=require_positive_int(request.args.get("page"), "page", default=1),
            limit=require_positive_int(request.args.get("limit"), "limit", default=DEFAULT_PAGE_SIZE, maximum=MAX_PAGE_SIZE),
        )
        return jsonify({"success": True, **page_to_json(page)})

    @app.route("/api/admin/shifts/active", methods=["GET"], endpoint="admin_active_shifts")
    @admin_required
    def admin_active_shifts():
        _, role = current_actor()
        active = shifts.list_active_shifts(current_role=role)
        return jsonify(
            {
                "success": True,
                "count": len(active),
                "data": [{**shift_to_json(s), "live": live_to_json(live)} for s, live in active],
            }
        )

    @app.route("/api/admin/shifts/<int:shift_id>", methods=["GET"], endpoint="admin_shift_detail")
    @admin_required
    def admin_shift_detail(shift_id: int):
        actor_id, role = current_actor()
        shift = shifts.get_shift(actor_id=actor_id, current_role=role, shift_id=shift_id)
        return jsonify({"success": True, "data": shift_to_json(shift)})

    @app.route("/api/admin/shifts/<int:shift_id>", methods=["PUT"], endpoint="admin_shift_update")
    @admin_required
    def admin_shift_update(shift_id: int):
        _, role = current_actor()
        override = parse_override(json_body())
        shift = shifts.admin_override_shift(current_role=role, shift_id=shift_id, override=override)
        return jsonify({"success": True, "message": "Shift updated successfully", "data": shift_to_json(shift)})

    @app.route("/api/admin/shifts/<int:shift_id>", methods=["DELETE"], endpoint="admin_shift_delete")
    @admin_required
    def admin_shift_delete(shift_id: int):
        _, role = current_actor()
        shifts.delete_shift(current_role=role, shift_id=shift_id)
        return jsonify({"success": True, "message": "Shift deleted successfully"})
