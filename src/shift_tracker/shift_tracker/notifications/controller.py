from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import current_actor, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    notifications = container.notification_service

    @app.route("/api/notifications", methods=["GET"], endpoint="notifications_list")
    @login_required
    def notifications_list():
        employee_id, _ = current_actor()
        unread_only = request.args.get("unread", "0").lower() in {"1", "true", "yes"}
        items = notifications.list_for_employee(employee_id, unread_only=unread_only)
        return jsonify(
            {
                "count": len(items),
                "data": [
                    {
                        "id": n.notification_id,
                        "type": n.notification_type.value,
                        "message": n.message,
                        "isRead": n.is_read,
                        "createdAt": n.created_at.isoformat(),
                    }
                    for n in items
                ],
            }
        )

    @app.route("/api/notifications/<int:notification_id>/read", methods=["PUT"], endpoint="notifications_read")
    @login_required
    def notifications_read(notification_id: int):
        employee_id, _ = current_actor()
        notifications.mark_read(employee_id=employee_id, notification_id=notification_id)
        return jsonify({"success": True})
