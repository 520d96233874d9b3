"""Request plumbing shared by the JSON controllers.

Identity comes from the Flask session, filled in by the authentication
layer in front of this service: ``user_id`` and ``role``.
"""
from __future__ import annotations

import logging
from functools import wraps
from typing import Any

from flask import Flask, jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthorizationError,
    ConcurrentModificationError,
    DomainError,
    DuplicateActiveShiftError,
    InvalidBreakTypeError,
    InvalidTransitionError,
    NoActiveShiftError,
    NoOpenBreakError,
    NotificationNotFoundError,
    ShiftNotFoundError,
    StorageFailureError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type[DomainError], int] = {
    ValidationError: 400,
    InvalidBreakTypeError: 400,
    AuthorizationError: 403,
    NoActiveShiftError: 404,
    ShiftNotFoundError: 404,
    NotificationNotFoundError: 404,
    DuplicateActiveShiftError: 409,
    NoOpenBreakError: 409,
    InvalidTransitionError: 409,
    ConcurrentModificationError: 409,
    StorageFailureError: 503,
}


def status_for(error: DomainError) -> int:
    for cls in type(error).__mro__:
        if cls in _STATUS_BY_ERROR:
            return _STATUS_BY_ERROR[cls]
    return 400


def error_response(error: DomainError):
    body = {"success": False, "error": error.code, "message": str(error), "retryable": error.retryable}
    return jsonify(body), status_for(error)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        return error_response(e)

    @app.errorhandler(404)
    def handle_not_found(e):
        return jsonify({"success": False, "error": "NOT_FOUND", "message": "Resource not found"}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        return jsonify({"success": False, "error": "METHOD_NOT_ALLOWED", "message": "Method not allowed"}), 405

    @app.errorhandler(500)
    def handle_server_error(e):
        logger.error("Unhandled error on %s %s", request.method, request.path, exc_info=getattr(e, "original_exception", e))
        return jsonify({"success": False, "error": "SERVER_ERROR", "message": "Server error"}), 500


def current_actor() -> tuple[int, Role]:
    return int(session["user_id"]), Role(session.get("role", Role.EMPLOYEE.value))


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "error": "UNAUTHENTICATED", "message": "Please sign in"}), 401
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "error": "UNAUTHENTICATED", "message": "Please sign in"}), 401
        if session.get("role") != Role.ADMIN.value:
            return error_response(AuthorizationError("Administrator access required"))
        return view(*args, **kwargs)

    return wrapper


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data
