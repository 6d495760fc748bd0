from __future__ import annotations

import logging
from functools import wraps
from typing import Optional

from flask import current_app, jsonify, request, session

from ..core import messages
from ..core.enums import ResultCode, Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from ..core.result import OperationResult
from ..users.model import CurrentUser

logger = logging.getLogger(__name__)

_RESULT_STATUS = {
    ResultCode.INVALID: 400,
    ResultCode.PAYMENT_FAILED: 402,
    ResultCode.FORBIDDEN: 403,
    ResultCode.NOT_FOUND: 404,
    ResultCode.CONFLICT: 409,
    ResultCode.UNAVAILABLE: 503,
}


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def current_user() -> Optional[CurrentUser]:
    if "user_id" not in session:
        return None
    return CurrentUser(id=session["user_id"], role=Role(session["role"]), name=session.get("name", ""))


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": messages.LOGIN_REQUIRED}), 401
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": messages.LOGIN_REQUIRED}), 401
        if session.get("role") != Role.ADMIN.value:
            return jsonify({"success": False, "message": messages.FORBIDDEN}), 403
        return view(*args, **kwargs)

    return wrapper


def result_response(result: OperationResult, *, success_status: int = 200, data=None):
    """Turn a data service outcome into a JSON response."""

    body = {"success": result.ok, "code": result.code.value, "message": result.message}
    payload = data if data is not None else result.data
    if payload is not None:
        body["data"] = payload
    status = success_status if result.ok else _RESULT_STATUS.get(result.code, 400)
    return jsonify(body), status


def error_response(exc: Exception):
    """Map a raised error onto a JSON response (unexpected ones become 500)."""

    if isinstance(exc, ValidationError):
        status = 400
    elif isinstance(exc, AuthenticationError):
        status = 401
    elif isinstance(exc, AuthorizationError):
        status = 403
    elif isinstance(exc, NotFoundError):
        status = 404
    elif isinstance(exc, ConflictError):
        status = 409
    else:
        status = None

    if status is not None and isinstance(exc, DomainError):
        return jsonify({"success": False, "message": str(exc)}), status

    logger.exception("Unhandled error on %s %s", request.method, request.path)
    message = messages.GENERIC_FAILURE
    if bool(current_app.config.get("DEBUG", False)):
        message = f"{message} ({exc})"
    return jsonify({"success": False, "message": message}), 500
