from __future__ import annotations

import io
import json

from flask import Flask, jsonify, request, send_file

from ..common.web import admin_required, current_user, error_response, json_body, login_required, result_response
from ..container import Container
from ..core.exceptions import DomainError, NotFoundError, StoreError, ValidationError
from ..core.messages import EVENT_NOT_FOUND
from .qr import build_qr_payload, decode_qr_image, render_qr_png


def register(app: Flask, container: Container) -> None:
    def _service():
        return container.data_services.open(current_user())

    @app.route("/api/events/<event_id>/attendance", methods=["POST"], endpoint="mark_attendance")
    @admin_required
    def mark_attendance(event_id: str):
        """Mark by user id, or by the raw text of a scanned QR code."""

        body = json_body()
        qr_data = body.get("qrData")
        if qr_data:
            raw = json.dumps(qr_data) if isinstance(qr_data, dict) else str(qr_data)
            return result_response(_service().scan_attendance(event_id, raw), success_status=201)
        user_id = body.get("userId")
        if not user_id:
            return error_response(ValidationError("userId or qrData is required"))
        return result_response(_service().mark_attendance(event_id, str(user_id)), success_status=201)

    @app.route("/api/events/<event_id>/attendance/scan", methods=["POST"], endpoint="scan_attendance_image")
    @admin_required
    def scan_attendance_image(event_id: str):
        """Accept an uploaded image, decode its QR code and mark attendance."""

        if "image" not in request.files:
            return error_response(ValidationError("Image file is required"))
        try:
            raw = decode_qr_image(request.files["image"].stream)
        except ValidationError as e:
            return error_response(e)
        return result_response(_service().scan_attendance(event_id, raw), success_status=201)

    @app.route("/api/me/attendance", methods=["GET"], endpoint="my_attendance")
    @login_required
    def my_attendance():
        return jsonify({"success": True, "data": _service().get_user_attendance()}), 200

    @app.route("/api/events/<event_id>/qr", methods=["GET"], endpoint="my_event_qr")
    @login_required
    def my_event_qr(event_id: str):
        """PNG QR code the student shows at the event entrance."""

        try:
            if _service().get_event(event_id) is None:
                raise NotFoundError(EVENT_NOT_FOUND)
            profile = container.auth_service.get_profile(current_user().id)
            png = render_qr_png(build_qr_payload(event_id, profile))
        except (DomainError, StoreError) as e:
            return error_response(e)
        return send_file(io.BytesIO(png), mimetype="image/png")
