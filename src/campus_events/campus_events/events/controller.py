from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import admin_required, current_user, error_response, json_body, login_required, result_response
from ..container import Container
from ..core.enums import PaymentMethod
from ..core.exceptions import ValidationError
from .model import Event, EventDraft

# JSON field -> Event attribute
_EVENT_FIELDS = {
    "title": "title",
    "description": "description",
    "date": "date",
    "time": "time",
    "location": "location",
    "department": "department",
    "maxSeats": "max_seats",
    "price": "price",
    "image": "image_url",
}


def event_to_json(e: Event) -> dict:
    return {
        "id": e.id,
        "title": e.title,
        "description": e.description,
        "date": e.date,
        "time": e.time,
        "location": e.location,
        "department": e.department,
        "maxSeats": e.max_seats,
        "registeredCount": e.registered_count,
        "seatsLeft": e.seats_left,
        "price": e.price,
        "image": e.image_url,
        "createdBy": e.created_by,
    }


def register(app: Flask, container: Container) -> None:
    def _service():
        return container.data_services.open(current_user())

    @app.route("/api/events", methods=["GET"], endpoint="list_events")
    @login_required
    def list_events():
        return jsonify({"success": True, "data": [event_to_json(e) for e in _service().events]}), 200

    @app.route("/api/events", methods=["POST"], endpoint="create_event")
    @admin_required
    def create_event():
        body = json_body()
        draft = EventDraft(
            title=body.get("title", ""),
            description=body.get("description", ""),
            date=body.get("date", ""),
            time=body.get("time", ""),
            location=body.get("location", ""),
            department=body.get("department", ""),
            max_seats=body.get("maxSeats"),
            price=body.get("price", 0),
            image_url=body.get("image") or None,
        )
        return result_response(_service().add_event(draft), success_status=201)

    @app.route("/api/events/<event_id>", methods=["PATCH"], endpoint="update_event")
    @admin_required
    def update_event(event_id: str):
        body = json_body()
        unknown = sorted(set(body) - set(_EVENT_FIELDS))
        if unknown:
            return error_response(ValidationError(f"Unknown event field: {unknown[0]}"))
        changes = {_EVENT_FIELDS[k]: v for k, v in body.items()}
        return result_response(_service().update_event(event_id, changes))

    @app.route("/api/events/<event_id>", methods=["DELETE"], endpoint="delete_event")
    @admin_required
    def delete_event(event_id: str):
        return result_response(_service().delete_event(event_id))

    @app.route("/api/events/<event_id>/register", methods=["POST"], endpoint="register_event")
    @login_required
    def register_event(event_id: str):
        return result_response(_service().register_for_event(event_id, current_user().id), success_status=201)

    @app.route("/api/events/<event_id>/register", methods=["DELETE"], endpoint="unregister_event")
    @login_required
    def unregister_event(event_id: str):
        return result_response(_service().unregister_from_event(event_id, current_user().id))

    @app.route("/api/events/<event_id>/checkout", methods=["POST"], endpoint="checkout_event")
    @login_required
    def checkout_event(event_id: str):
        method_s = str(json_body().get("method", PaymentMethod.UPI.value)).lower()
        try:
            method = PaymentMethod(method_s)
        except ValueError:
            return error_response(ValidationError("Unknown payment method"))
        return result_response(
            _service().purchase_registration(event_id, current_user().id, method),
            success_status=201,
        )

    @app.route("/api/me/events", methods=["GET"], endpoint="my_events")
    @login_required
    def my_events():
        events = _service().get_user_registered_events()
        return jsonify({"success": True, "data": [event_to_json(e) for e in events]}), 200

    @app.route("/api/refresh", methods=["POST"], endpoint="refresh_data")
    @login_required
    def refresh_data():
        return result_response(_service().refresh_data())

    @app.route("/api/events/<event_id>", methods=["GET"], endpoint="get_event")
    @login_required
    def get_event(event_id: str):
        event = _service().get_event(event_id)
        if event is None:
            return jsonify({"success": False, "message": "Event not found"}), 404
        body = event_to_json(event)
        body["registered"] = any(e.id == event_id for e in _service().get_user_registered_events())
        body["attended"] = event_id in _service().get_user_attendance()
        return jsonify({"success": True, "data": body}), 200
