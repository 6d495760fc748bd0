from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import admin_required, current_user, error_response, json_body, login_required, result_response
from ..container import Container
from ..core.exceptions import ValidationError
from .model import FoodStall, FoodStallDraft, Review, ReviewDraft

# JSON field -> FoodStall attribute
_STALL_FIELDS = {
    "name": "name",
    "description": "description",
    "menu": "menu",
    "location": "location",
    "image": "image_url",
    "contactInfo": "contact_info",
    "isActive": "is_active",
}


def review_to_json(r: Review) -> dict:
    return {
        "id": r.id,
        "userId": r.user_id,
        "userName": r.user_name,
        "rating": r.rating,
        "comment": r.comment,
        "createdAt": r.created_at.isoformat() if r.created_at else None,
    }


def stall_to_json(s: FoodStall) -> dict:
    return {
        "id": s.id,
        "name": s.name,
        "description": s.description,
        "image": s.image_url,
        "menu": [m.to_dict() for m in s.menu],
        "location": s.location,
        "contactInfo": s.contact_info,
        "isActive": s.is_active,
        "rating": s.rating,
        "reviewCount": s.review_count,
        "reviews": [review_to_json(r) for r in s.reviews],
    }


def register(app: Flask, container: Container) -> None:
    def _service():
        return container.data_services.open(current_user())

    @app.route("/api/food-stalls", methods=["GET"], endpoint="list_food_stalls")
    @login_required
    def list_food_stalls():
        return jsonify({"success": True, "data": [stall_to_json(s) for s in _service().food_stalls]}), 200

    @app.route("/api/food-stalls", methods=["POST"], endpoint="create_food_stall")
    @admin_required
    def create_food_stall():
        body = json_body()
        draft = FoodStallDraft(
            name=body.get("name", ""),
            description=body.get("description", ""),
            menu=body.get("menu") or (),
            location=body.get("location") or None,
            image_url=body.get("image") or None,
            contact_info=body.get("contactInfo") or None,
            is_active=bool(body.get("isActive", True)),
        )
        return result_response(_service().add_food_stall(draft), success_status=201)

    @app.route("/api/food-stalls/<stall_id>", methods=["PATCH"], endpoint="update_food_stall")
    @admin_required
    def update_food_stall(stall_id: str):
        body = json_body()
        unknown = sorted(set(body) - set(_STALL_FIELDS))
        if unknown:
            return error_response(ValidationError(f"Unknown food stall field: {unknown[0]}"))
        changes = {_STALL_FIELDS[k]: v for k, v in body.items()}
        return result_response(_service().update_food_stall(stall_id, changes))

    @app.route("/api/food-stalls/<stall_id>/reviews", methods=["POST"], endpoint="review_food_stall")
    @login_required
    def review_food_stall(stall_id: str):
        body = json_body()
        review = ReviewDraft(
            user_id=current_user().id,
            rating=body.get("rating"),
            comment=str(body.get("comment") or ""),
        )
        return result_response(_service().add_food_stall_review(stall_id, review), success_status=201)
