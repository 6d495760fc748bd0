from __future__ import annotations

from typing import Optional, Sequence

from supabase import Client

from ..common.datetime_utils import parse_timestamp
from ..core.exceptions import StoreError
from ..database.supabase_base import execute, rows
from .model import STALL_COLUMNS, FoodStall, FoodStallDraft, MenuItem, Review, ReviewDraft
from .repository import FoodStallRepository

_SELECT_WITH_REVIEWS = "*, stall_reviews(id, stall_id, user_id, rating, comment, created_at, profiles(name))"


def row_to_review(row: dict, stall_id: str) -> Review:
    profile = row.get("profiles") or {}
    return Review(
        id=str(row["id"]),
        stall_id=str(row.get("stall_id") or stall_id),
        user_id=str(row.get("user_id") or ""),
        rating=int(row.get("rating") or 0),
        comment=row.get("comment") or "",
        user_name=profile.get("name") or "Anonymous",
        created_at=parse_timestamp(row.get("created_at")),
    )


def row_to_stall(row: dict) -> FoodStall:
    stall_id = str(row["id"])
    reviews = sorted(
        (row_to_review(r, stall_id) for r in row.get("stall_reviews") or []),
        key=lambda r: r.created_at.isoformat() if r.created_at else "",
    )
    return FoodStall(
        id=stall_id,
        name=row.get("name") or "",
        description=row.get("description") or "",
        menu=tuple(MenuItem.from_dict(m) for m in row.get("menu") or []),
        location=row.get("location"),
        image_url=row.get("image_url"),
        contact_info=row.get("contact_info"),
        is_active=bool(row.get("is_active", True)),
        reviews=tuple(reviews),
    )


def _to_columns(changes: dict) -> dict:
    payload = {STALL_COLUMNS[k]: v for k, v in changes.items() if k in STALL_COLUMNS}
    if "menu" in payload:
        payload["menu"] = [m.to_dict() if isinstance(m, MenuItem) else dict(m) for m in payload["menu"]]
    return payload


class SupabaseFoodStallRepository(FoodStallRepository):
    def __init__(self, client: Client):
        self._client = client

    def list_with_reviews(self, *, active_only: bool = True) -> Sequence[FoodStall]:
        query = self._client.table("food_stalls").select(_SELECT_WITH_REVIEWS)
        if active_only:
            query = query.eq("is_active", True)
        return [row_to_stall(r) for r in rows(execute(query.order("name")))]

    def get_by_id(self, stall_id: str) -> Optional[FoodStall]:
        query = self._client.table("food_stalls").select(_SELECT_WITH_REVIEWS).eq("id", stall_id).limit(1)
        data = rows(execute(query))
        return row_to_stall(data[0]) if data else None

    def create(self, draft: FoodStallDraft) -> str:
        payload = _to_columns(
            {
                "name": draft.name,
                "description": draft.description,
                "menu": list(draft.menu),
                "location": draft.location,
                "image_url": draft.image_url,
                "contact_info": draft.contact_info,
                "is_active": draft.is_active,
            }
        )
        data = rows(execute(self._client.table("food_stalls").insert(payload)))
        if not data:
            raise StoreError("insert into food_stalls returned no row")
        return str(data[0]["id"])

    def update(self, stall_id: str, changes: dict) -> bool:
        payload = _to_columns(changes)
        if not payload:
            return self.get_by_id(stall_id) is not None
        data = rows(execute(self._client.table("food_stalls").update(payload).eq("id", stall_id)))
        return bool(data)

    def find_review(self, stall_id: str, user_id: str) -> Optional[Review]:
        query = self._client.table("stall_reviews").select("*").eq("stall_id", stall_id).eq("user_id", user_id).limit(1)
        data = rows(execute(query))
        return row_to_review(data[0], stall_id) if data else None

    def create_review(self, stall_id: str, review: ReviewDraft) -> str:
        payload = {
            "stall_id": stall_id,
            "user_id": review.user_id,
            "rating": int(review.rating),
            "comment": review.comment or None,
        }
        data = rows(execute(self._client.table("stall_reviews").insert(payload)))
        if not data:
            raise StoreError("insert into stall_reviews returned no row")
        return str(data[0]["id"])
