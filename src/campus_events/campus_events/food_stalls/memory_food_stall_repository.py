from __future__ import annotations

from dataclasses import replace
from typing import Optional, Sequence

from ..common.datetime_utils import now_utc
from ..core.exceptions import ConflictError
from ..database.memory import MemoryDatabase
from .model import STALL_COLUMNS, FoodStall, FoodStallDraft, MenuItem, Review, ReviewDraft
from .repository import FoodStallRepository


class InMemoryFoodStallRepository(FoodStallRepository):
    def __init__(self, db: MemoryDatabase):
        self._db = db

    def _with_reviews(self, stall: FoodStall) -> FoodStall:
        with self._db.table("stall_reviews") as reviews, self._db.table("profiles") as profiles:
            items = []
            for r in reviews.values():
                if r.stall_id != stall.id:
                    continue
                profile = profiles.get(r.user_id)
                items.append(replace(r, user_name=profile.name if profile else "Anonymous"))
        items.sort(key=lambda r: r.created_at)
        return replace(stall, reviews=tuple(items))

    def list_with_reviews(self, *, active_only: bool = True) -> Sequence[FoodStall]:
        with self._db.table("food_stalls") as stalls:
            return [self._with_reviews(s) for s in stalls.values() if s.is_active or not active_only]

    def get_by_id(self, stall_id: str) -> Optional[FoodStall]:
        with self._db.table("food_stalls") as stalls:
            stall = stalls.get(stall_id)
            return self._with_reviews(stall) if stall else None

    def create(self, draft: FoodStallDraft) -> str:
        with self._db.table("food_stalls") as stalls:
            stall_id = self._db.new_id()
            stalls[stall_id] = FoodStall.from_draft(stall_id, draft)
            return stall_id

    def update(self, stall_id: str, changes: dict) -> bool:
        fields = {k: v for k, v in changes.items() if k in STALL_COLUMNS}
        if "menu" in fields:
            fields["menu"] = tuple(m if isinstance(m, MenuItem) else MenuItem.from_dict(m) for m in fields["menu"])
        with self._db.table("food_stalls") as stalls:
            stall = stalls.get(stall_id)
            if not stall:
                return False
            stalls[stall_id] = replace(stall, **fields)
            return True

    def find_review(self, stall_id: str, user_id: str) -> Optional[Review]:
        with self._db.table("stall_reviews") as reviews:
            for r in reviews.values():
                if r.stall_id == stall_id and r.user_id == user_id:
                    return r
        return None

    def create_review(self, stall_id: str, review: ReviewDraft) -> str:
        with self._db.table("stall_reviews") as reviews:
            if any(r.stall_id == stall_id and r.user_id == review.user_id for r in reviews.values()):
                raise ConflictError(f"user {review.user_id} already reviewed stall {stall_id}")
            review_id = self._db.new_id()
            reviews[review_id] = Review(
                id=review_id,
                stall_id=stall_id,
                user_id=review.user_id,
                rating=int(review.rating),
                comment=review.comment or "",
                created_at=now_utc(),
            )
            return review_id
