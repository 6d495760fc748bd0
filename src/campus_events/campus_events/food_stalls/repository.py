from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import FoodStall, FoodStallDraft, Review, ReviewDraft


class FoodStallRepository(Protocol):
    def list_with_reviews(self, *, active_only: bool = True) -> Sequence[FoodStall]:
        raise NotImplementedError

    def get_by_id(self, stall_id: str) -> Optional[FoodStall]:
        raise NotImplementedError

    def create(self, draft: FoodStallDraft) -> str:
        raise NotImplementedError

    def update(self, stall_id: str, changes: dict) -> bool:
        raise NotImplementedError

    def find_review(self, stall_id: str, user_id: str) -> Optional[Review]:
        raise NotImplementedError

    def create_review(self, stall_id: str, review: ReviewDraft) -> str:
        """Insert a review; raises ``ConflictError`` if the user already reviewed the stall."""

        raise NotImplementedError
