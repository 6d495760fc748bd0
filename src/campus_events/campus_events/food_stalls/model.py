from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Optional


@dataclass(frozen=True)
class MenuItem:
    item: str
    price: float

    def to_dict(self) -> dict:
        return {"item": self.item, "price": self.price}

    @classmethod
    def from_dict(cls, raw: dict) -> "MenuItem":
        return cls(item=str(raw.get("item", "")), price=float(raw.get("price") or 0))


@dataclass(frozen=True)
class Review:
    id: str
    stall_id: str
    user_id: str
    rating: int
    comment: str = ""
    user_name: str = "Anonymous"
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class ReviewDraft:
    user_id: str
    rating: int
    comment: str = ""


@dataclass(frozen=True)
class FoodStallDraft:
    name: str
    description: str
    menu: tuple[MenuItem, ...] = ()
    location: Optional[str] = None
    image_url: Optional[str] = None
    contact_info: Optional[dict[str, Any]] = None
    is_active: bool = True


def aggregate_rating(ratings: Iterable[int]) -> tuple[float, int]:
    """Mean rating rounded half-up to one decimal, and the review count."""

    values = list(ratings)
    if not values:
        return 0.0, 0
    mean = Decimal(sum(values)) / Decimal(len(values))
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)), len(values)


@dataclass(frozen=True)
class FoodStall:
    """Domain entity: a vendor with a menu and reviews.

    ``rating`` and ``review_count`` are computed from ``reviews`` so they
    can never drift from the reviews actually loaded.
    """

    id: str
    name: str
    description: str
    menu: tuple[MenuItem, ...] = ()
    location: Optional[str] = None
    image_url: Optional[str] = None
    contact_info: Optional[dict[str, Any]] = None
    is_active: bool = True
    reviews: tuple[Review, ...] = field(default=())

    @property
    def rating(self) -> float:
        return aggregate_rating(r.rating for r in self.reviews)[0]

    @property
    def review_count(self) -> int:
        return len(self.reviews)

    @classmethod
    def from_draft(cls, stall_id: str, draft: FoodStallDraft) -> "FoodStall":
        return cls(
            id=stall_id,
            name=draft.name,
            description=draft.description,
            menu=tuple(draft.menu),
            location=draft.location,
            image_url=draft.image_url,
            contact_info=draft.contact_info,
            is_active=draft.is_active,
        )


STALL_COLUMNS = {
    "name": "name",
    "description": "description",
    "menu": "menu",
    "location": "location",
    "image_url": "image_url",
    "contact_info": "contact_info",
    "is_active": "is_active",
}
