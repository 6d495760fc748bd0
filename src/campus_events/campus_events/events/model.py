from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class EventDraft:
    """Writable fields of an event (what an admin submits)."""

    title: str
    description: str
    date: str
    time: str
    location: str
    department: str
    max_seats: int
    price: float = 0.0
    image_url: Optional[str] = None


@dataclass(frozen=True)
class Event:
    """Domain entity: an event.

    ``registered_count`` is derived from completed registrations by the
    repository at read time; it is never written back.
    """

    id: str
    title: str
    description: str
    date: str
    time: str
    location: str
    department: str
    max_seats: int
    price: float
    image_url: Optional[str] = None
    created_by: Optional[str] = None
    registered_count: int = 0

    @property
    def seats_left(self) -> int:
        return max(self.max_seats - self.registered_count, 0)

    @property
    def is_full(self) -> bool:
        return self.registered_count >= self.max_seats

    @classmethod
    def from_draft(cls, event_id: str, draft: EventDraft, *, created_by: Optional[str] = None) -> "Event":
        return cls(
            id=event_id,
            title=draft.title,
            description=draft.description,
            date=draft.date,
            time=draft.time,
            location=draft.location,
            department=draft.department,
            max_seats=int(draft.max_seats),
            price=float(draft.price),
            image_url=draft.image_url,
            created_by=created_by,
        )


# Event attribute -> store column, for partial updates.
EVENT_COLUMNS = {
    "title": "title",
    "description": "description",
    "date": "date",
    "time": "time",
    "location": "location",
    "department": "department",
    "max_seats": "max_seats",
    "price": "price",
    "image_url": "image_url",
}
