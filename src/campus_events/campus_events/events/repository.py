from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Event, EventDraft


class EventRepository(Protocol):
    def list_with_counts(self) -> Sequence[Event]:
        """All events ordered by date, each with its completed-registration count."""

        raise NotImplementedError

    def get_by_id(self, event_id: str) -> Optional[Event]:
        raise NotImplementedError

    def create(self, draft: EventDraft, *, created_by: Optional[str] = None) -> str:
        raise NotImplementedError

    def update(self, event_id: str, changes: dict) -> bool:
        """Apply a partial update keyed by column name; False if no such event."""

        raise NotImplementedError

    def delete(self, event_id: str) -> bool:
        """Delete an event together with its registrations and attendance."""

        raise NotImplementedError
