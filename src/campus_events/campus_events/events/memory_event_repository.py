from __future__ import annotations

from collections import Counter
from dataclasses import replace
from typing import Optional, Sequence

from ..core.enums import PaymentStatus
from ..database.memory import MemoryDatabase
from .model import EVENT_COLUMNS, Event, EventDraft
from .repository import EventRepository


class InMemoryEventRepository(EventRepository):
    def __init__(self, db: MemoryDatabase):
        self._db = db

    def _counts(self) -> Counter:
        with self._db.table("event_registrations") as regs:
            return Counter(
                r.event_id for r in regs.values() if r.payment_status == PaymentStatus.COMPLETED
            )

    def list_with_counts(self) -> Sequence[Event]:
        with self._db.table("events") as events:
            counts = self._counts()
            items = [replace(e, registered_count=counts.get(e.id, 0)) for e in events.values()]
        items.sort(key=lambda e: (e.date, e.time))
        return items

    def get_by_id(self, event_id: str) -> Optional[Event]:
        with self._db.table("events") as events:
            event = events.get(event_id)
            if not event:
                return None
            return replace(event, registered_count=self._counts().get(event_id, 0))

    def create(self, draft: EventDraft, *, created_by: Optional[str] = None) -> str:
        with self._db.table("events") as events:
            event_id = self._db.new_id()
            events[event_id] = Event.from_draft(event_id, draft, created_by=created_by)
            return event_id

    def update(self, event_id: str, changes: dict) -> bool:
        fields = {k: v for k, v in changes.items() if k in EVENT_COLUMNS}
        with self._db.table("events") as events:
            event = events.get(event_id)
            if not event:
                return False
            events[event_id] = replace(event, **fields)
            return True

    def delete(self, event_id: str) -> bool:
        with self._db.table("events") as events:
            if events.pop(event_id, None) is None:
                return False
            # ON DELETE CASCADE
            for name in ("event_registrations", "attendance"):
                if name in self._db.missing_tables:
                    continue
                with self._db.table(name) as rows:
                    for row_id in [k for k, r in rows.items() if r.event_id == event_id]:
                        del rows[row_id]
            return True
