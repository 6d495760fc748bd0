from __future__ import annotations

from typing import Optional, Sequence

from supabase import Client

from ..core.enums import PaymentStatus
from ..core.exceptions import StoreError
from ..database.supabase_base import execute, rows
from .model import EVENT_COLUMNS, Event, EventDraft
from .repository import EventRepository

# Embedded count of completed registrations (PostgREST resource embedding).
_SELECT_WITH_COUNT = "*, event_registrations(count)"


def _registered_count(row: dict) -> int:
    embedded = row.get("event_registrations") or []
    if isinstance(embedded, list) and embedded:
        return int(embedded[0].get("count") or 0)
    return 0


def row_to_event(row: dict) -> Event:
    return Event(
        id=str(row["id"]),
        title=row.get("title") or "",
        description=row.get("description") or "",
        date=str(row.get("date") or ""),
        time=str(row.get("time") or "")[:5],
        location=row.get("location") or "",
        department=row.get("department") or "",
        max_seats=int(row.get("max_seats") or 0),
        price=float(row.get("price") or 0),
        image_url=row.get("image_url"),
        created_by=row.get("created_by"),
        registered_count=_registered_count(row),
    )


class SupabaseEventRepository(EventRepository):
    def __init__(self, client: Client):
        self._client = client

    def _select(self):
        return (
            self._client.table("events")
            .select(_SELECT_WITH_COUNT)
            .eq("event_registrations.payment_status", PaymentStatus.COMPLETED.value)
        )

    def list_with_counts(self) -> Sequence[Event]:
        response = execute(self._select().order("date").order("time"))
        return [row_to_event(r) for r in rows(response)]

    def get_by_id(self, event_id: str) -> Optional[Event]:
        response = execute(self._select().eq("id", event_id).limit(1))
        data = rows(response)
        return row_to_event(data[0]) if data else None

    def create(self, draft: EventDraft, *, created_by: Optional[str] = None) -> str:
        payload = {
            "title": draft.title,
            "description": draft.description,
            "date": draft.date,
            "time": draft.time,
            "location": draft.location,
            "department": draft.department,
            "max_seats": int(draft.max_seats),
            "price": float(draft.price),
            "image_url": draft.image_url,
            "created_by": created_by,
        }
        data = rows(execute(self._client.table("events").insert(payload)))
        if not data:
            raise StoreError("insert into events returned no row")
        return str(data[0]["id"])

    def update(self, event_id: str, changes: dict) -> bool:
        payload = {EVENT_COLUMNS[k]: v for k, v in changes.items() if k in EVENT_COLUMNS}
        if not payload:
            return self.get_by_id(event_id) is not None
        data = rows(execute(self._client.table("events").update(payload).eq("id", event_id)))
        return bool(data)

    def delete(self, event_id: str) -> bool:
        data = rows(execute(self._client.table("events").delete().eq("id", event_id)))
        return bool(data)
