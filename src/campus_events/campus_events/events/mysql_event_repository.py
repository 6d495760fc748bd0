from __future__ import annotations

import uuid
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, format_hhmm, format_iso_date
from .model import EVENT_COLUMNS, Event, EventDraft
from .repository import EventRepository

_SELECT_WITH_COUNT = """
    SELECT
        e.id, e.title, e.description, e.date, e.time, e.location, e.department,
        e.max_seats, e.price, e.image_url, e.created_by,
        COALESCE(c.registered_count, 0) AS registered_count
    FROM events e
    LEFT JOIN (
        SELECT event_id, COUNT(*) AS registered_count
        FROM event_registrations
        WHERE payment_status = 'completed'
        GROUP BY event_id
    ) c ON c.event_id = e.id
"""


def _row_to_event(r: dict) -> Event:
    return Event(
        id=str(r["id"]),
        title=r["title"],
        description=r.get("description") or "",
        date=format_iso_date(r["date"]),
        time=format_hhmm(r["time"]),
        location=r.get("location") or "",
        department=r.get("department") or "",
        max_seats=int(r["max_seats"]),
        price=float(r.get("price") or 0),
        image_url=r.get("image_url"),
        created_by=r.get("created_by"),
        registered_count=int(r.get("registered_count") or 0),
    )


class MySQLEventRepository(EventRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_with_counts(self) -> Sequence[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT_WITH_COUNT + " ORDER BY e.date ASC, e.time ASC")
            return [_row_to_event(r) for r in fetchall(cur)]

    def get_by_id(self, event_id: str) -> Optional[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT_WITH_COUNT + " WHERE e.id=%s", (event_id,))
            r = fetchone(cur)
            return _row_to_event(r) if r else None

    def create(self, draft: EventDraft, *, created_by: Optional[str] = None) -> str:
        event_id = str(uuid.uuid4())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO events(id, title, description, date, time, location, department,
                                   max_seats, price, image_url, created_by)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    event_id,
                    draft.title,
                    draft.description,
                    draft.date,
                    draft.time,
                    draft.location,
                    draft.department,
                    int(draft.max_seats),
                    float(draft.price),
                    draft.image_url,
                    created_by,
                ),
            )
        return event_id

    def update(self, event_id: str, changes: dict) -> bool:
        columns = [(EVENT_COLUMNS[k], v) for k, v in changes.items() if k in EVENT_COLUMNS]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id FROM events WHERE id=%s FOR UPDATE", (event_id,))
            if not fetchone(cur):
                return False
            if columns:
                assignments = ", ".join(f"{col}=%s" for col, _ in columns)
                cur.execute(
                    f"UPDATE events SET {assignments} WHERE id=%s",
                    tuple(v for _, v in columns) + (event_id,),
                )
            return True

    def delete(self, event_id: str) -> bool:
        # Registrations and attendance go with it (ON DELETE CASCADE).
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM events WHERE id=%s", (event_id,))
            return cur.rowcount > 0
