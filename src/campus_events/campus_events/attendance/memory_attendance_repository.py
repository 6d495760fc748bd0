from __future__ import annotations

from collections import Counter
from typing import Any, Optional, Sequence

from ..common.datetime_utils import now_utc
from ..core.exceptions import ConflictError
from ..database.memory import MemoryDatabase
from .model import AttendanceRecord
from .repository import AttendanceRepository


class InMemoryAttendanceRepository(AttendanceRepository):
    def __init__(self, db: MemoryDatabase):
        self._db = db

    def find(self, event_id: str, user_id: str) -> Optional[AttendanceRecord]:
        with self._db.table("attendance") as records:
            for r in records.values():
                if r.event_id == event_id and r.user_id == user_id:
                    return r
        return None

    def list_for_user(self, user_id: str) -> Sequence[AttendanceRecord]:
        with self._db.table("attendance") as records:
            items = [r for r in records.values() if r.user_id == user_id]
        items.sort(key=lambda r: r.marked_at)
        return items

    def list_for_event(self, event_id: str) -> Sequence[AttendanceRecord]:
        with self._db.table("attendance") as records:
            items = [r for r in records.values() if r.event_id == event_id]
        items.sort(key=lambda r: r.marked_at)
        return items

    def count_by_event(self) -> dict[str, int]:
        with self._db.table("attendance") as records:
            return dict(Counter(r.event_id for r in records.values()))

    def create(
        self,
        *,
        event_id: str,
        user_id: str,
        marked_by: Optional[str],
        qr_data: Optional[dict[str, Any]] = None,
    ) -> str:
        with self._db.table("attendance") as records:
            if any(r.event_id == event_id and r.user_id == user_id for r in records.values()):
                raise ConflictError(f"attendance already marked for {user_id} at {event_id}")
            record_id = self._db.new_id()
            records[record_id] = AttendanceRecord(
                id=record_id,
                event_id=event_id,
                user_id=user_id,
                marked_by=marked_by,
                marked_at=now_utc(),
                qr_data=dict(qr_data) if qr_data else None,
            )
            return record_id
