from __future__ import annotations

from collections import Counter
from typing import Any, Optional, Sequence

from supabase import Client

from ..common.datetime_utils import parse_timestamp
from ..core.exceptions import StoreError
from ..database.supabase_base import execute, rows
from .model import AttendanceRecord
from .repository import AttendanceRepository

_TABLE = "attendance"


def row_to_record(row: dict) -> AttendanceRecord:
    return AttendanceRecord(
        id=str(row["id"]),
        event_id=str(row["event_id"]),
        user_id=str(row["user_id"]),
        marked_by=row.get("marked_by"),
        marked_at=parse_timestamp(row.get("marked_at")),
        qr_data=row.get("qr_data"),
    )


class SupabaseAttendanceRepository(AttendanceRepository):
    def __init__(self, client: Client):
        self._client = client

    def find(self, event_id: str, user_id: str) -> Optional[AttendanceRecord]:
        query = self._client.table(_TABLE).select("*").eq("event_id", event_id).eq("user_id", user_id).limit(1)
        data = rows(execute(query))
        return row_to_record(data[0]) if data else None

    def list_for_user(self, user_id: str) -> Sequence[AttendanceRecord]:
        query = self._client.table(_TABLE).select("*").eq("user_id", user_id).order("marked_at")
        return [row_to_record(r) for r in rows(execute(query))]

    def list_for_event(self, event_id: str) -> Sequence[AttendanceRecord]:
        query = self._client.table(_TABLE).select("*").eq("event_id", event_id).order("marked_at")
        return [row_to_record(r) for r in rows(execute(query))]

    def count_by_event(self) -> dict[str, int]:
        data = rows(execute(self._client.table(_TABLE).select("event_id")))
        return dict(Counter(str(r["event_id"]) for r in data))

    def create(
        self,
        *,
        event_id: str,
        user_id: str,
        marked_by: Optional[str],
        qr_data: Optional[dict[str, Any]] = None,
    ) -> str:
        payload = {
            "event_id": event_id,
            "user_id": user_id,
            "marked_by": marked_by,
            "qr_data": qr_data,
        }
        data = rows(execute(self._client.table(_TABLE).insert(payload)))
        if not data:
            raise StoreError("insert into attendance returned no row")
        return str(data[0]["id"])
