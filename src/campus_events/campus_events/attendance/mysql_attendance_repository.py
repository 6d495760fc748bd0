from __future__ import annotations

import uuid
from typing import Any, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = "id, event_id, user_id, marked_by, marked_at, qr_data"


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        id=str(r["id"]),
        event_id=str(r["event_id"]),
        user_id=str(r["user_id"]),
        marked_by=r.get("marked_by"),
        marked_at=r.get("marked_at"),
        qr_data=load_json(r.get("qr_data")),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find(self, event_id: str, user_id: str) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance WHERE event_id=%s AND user_id=%s",
                (event_id, user_id),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def list_for_user(self, user_id: str) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance WHERE user_id=%s ORDER BY marked_at ASC",
                (user_id,),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_for_event(self, event_id: str) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance WHERE event_id=%s ORDER BY marked_at ASC",
                (event_id,),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def count_by_event(self) -> dict[str, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT event_id, COUNT(*) AS n FROM attendance GROUP BY event_id")
            return {str(r["event_id"]): int(r["n"]) for r in fetchall(cur)}

    def create(
        self,
        *,
        event_id: str,
        user_id: str,
        marked_by: Optional[str],
        qr_data: Optional[dict[str, Any]] = None,
    ) -> str:
        # Duplicate pairs hit uq_attendance_event_user -> ConflictError.
        record_id = str(uuid.uuid4())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance(id, event_id, user_id, marked_by, qr_data)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (record_id, event_id, user_id, marked_by, dump_json(qr_data)),
            )
        return record_id
