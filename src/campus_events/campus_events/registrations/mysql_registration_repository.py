from __future__ import annotations

import uuid
from typing import Optional, Sequence

from ..core.enums import PaymentStatus
from ..core.exceptions import CapacityError, ConflictError, NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Registration
from .repository import RegistrationRepository

_COLUMNS = "id, event_id, user_id, payment_status, payment_id, registration_date"


def _row_to_registration(r: dict) -> Registration:
    return Registration(
        id=str(r["id"]),
        event_id=str(r["event_id"]),
        user_id=str(r["user_id"]),
        payment_status=PaymentStatus(r["payment_status"]),
        payment_id=r.get("payment_id"),
        registered_at=r.get("registration_date"),
    )


def _lock_and_check_capacity(cur, *, event_id: str, user_id: str, exclude_id: Optional[str] = None) -> None:
    """Seat/uniqueness check inside the caller's transaction.

    The event row stays locked (FOR UPDATE) until the transaction commits,
    so concurrent completions for the same event are serialized.
    """

    cur.execute("SELECT max_seats FROM events WHERE id=%s FOR UPDATE", (event_id,))
    event = fetchone(cur)
    if not event:
        raise NotFoundError(f"event {event_id} not found")

    cur.execute(
        """
        SELECT COUNT(*) AS taken, COALESCE(SUM(user_id=%s), 0) AS mine
        FROM event_registrations
        WHERE event_id=%s AND payment_status='completed' AND id<>%s
        """,
        (user_id, event_id, exclude_id or ""),
    )
    r = fetchone(cur) or {}
    if int(r.get("mine") or 0) > 0:
        raise ConflictError(f"user {user_id} already registered for {event_id}")
    if int(r.get("taken") or 0) >= int(event["max_seats"]):
        raise CapacityError(f"event {event_id} is fully booked")


class MySQLRegistrationRepository(RegistrationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find(self, event_id: str, user_id: str, *, status: Optional[PaymentStatus] = None) -> Optional[Registration]:
        sql = f"SELECT {_COLUMNS} FROM event_registrations WHERE event_id=%s AND user_id=%s"
        params: list[object] = [event_id, user_id]
        if status is not None:
            sql += " AND payment_status=%s"
            params.append(status.value)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY registration_date DESC LIMIT 1", tuple(params))
            r = fetchone(cur)
            return _row_to_registration(r) if r else None

    def _list(self, column: str, value: str, status: Optional[PaymentStatus]) -> Sequence[Registration]:
        sql = f"SELECT {_COLUMNS} FROM event_registrations WHERE {column}=%s"
        params: list[object] = [value]
        if status is not None:
            sql += " AND payment_status=%s"
            params.append(status.value)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY registration_date ASC", tuple(params))
            return [_row_to_registration(r) for r in fetchall(cur)]

    def list_for_user(self, user_id: str, *, status: Optional[PaymentStatus] = None) -> Sequence[Registration]:
        return self._list("user_id", user_id, status)

    def list_for_event(self, event_id: str, *, status: Optional[PaymentStatus] = None) -> Sequence[Registration]:
        return self._list("event_id", event_id, status)

    def count_completed(self, event_id: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM event_registrations WHERE event_id=%s AND payment_status='completed'",
                (event_id,),
            )
            r = fetchone(cur) or {}
            return int(r.get("n") or 0)

    def create(
        self,
        *,
        event_id: str,
        user_id: str,
        payment_status: PaymentStatus,
        payment_id: Optional[str] = None,
    ) -> str:
        registration_id = str(uuid.uuid4())
        with db_cursor(self._conn_factory) as (_, cur):
            if payment_status == PaymentStatus.COMPLETED:
                _lock_and_check_capacity(cur, event_id=event_id, user_id=user_id)
            cur.execute(
                """
                INSERT INTO event_registrations(id, event_id, user_id, payment_status, payment_id)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (registration_id, event_id, user_id, payment_status.value, payment_id),
            )
        return registration_id

    def update_status(
        self,
        registration_id: str,
        *,
        payment_status: PaymentStatus,
        payment_id: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT event_id, user_id FROM event_registrations WHERE id=%s FOR UPDATE",
                (registration_id,),
            )
            current = fetchone(cur)
            if not current:
                return False
            if payment_status == PaymentStatus.COMPLETED:
                _lock_and_check_capacity(
                    cur,
                    event_id=str(current["event_id"]),
                    user_id=str(current["user_id"]),
                    exclude_id=registration_id,
                )
            cur.execute(
                """
                UPDATE event_registrations
                SET payment_status=%s, payment_id=COALESCE(%s, payment_id)
                WHERE id=%s
                """,
                (payment_status.value, payment_id, registration_id),
            )
            return True

    def delete_for_event_and_user(self, event_id: str, user_id: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM event_registrations WHERE event_id=%s AND user_id=%s AND payment_status=%s",
                (event_id, user_id, PaymentStatus.COMPLETED.value),
            )
            return int(cur.rowcount or 0)
