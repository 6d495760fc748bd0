from __future__ import annotations

from typing import Optional, Sequence

from supabase import Client

from ..common.datetime_utils import parse_timestamp
from ..core.enums import PaymentStatus
from ..core.exceptions import StoreError
from ..database.supabase_base import execute, rows
from .model import Registration
from .repository import RegistrationRepository

_TABLE = "event_registrations"


def row_to_registration(row: dict) -> Registration:
    return Registration(
        id=str(row["id"]),
        event_id=str(row["event_id"]),
        user_id=str(row["user_id"]),
        payment_status=PaymentStatus(row.get("payment_status") or PaymentStatus.PENDING.value),
        payment_id=row.get("payment_id"),
        registered_at=parse_timestamp(row.get("registration_date")),
    )


class SupabaseRegistrationRepository(RegistrationRepository):
    """Uniqueness and capacity are enforced by the partial unique index and
    the ``enforce_event_capacity`` trigger (database/supabase_schema.sql);
    their errors arrive here as ``ConflictError`` / ``CapacityError``."""

    def __init__(self, client: Client):
        self._client = client

    def find(self, event_id: str, user_id: str, *, status: Optional[PaymentStatus] = None) -> Optional[Registration]:
        query = self._client.table(_TABLE).select("*").eq("event_id", event_id).eq("user_id", user_id)
        if status is not None:
            query = query.eq("payment_status", status.value)
        data = rows(execute(query.limit(1)))
        return row_to_registration(data[0]) if data else None

    def list_for_user(self, user_id: str, *, status: Optional[PaymentStatus] = None) -> Sequence[Registration]:
        query = self._client.table(_TABLE).select("*").eq("user_id", user_id)
        if status is not None:
            query = query.eq("payment_status", status.value)
        return [row_to_registration(r) for r in rows(execute(query))]

    def list_for_event(self, event_id: str, *, status: Optional[PaymentStatus] = None) -> Sequence[Registration]:
        query = self._client.table(_TABLE).select("*").eq("event_id", event_id)
        if status is not None:
            query = query.eq("payment_status", status.value)
        return [row_to_registration(r) for r in rows(execute(query))]

    def count_completed(self, event_id: str) -> int:
        response = execute(
            self._client.table(_TABLE)
            .select("id", count="exact")
            .eq("event_id", event_id)
            .eq("payment_status", PaymentStatus.COMPLETED.value)
        )
        count = getattr(response, "count", None)
        return int(count) if count is not None else len(rows(response))

    def create(
        self,
        *,
        event_id: str,
        user_id: str,
        payment_status: PaymentStatus,
        payment_id: Optional[str] = None,
    ) -> str:
        payload = {
            "event_id": event_id,
            "user_id": user_id,
            "payment_status": payment_status.value,
            "payment_id": payment_id,
        }
        data = rows(execute(self._client.table(_TABLE).insert(payload)))
        if not data:
            raise StoreError("insert into event_registrations returned no row")
        return str(data[0]["id"])

    def update_status(
        self,
        registration_id: str,
        *,
        payment_status: PaymentStatus,
        payment_id: Optional[str] = None,
    ) -> bool:
        payload = {"payment_status": payment_status.value}
        if payment_id is not None:
            payload["payment_id"] = payment_id
        data = rows(execute(self._client.table(_TABLE).update(payload).eq("id", registration_id)))
        return bool(data)

    def delete_for_event_and_user(self, event_id: str, user_id: str) -> int:
        data = rows(
            execute(
                self._client.table(_TABLE)
                .delete()
                .eq("event_id", event_id)
                .eq("user_id", user_id)
                .eq("payment_status", PaymentStatus.COMPLETED.value)
            )
        )
        return len(data)
