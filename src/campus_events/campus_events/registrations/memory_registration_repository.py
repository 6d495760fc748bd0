from __future__ import annotations

from dataclasses import replace
from typing import Optional, Sequence

from ..common.datetime_utils import now_utc
from ..core.enums import PaymentStatus
from ..core.exceptions import CapacityError, ConflictError, NotFoundError
from ..database.memory import MemoryDatabase
from .model import Registration
from .repository import RegistrationRepository


class InMemoryRegistrationRepository(RegistrationRepository):
    def __init__(self, db: MemoryDatabase):
        self._db = db

    def find(self, event_id: str, user_id: str, *, status: Optional[PaymentStatus] = None) -> Optional[Registration]:
        with self._db.table("event_registrations") as regs:
            for r in regs.values():
                if r.event_id == event_id and r.user_id == user_id and (status is None or r.payment_status == status):
                    return r
        return None

    def list_for_user(self, user_id: str, *, status: Optional[PaymentStatus] = None) -> Sequence[Registration]:
        with self._db.table("event_registrations") as regs:
            return [
                r for r in regs.values() if r.user_id == user_id and (status is None or r.payment_status == status)
            ]

    def list_for_event(self, event_id: str, *, status: Optional[PaymentStatus] = None) -> Sequence[Registration]:
        with self._db.table("event_registrations") as regs:
            return [
                r for r in regs.values() if r.event_id == event_id and (status is None or r.payment_status == status)
            ]

    def count_completed(self, event_id: str) -> int:
        return len(self.list_for_event(event_id, status=PaymentStatus.COMPLETED))

    def _guard_completed(self, regs: dict, event_id: str, user_id: str, *, exclude_id: Optional[str] = None) -> None:
        with self._db.table("events") as events:
            event = events.get(event_id)
            if not event:
                raise NotFoundError(f"event {event_id} not found")
            completed = [
                r for r in regs.values()
                if r.event_id == event_id and r.payment_status == PaymentStatus.COMPLETED and r.id != exclude_id
            ]
            if any(r.user_id == user_id for r in completed):
                raise ConflictError(f"user {user_id} already registered for {event_id}")
            if len(completed) >= event.max_seats:
                raise CapacityError(f"event {event_id} is fully booked")

    def create(
        self,
        *,
        event_id: str,
        user_id: str,
        payment_status: PaymentStatus,
        payment_id: Optional[str] = None,
    ) -> str:
        with self._db.table("event_registrations") as regs:
            if payment_status == PaymentStatus.COMPLETED:
                self._guard_completed(regs, event_id, user_id)
            registration_id = self._db.new_id()
            regs[registration_id] = Registration(
                id=registration_id,
                event_id=event_id,
                user_id=user_id,
                payment_status=payment_status,
                payment_id=payment_id,
                registered_at=now_utc(),
            )
            return registration_id

    def update_status(
        self,
        registration_id: str,
        *,
        payment_status: PaymentStatus,
        payment_id: Optional[str] = None,
    ) -> bool:
        with self._db.table("event_registrations") as regs:
            current = regs.get(registration_id)
            if not current:
                return False
            if payment_status == PaymentStatus.COMPLETED:
                self._guard_completed(regs, current.event_id, current.user_id, exclude_id=registration_id)
            regs[registration_id] = replace(
                current,
                payment_status=payment_status,
                payment_id=payment_id or current.payment_id,
            )
            return True

    def delete_for_event_and_user(self, event_id: str, user_id: str) -> int:
        with self._db.table("event_registrations") as regs:
            doomed = [
                k
                for k, r in regs.items()
                if r.event_id == event_id and r.user_id == user_id and r.payment_status == PaymentStatus.COMPLETED
            ]
            for key in doomed:
                del regs[key]
            return len(doomed)
