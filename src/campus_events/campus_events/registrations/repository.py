from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import PaymentStatus
from .model import Registration


class RegistrationRepository(Protocol):
    def find(
        self,
        event_id: str,
        user_id: str,
        *,
        status: Optional[PaymentStatus] = None,
    ) -> Optional[Registration]:
        raise NotImplementedError

    def list_for_user(self, user_id: str, *, status: Optional[PaymentStatus] = None) -> Sequence[Registration]:
        raise NotImplementedError

    def list_for_event(self, event_id: str, *, status: Optional[PaymentStatus] = None) -> Sequence[Registration]:
        raise NotImplementedError

    def count_completed(self, event_id: str) -> int:
        raise NotImplementedError

    def create(
        self,
        *,
        event_id: str,
        user_id: str,
        payment_status: PaymentStatus,
        payment_id: Optional[str] = None,
    ) -> str:
        """Insert a registration.

        A completed insert must be atomic with respect to the event's seat
        limit and the one-completed-per-pair rule: raises ``CapacityError``
        or ``ConflictError`` instead of writing.
        """

        raise NotImplementedError

    def update_status(
        self,
        registration_id: str,
        *,
        payment_status: PaymentStatus,
        payment_id: Optional[str] = None,
    ) -> bool:
        """Move a registration to a new status (same guarantees as ``create``
        when the new status is completed)."""

        raise NotImplementedError

    def delete_for_event_and_user(self, event_id: str, user_id: str) -> int:
        """Delete the pair's completed registration, keeping failed and
        refunded rows; returns rows removed."""

        raise NotImplementedError
