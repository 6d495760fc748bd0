from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import PaymentStatus


@dataclass(frozen=True)
class Registration:
    """Domain entity: link between a profile and an event."""

    id: str
    event_id: str
    user_id: str
    payment_status: PaymentStatus
    payment_id: Optional[str] = None
    registered_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.payment_status == PaymentStatus.COMPLETED
