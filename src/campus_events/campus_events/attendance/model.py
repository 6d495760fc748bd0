from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: proof a user was present at an event (immutable)."""

    id: str
    event_id: str
    user_id: str
    marked_by: Optional[str]
    marked_at: Optional[datetime]
    qr_data: Optional[dict[str, Any]] = None
