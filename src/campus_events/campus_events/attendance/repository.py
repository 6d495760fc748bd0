from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def find(self, event_id: str, user_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_user(self, user_id: str) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_event(self, event_id: str) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def count_by_event(self) -> dict[str, int]:
        raise NotImplementedError

    def create(
        self,
        *,
        event_id: str,
        user_id: str,
        marked_by: Optional[str],
        qr_data: Optional[dict[str, Any]] = None,
    ) -> str:
        """Insert an attendance record; raises ``ConflictError`` on a duplicate pair."""

        raise NotImplementedError
