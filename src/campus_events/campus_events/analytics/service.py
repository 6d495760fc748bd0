from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import parse_iso_date
from ..core.constants import DEFAULT_TOP_N
from ..core.exceptions import NotFoundError
from ..core.messages import EVENT_NOT_FOUND
from ..events.repository import EventRepository
from ..food_stalls.repository import FoodStallRepository
from ..users.repository import ProfileRepository


def _round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _percent(part: int, whole: int) -> int:
    return _round_half_up(part * 100 / whole) if whole else 0


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: list[dict]


class AnalyticsService:
    """Admin dashboard figures and per-event attendance reports."""

    def __init__(
        self,
        events: EventRepository,
        attendance: AttendanceRepository,
        food_stalls: FoodStallRepository,
        profiles: ProfileRepository,
        *,
        top_n: int = DEFAULT_TOP_N,
    ):
        self._events = events
        self._attendance = attendance
        self._food_stalls = food_stalls
        self._profiles = profiles
        self._top_n = top_n

    def dashboard(self, today: Optional[date] = None) -> dict:
        today = today or date.today()
        events = list(self._events.list_with_counts())
        stalls = list(self._food_stalls.list_with_reviews(active_only=True))
        attended = self._attendance.count_by_event()

        total_events = len(events)
        total_registrations = sum(e.registered_count for e in events)
        total_attendance = sum(attended.get(e.id, 0) for e in events)
        upcoming = sum(1 for e in events if parse_iso_date(e.date) > today)

        departments: dict[str, dict] = {}
        for e in events:
            d = departments.setdefault(e.department, {"department": e.department, "events": 0, "registrations": 0})
            d["events"] += 1
            d["registrations"] += e.registered_count
        for d in departments.values():
            d["averageRegistrations"] = _round_half_up(d["registrations"] / d["events"])

        popular = sorted(events, key=lambda e: e.registered_count, reverse=True)[: self._top_n]
        top_rated = sorted(stalls, key=lambda s: s.rating, reverse=True)[: self._top_n]

        return {
            "totals": {
                "events": total_events,
                "registrations": total_registrations,
                "averageRegistrations": _round_half_up(total_registrations / total_events) if total_events else 0,
                "attendance": total_attendance,
                "attendanceRate": _percent(total_attendance, total_registrations),
                "upcomingEvents": upcoming,
            },
            "popularEvents": [
                {"id": e.id, "title": e.title, "registered": e.registered_count, "maxSeats": e.max_seats}
                for e in popular
            ],
            "topRatedStalls": [
                {"id": s.id, "name": s.name, "rating": s.rating, "reviewCount": s.review_count} for s in top_rated
            ],
            "departments": sorted(departments.values(), key=lambda d: d["department"]),
        }

    def event_stats(self, event_id: str) -> dict:
        event = self._events.get_by_id(event_id)
        if not event:
            raise NotFoundError(EVENT_NOT_FOUND)
        attended = len(self._attendance.list_for_event(event_id))
        return {
            "eventId": event.id,
            "title": event.title,
            "registered": event.registered_count,
            "maxSeats": event.max_seats,
            "attended": attended,
            "attendanceRate": _percent(attended, event.registered_count),
        }

    def attendance_report(self, event_id: str) -> ReportData:
        event = self._events.get_by_id(event_id)
        if not event:
            raise NotFoundError(EVENT_NOT_FOUND)

        rows: list[dict] = []
        for record in self._attendance.list_for_event(event_id):
            profile = self._profiles.get_by_id(record.user_id)
            rows.append(
                {
                    "Name": profile.name if profile else "Unknown",
                    "Roll Number": (profile.roll_number if profile else None) or "N/A",
                    "Email": profile.email if profile else "N/A",
                    "Marked At": record.marked_at.strftime("%Y-%m-%d %H:%M:%S") if record.marked_at else "",
                }
            )

        summary = [
            {"Field": "Event", "Value": event.title},
            {"Field": "Date", "Value": event.date},
            {"Field": "Total Present", "Value": str(len(rows))},
        ]
        return ReportData(rows=rows, summary=summary)
