from __future__ import annotations

import io
from datetime import date

import pandas as pd
import pytest

from campus_events.analytics.export import REPORT_COLUMNS, report_filename, report_to_csv, report_to_xlsx
from campus_events.analytics.service import AnalyticsService
from campus_events.core.exceptions import NotFoundError
from campus_events.food_stalls.model import FoodStallDraft, ReviewDraft


@pytest.fixture
def analytics(store):
    return AnalyticsService(store.events, store.attendance, store.food_stalls, store.profiles, top_n=2)


@pytest.fixture
def busy_campus(store, admin, student, other_student):
    hackathon = store.add_event("Hackathon", max_seats=10, date="2026-03-01")
    expo = store.add_event("Robotics Expo", max_seats=5, date="2026-01-10")
    store.add_event("Quiz Night", max_seats=5, date="2026-04-01")

    for s in (student, other_student):
        store.service(s).register_for_event(hackathon, s.id)
    store.service(student).register_for_event(expo, student.id)
    store.service(admin).mark_attendance(hackathon, student.id)

    cafe = store.food_stalls.create(FoodStallDraft(name="Campus Cafe", description="Coffee"))
    pizza = store.food_stalls.create(FoodStallDraft(name="Pizza Corner", description="Pizza"))
    store.food_stalls.create(FoodStallDraft(name="Juice Bar", description="Juice"))
    store.food_stalls.create_review(cafe, ReviewDraft(user_id=student.id, rating=3))
    store.food_stalls.create_review(pizza, ReviewDraft(user_id=student.id, rating=5))
    store.food_stalls.create_review(pizza, ReviewDraft(user_id=other_student.id, rating=4))
    return {"hackathon": hackathon, "expo": expo}


def test_dashboard_totals(analytics, busy_campus):
    data = analytics.dashboard(today=date(2026, 2, 1))

    assert data["totals"] == {
        "events": 3,
        "registrations": 3,
        "averageRegistrations": 1,
        "attendance": 1,
        "attendanceRate": 33,
        "upcomingEvents": 2,
    }


def test_dashboard_rankings(analytics, busy_campus):
    data = analytics.dashboard(today=date(2026, 2, 1))

    assert [e["title"] for e in data["popularEvents"]] == ["Hackathon", "Robotics Expo"]
    assert [(s["name"], s["rating"]) for s in data["topRatedStalls"]] == [("Pizza Corner", 4.5), ("Campus Cafe", 3.0)]
    assert data["departments"] == [
        {"department": "Computer Science", "events": 3, "registrations": 3, "averageRegistrations": 1}
    ]


def test_dashboard_on_empty_store(analytics):
    totals = analytics.dashboard(today=date(2026, 2, 1))["totals"]

    assert totals["events"] == 0
    assert totals["attendanceRate"] == 0
    assert totals["averageRegistrations"] == 0


def test_event_stats(analytics, busy_campus):
    stats = analytics.event_stats(busy_campus["hackathon"])

    assert (stats["registered"], stats["attended"], stats["attendanceRate"]) == (2, 1, 50)


def test_event_stats_unknown_event(analytics):
    with pytest.raises(NotFoundError):
        analytics.event_stats("missing")


def test_attendance_report_rows_and_summary(analytics, busy_campus):
    report = analytics.attendance_report(busy_campus["hackathon"])

    assert len(report.rows) == 1
    row = report.rows[0]
    assert (row["Name"], row["Roll Number"], row["Email"]) == ("Asha Rao", "21CS101", "asha.rao@campus.edu")
    assert report.summary == [
        {"Field": "Event", "Value": "Hackathon"},
        {"Field": "Date", "Value": "2026-03-01"},
        {"Field": "Total Present", "Value": "1"},
    ]


def test_csv_export_layout(analytics, busy_campus):
    data = report_to_csv(analytics.attendance_report(busy_campus["hackathon"]))

    assert data.startswith(b"\xef\xbb\xbf")
    lines = data.decode("utf-8-sig").splitlines()
    assert lines[:4] == ["Event,Hackathon", "Date,2026-03-01", "Total Present,1", ""]
    assert lines[4] == ",".join(REPORT_COLUMNS)
    assert lines[5].startswith("Asha Rao,21CS101,asha.rao@campus.edu,")


def test_xlsx_export_has_both_sheets(analytics, busy_campus):
    data = report_to_xlsx(analytics.attendance_report(busy_campus["hackathon"]))

    sheets = pd.read_excel(io.BytesIO(data), sheet_name=None, engine="openpyxl")
    assert list(sheets) == ["Attendance", "Summary"]
    assert sheets["Attendance"]["Name"].tolist() == ["Asha Rao"]


def test_report_filename():
    assert report_filename("Tech Symposium 2024!", "2026-02-01", "csv") == "attendance-tech-symposium-2024-2026-02-01.csv"
    assert report_filename("", "2026-02-01", "xlsx") == "attendance-event-2026-02-01.xlsx"
