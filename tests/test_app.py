from __future__ import annotations

import json

import pytest

from campus_events.database.seed import (
    DEMO_ADMIN_EMAIL,
    DEMO_ADMIN_PASSWORD,
    DEMO_STUDENT_PASSWORD,
    DEMO_STUDENT_ROLL,
)
from campus_events.main import create_app


@pytest.fixture
def app(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app({"AUTO_SEED_DB": True})


@pytest.fixture
def admin_client(app):
    client = app.test_client()
    resp = client.post("/api/auth/admin/login", json={"email": DEMO_ADMIN_EMAIL, "password": DEMO_ADMIN_PASSWORD})
    assert resp.status_code == 200
    return client


@pytest.fixture
def student_client(app):
    client = app.test_client()
    resp = client.post(
        "/api/auth/student/login",
        json={"rollNumber": DEMO_STUDENT_ROLL, "password": DEMO_STUDENT_PASSWORD},
    )
    assert resp.status_code == 200
    client.student_id = resp.get_json()["data"]["id"]
    return client


def _new_event(admin_client, **overrides) -> str:
    body = {
        "title": "Hackathon",
        "description": "24h coding",
        "date": "2030-03-01",
        "time": "10:00",
        "location": "Main Hall",
        "department": "Computer Science",
        "maxSeats": 2,
        "price": 0,
    }
    body.update(overrides)
    resp = admin_client.post("/api/events", json=body)
    assert resp.status_code == 201
    return resp.get_json()["data"]


def test_status_reports_backend(app):
    assert app.test_client().get("/api/status").get_json() == {"backend": "memory", "offline": False}


def test_unconfigured_supabase_runs_offline_with_demo_data(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app({"STORE_BACKEND": "supabase", "SUPABASE_URL": "", "SUPABASE_KEY": ""})
    client = app.test_client()

    assert client.get("/api/status").get_json() == {"backend": "memory", "offline": True}
    resp = client.post("/api/auth/admin/login", json={"email": DEMO_ADMIN_EMAIL, "password": DEMO_ADMIN_PASSWORD})
    assert resp.status_code == 200


def test_endpoints_require_login(app):
    client = app.test_client()

    assert client.get("/api/events").status_code == 401
    assert client.get("/api/profile").status_code == 401


def test_bad_credentials(app):
    resp = app.test_client().post("/api/auth/student/login", json={"rollNumber": DEMO_STUDENT_ROLL, "password": "nope"})

    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_student_cannot_use_admin_endpoints(student_client):
    assert student_client.post("/api/events", json={"title": "X"}).status_code == 403
    assert student_client.get("/api/analytics/dashboard").status_code == 403


def test_student_self_registration(app):
    client = app.test_client()
    body = {"name": "New Student", "rollNumber": "22ME010", "email": "new@campus.edu", "password": "secret1"}

    created = client.post("/api/auth/student/register", json=body)
    duplicate = client.post("/api/auth/student/register", json=body)
    login = client.post("/api/auth/student/login", json={"rollNumber": "22ME010", "password": "secret1"})

    assert created.status_code == 201
    assert duplicate.status_code == 400
    assert login.get_json()["data"]["name"] == "New Student"


def test_invalid_event_payload(admin_client):
    resp = admin_client.post("/api/events", json={"title": "No date", "maxSeats": 10})

    assert resp.status_code == 400
    assert resp.get_json()["code"] == "invalid"


def test_registration_round_trip(admin_client, student_client):
    event_id = _new_event(admin_client)

    first = student_client.post(f"/api/events/{event_id}/register")
    second = student_client.post(f"/api/events/{event_id}/register")
    mine = student_client.get("/api/me/events").get_json()["data"]
    detail = student_client.get(f"/api/events/{event_id}").get_json()["data"]

    assert first.status_code == 201
    assert second.status_code == 409
    assert [e["id"] for e in mine] == [event_id]
    assert detail["registered"] is True
    assert detail["seatsLeft"] == 1

    assert student_client.delete(f"/api/events/{event_id}/register").status_code == 200
    assert student_client.delete(f"/api/events/{event_id}/register").status_code == 404


def test_paid_checkout(student_client):
    events = student_client.get("/api/events").get_json()["data"]
    fest = next(e for e in events if e["title"] == "Cultural Fest")

    resp = student_client.post(f"/api/events/{fest['id']}/checkout", json={"method": "card"})
    bad = student_client.post(f"/api/events/{fest['id']}/checkout", json={"method": "barter"})

    assert resp.status_code == 201
    assert resp.get_json()["data"]["transactionId"].startswith("TXN")
    assert bad.status_code == 400


def test_qr_attendance_and_export(admin_client, student_client):
    event_id = _new_event(admin_client, title="Robotics Expo")
    student_client.post(f"/api/events/{event_id}/register")

    qr = student_client.get(f"/api/events/{event_id}/qr")
    assert qr.status_code == 200
    assert qr.mimetype == "image/png"

    scan = json.dumps({"eventId": event_id, "userId": student_client.student_id})
    marked = admin_client.post(f"/api/events/{event_id}/attendance", json={"qrData": scan})
    again = admin_client.post(f"/api/events/{event_id}/attendance", json={"qrData": scan})
    assert marked.status_code == 201
    assert marked.get_json()["data"]["user"]["rollNumber"] == DEMO_STUDENT_ROLL
    assert again.status_code == 409

    student_client.post("/api/refresh")
    assert student_client.get("/api/me/attendance").get_json()["data"] == [event_id]

    stats = admin_client.get(f"/api/analytics/events/{event_id}").get_json()["data"]
    assert (stats["registered"], stats["attended"]) == (1, 1)

    export = admin_client.get(f"/api/analytics/events/{event_id}/attendance.csv")
    assert export.status_code == 200
    assert export.mimetype == "text/csv"
    assert DEMO_STUDENT_ROLL in export.data.decode("utf-8-sig")
    assert "attendance-robotics-expo-" in export.headers["Content-Disposition"]


def test_wrong_event_qr_is_rejected(admin_client, student_client):
    event_id = _new_event(admin_client)
    other_id = _new_event(admin_client, title="Quiz Night")

    scan = json.dumps({"eventId": other_id, "userId": student_client.student_id})
    resp = admin_client.post(f"/api/events/{event_id}/attendance", json={"qrData": scan})

    assert resp.status_code == 400
    assert resp.get_json()["code"] == "invalid"


def test_food_stall_review(app, student_client):
    stalls = student_client.get("/api/food-stalls").get_json()["data"]
    cafe = next(s for s in stalls if s["name"] == "Campus Cafe")
    reviewer = app.test_client()
    reviewer.post(
        "/api/auth/student/register",
        json={"name": "Food Critic", "rollNumber": "22HM001", "email": "critic@campus.edu", "password": "secret1"},
    )
    reviewer.post("/api/auth/student/login", json={"rollNumber": "22HM001", "password": "secret1"})

    first = reviewer.post(f"/api/food-stalls/{cafe['id']}/reviews", json={"rating": 5, "comment": "Good"})
    second = reviewer.post(f"/api/food-stalls/{cafe['id']}/reviews", json={"rating": 1})
    seeded = student_client.post(f"/api/food-stalls/{cafe['id']}/reviews", json={"rating": 3})
    listed = reviewer.get("/api/food-stalls").get_json()["data"]

    assert first.status_code == 201
    assert second.status_code == 409
    assert seeded.status_code == 409
    assert next(s for s in listed if s["name"] == "Campus Cafe")["reviewCount"] == 2


def test_dashboard(admin_client):
    data = admin_client.get("/api/analytics/dashboard").get_json()["data"]

    assert data["totals"]["events"] == 2
    assert {s["name"] for s in data["topRatedStalls"]} == {"Campus Cafe", "Pizza Corner"}


def test_logout_ends_session(student_client):
    assert student_client.post("/api/auth/logout").status_code == 200
    assert student_client.get("/api/profile").status_code == 401


def test_bad_menu_price_is_a_json_validation_error(admin_client):
    resp = admin_client.post(
        "/api/food-stalls",
        json={"name": "Chai Stop", "description": "Tea", "menu": [{"item": "A", "price": "cheap"}]},
    )

    assert resp.status_code == 400
    assert resp.get_json()["code"] == "invalid"


def test_unexpected_error_returns_json_500(app, student_client, monkeypatch):
    def broken(user):
        raise RuntimeError("registry exploded")

    monkeypatch.setattr(app.extensions["campus_events"].data_services, "open", broken)

    resp = student_client.get("/api/food-stalls")

    assert resp.status_code == 500
    assert resp.is_json
    assert resp.get_json()["success"] is False
    assert "registry exploded" not in resp.get_json()["message"]


def test_unknown_route_returns_json_404(app):
    resp = app.test_client().get("/api/nowhere")

    assert resp.status_code == 404
    assert resp.get_json()["success"] is False


def test_qr_data_sent_as_object(admin_client, student_client):
    event_id = _new_event(admin_client, title="Open Mic")
    student_client.post(f"/api/events/{event_id}/register")

    scan = {"eventId": event_id, "userId": student_client.student_id}
    resp = admin_client.post(f"/api/events/{event_id}/attendance", json={"qrData": scan})

    assert resp.status_code == 201
    assert resp.get_json()["data"]["user"]["rollNumber"] == DEMO_STUDENT_ROLL
