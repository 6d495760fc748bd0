from __future__ import annotations

import json

from campus_events.attendance.qr import build_qr_payload
from campus_events.core import messages
from campus_events.core.enums import ResultCode


def test_admin_marks_attendance_once(store, admin, student):
    event_id = store.add_event()
    svc = store.service(admin)

    first = svc.mark_attendance(event_id, student.id)
    second = svc.mark_attendance(event_id, student.id)

    assert first.ok
    assert first.message == messages.ATTENDANCE_MARKED
    assert second.code == ResultCode.CONFLICT
    assert second.message == messages.DUPLICATE_SCAN
    assert len(store.attendance.list_for_event(event_id)) == 1
    assert store.attendance.find(event_id, student.id).marked_by == admin.id


def test_student_cannot_mark_attendance(store, student):
    event_id = store.add_event()

    result = store.service(student).mark_attendance(event_id, student.id)

    assert result.code == ResultCode.FORBIDDEN
    assert store.attendance.find(event_id, student.id) is None


def test_mark_attendance_for_unknown_event_or_user(store, admin, student):
    event_id = store.add_event()
    svc = store.service(admin)

    assert svc.mark_attendance("missing", student.id).message == messages.EVENT_NOT_FOUND
    assert svc.mark_attendance(event_id, "nobody").message == messages.USER_NOT_FOUND


def test_registration_can_be_required(store, admin, student):
    event_id = store.add_event()
    svc = store.service(admin, require_registration_for_attendance=True)

    refused = svc.mark_attendance(event_id, student.id)
    store.service(student).register_for_event(event_id, student.id)
    accepted = svc.mark_attendance(event_id, student.id)

    assert refused.code == ResultCode.NOT_FOUND
    assert refused.message == messages.STUDENT_NOT_REGISTERED
    assert accepted.ok


def test_student_sees_own_attendance_after_refresh(store, admin, student):
    event_id = store.add_event()
    student_svc = store.service(student)
    assert student_svc.get_user_attendance() == []

    store.service(admin).mark_attendance(event_id, student.id)
    student_svc.refresh_data()

    assert student_svc.get_user_attendance() == [event_id]


def test_scan_marks_attendance_with_audit_payload(store, admin, student, fixed_now):
    event_id = store.add_event()
    svc = store.service(admin, clock=lambda: fixed_now)

    result = svc.scan_attendance(event_id, build_qr_payload(event_id, student, now=fixed_now))

    assert result.ok
    assert result.data["user"] == {"id": student.id, "name": "Asha Rao", "rollNumber": "21CS101"}
    record = store.attendance.find(event_id, student.id)
    assert record.id == result.data["recordId"]
    assert record.qr_data["scannedBy"] == admin.id
    assert record.qr_data["scannedAt"].startswith("2026-02-01T09:30:00")
    assert record.qr_data["qrData"]["eventId"] == event_id


def test_scan_resolves_student_by_roll_number(store, admin, student):
    event_id = store.add_event()
    raw = json.dumps({"eventId": event_id, "rollNumber": "21CS101", "name": "Asha Rao"})

    result = store.service(admin).scan_attendance(event_id, raw)

    assert result.ok
    assert store.attendance.find(event_id, student.id) is not None


def test_scan_of_other_event_qr_is_rejected(store, admin, student):
    event_id = store.add_event("Hackathon")
    other_id = store.add_event("Robotics Expo")

    result = store.service(admin).scan_attendance(event_id, build_qr_payload(other_id, student))

    assert result.code == ResultCode.INVALID
    assert result.message == messages.WRONG_EVENT_QR
    assert store.attendance.list_for_event(event_id) == []


def test_scan_of_unreadable_qr_is_rejected(store, admin):
    event_id = store.add_event()

    result = store.service(admin).scan_attendance(event_id, "not json at all")

    assert result.code == ResultCode.INVALID
    assert result.message == messages.INVALID_QR


def test_scan_for_unknown_student(store, admin):
    event_id = store.add_event()
    raw = json.dumps({"eventId": event_id, "userId": "ghost"})

    result = store.service(admin).scan_attendance(event_id, raw)

    assert result.code == ResultCode.NOT_FOUND
    assert result.message == messages.USER_NOT_FOUND


def test_duplicate_scan_is_reported(store, admin, student):
    event_id = store.add_event()
    svc = store.service(admin)
    raw = build_qr_payload(event_id, student)
    svc.scan_attendance(event_id, raw)

    result = svc.scan_attendance(event_id, raw)

    assert result.message == messages.DUPLICATE_SCAN
    assert len(store.attendance.list_for_event(event_id)) == 1
