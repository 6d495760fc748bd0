from __future__ import annotations

from campus_events.core import messages
from campus_events.core.enums import PaymentStatus, ResultCode


def test_register_confirms_seat_and_updates_cache(store, student):
    event_id = store.add_event(max_seats=10)
    svc = store.service(student)

    result = svc.register_for_event(event_id, student.id)

    assert result.ok
    assert result.message == messages.REGISTERED
    assert svc.get_event(event_id).registered_count == 1
    assert [e.id for e in svc.get_user_registered_events()] == [event_id]
    assert store.registrations.find(event_id, student.id).payment_status == PaymentStatus.COMPLETED


def test_register_twice_keeps_single_registration(store, student):
    event_id = store.add_event()
    svc = store.service(student)
    assert svc.register_for_event(event_id, student.id)

    again = svc.register_for_event(event_id, student.id)

    assert again.code == ResultCode.CONFLICT
    assert again.message == messages.ALREADY_REGISTERED
    assert store.registrations.count_completed(event_id) == 1


def test_full_event_rejects_next_student(store, student, other_student):
    event_id = store.add_event(max_seats=1)
    assert store.service(student).register_for_event(event_id, student.id)

    svc = store.service(other_student)
    result = svc.register_for_event(event_id, other_student.id)

    assert result.code == ResultCode.CONFLICT
    assert result.message == messages.EVENT_FULL
    assert svc.get_user_registered_events() == []
    assert store.registrations.count_completed(event_id) == 1


def test_registered_count_never_exceeds_seats(store):
    event_id = store.add_event(max_seats=3)
    students = [store.add_profile(f"Student {i}", roll_number=f"21CS2{i:02d}") for i in range(6)]

    outcomes = [store.service(s).register_for_event(event_id, s.id) for s in students]

    assert sum(1 for r in outcomes if r.ok) == 3
    assert store.events.get_by_id(event_id).registered_count == 3


def test_register_unknown_event(store, student):
    result = store.service(student).register_for_event("missing", student.id)

    assert result.code == ResultCode.NOT_FOUND
    assert result.message == messages.EVENT_NOT_FOUND


def test_student_cannot_register_someone_else(store, student, other_student):
    event_id = store.add_event()

    result = store.service(student).register_for_event(event_id, other_student.id)

    assert result.code == ResultCode.FORBIDDEN
    assert store.registrations.find(event_id, other_student.id) is None


def test_admin_may_register_on_behalf_of_student(store, admin, student):
    event_id = store.add_event()

    assert store.service(admin).register_for_event(event_id, student.id)
    assert store.registrations.find(event_id, student.id) is not None


def test_register_requires_login(store, student):
    event_id = store.add_event()

    result = store.service().register_for_event(event_id, student.id)

    assert result.code == ResultCode.FORBIDDEN
    assert result.message == messages.LOGIN_REQUIRED


def test_unregister_frees_the_seat(store, student):
    event_id = store.add_event(max_seats=1)
    svc = store.service(student)
    svc.register_for_event(event_id, student.id)

    result = svc.unregister_from_event(event_id, student.id)

    assert result.ok
    assert result.message == messages.UNREGISTERED
    assert svc.get_user_registered_events() == []
    assert svc.get_event(event_id).registered_count == 0


def test_unregister_when_not_registered_changes_nothing(store, student, other_student):
    event_id = store.add_event()
    store.service(other_student).register_for_event(event_id, other_student.id)

    result = store.service(student).unregister_from_event(event_id, student.id)

    assert result.code == ResultCode.NOT_FOUND
    assert result.message == messages.NOT_REGISTERED
    assert store.registrations.count_completed(event_id) == 1


def test_store_outage_returns_generic_failure(store, student):
    event_id = store.add_event()
    svc = store.service(student)
    store.db.drop_table("event_registrations")

    result = svc.register_for_event(event_id, student.id)

    assert result.code == ResultCode.UNAVAILABLE
    assert result.message == messages.GENERIC_FAILURE
