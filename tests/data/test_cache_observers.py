from __future__ import annotations

from campus_events.core import messages
from campus_events.core.enums import ResultCode
from campus_events.data.service import TOPIC_EVENTS, TOPIC_FOOD_STALLS, TOPIC_USER_DATA
from campus_events.users.model import CurrentUser


def test_initial_load_fills_cache(store, student):
    event_id = store.add_event()

    svc = store.service(student)

    assert [e.id for e in svc.events] == [event_id]
    assert svc.food_stalls == ()
    assert svc.is_loading is False


def test_autoload_can_be_disabled(store, student):
    store.add_event()

    svc = store.service(student, autoload=False)

    assert svc.events == ()
    assert svc.refresh_data().message == messages.DATA_REFRESHED
    assert len(svc.events) == 1


def test_subscribers_hear_each_reloaded_topic(store, student):
    event_id = store.add_event()
    svc = store.service(student)
    topics: list[str] = []
    svc.subscribe(topics.append)

    svc.register_for_event(event_id, student.id)

    assert topics == [TOPIC_EVENTS, TOPIC_USER_DATA]


def test_refresh_notifies_all_topics(store, student):
    svc = store.service(student)
    topics: list[str] = []
    svc.subscribe(topics.append)

    svc.refresh_data()

    assert topics == [TOPIC_EVENTS, TOPIC_FOOD_STALLS, TOPIC_USER_DATA]


def test_unsubscribed_listener_is_not_called(store, student):
    svc = store.service(student)
    topics: list[str] = []
    unsubscribe = svc.subscribe(topics.append)

    unsubscribe()
    unsubscribe()
    svc.refresh_data()

    assert topics == []


def test_failing_listener_does_not_break_others(store, student):
    event_id = store.add_event()
    svc = store.service(student)
    seen: list[str] = []

    def broken(topic):
        raise RuntimeError("listener bug")

    svc.subscribe(broken)
    svc.subscribe(seen.append)

    assert svc.register_for_event(event_id, student.id)
    assert TOPIC_USER_DATA in seen


def test_failed_reload_keeps_previous_cache(store, student):
    store.add_event("Hackathon")
    svc = store.service(student)
    store.db.drop_table("events")

    result = svc.refresh_data()

    assert result.code == ResultCode.UNAVAILABLE
    assert [e.title for e in svc.events] == ["Hackathon"]


def test_sign_out_clears_user_data(store, student):
    event_id = store.add_event()
    svc = store.service(student)
    svc.register_for_event(event_id, student.id)

    svc.session.sign_out()

    assert svc.get_user_registered_events() == []
    assert len(svc.events) == 1
    assert svc.register_for_event(event_id, student.id).code == ResultCode.FORBIDDEN


def test_sign_in_loads_new_user_data(store, student, other_student):
    event_id = store.add_event()
    store.service(other_student).register_for_event(event_id, other_student.id)
    svc = store.service(student)
    assert svc.get_user_registered_events() == []

    svc.session.sign_in(CurrentUser.from_profile(other_student))

    assert [e.id for e in svc.get_user_registered_events()] == [event_id]


def test_closed_service_ignores_session_changes(store, student):
    svc = store.service(student)
    topics: list[str] = []
    svc.subscribe(topics.append)

    svc.close()
    svc.session.sign_out()

    assert topics == []
