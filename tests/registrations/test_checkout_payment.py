from __future__ import annotations

import random

import pytest

from campus_events.core import messages
from campus_events.core.enums import PaymentMethod, PaymentStatus, ResultCode
from campus_events.registrations.payment import SimulatedPaymentGateway


def test_free_event_skips_payment(store, student):
    event_id = store.add_event(price=0)

    result = store.service(student).purchase_registration(event_id, student.id)

    assert result.ok
    assert store.payments.charges == []
    assert store.registrations.find(event_id, student.id).payment_status == PaymentStatus.COMPLETED


def test_paid_event_records_transaction(store, student):
    event_id = store.add_event(price=150.0)
    svc = store.service(student)

    result = svc.purchase_registration(event_id, student.id, PaymentMethod.CARD)

    assert result.ok
    assert result.data["transactionId"] == "TXN1700000000000"
    amount, method, reference = store.payments.charges[0]
    assert (amount, method) == (150.0, PaymentMethod.CARD)
    assert reference == result.data["registrationId"]

    reg = store.registrations.find(event_id, student.id, status=PaymentStatus.COMPLETED)
    assert reg.payment_id == "TXN1700000000000"
    assert svc.get_event(event_id).registered_count == 1


def test_declined_payment_marks_registration_failed(store, student, make_gateway):
    event_id = store.add_event(price=50.0)
    svc = store.service(student, payments=make_gateway(ok=False))

    result = svc.purchase_registration(event_id, student.id)

    assert result.code == ResultCode.PAYMENT_FAILED
    assert result.message == messages.PAYMENT_FAILED
    assert store.registrations.find(event_id, student.id).payment_status == PaymentStatus.FAILED
    assert svc.get_user_registered_events() == []
    assert store.events.get_by_id(event_id).registered_count == 0


def test_retry_after_declined_payment(store, student, make_gateway):
    event_id = store.add_event(price=50.0)
    gateway = make_gateway(ok=False)
    svc = store.service(student, payments=gateway)
    svc.purchase_registration(event_id, student.id)

    gateway.ok = True
    assert svc.purchase_registration(event_id, student.id)
    assert store.registrations.count_completed(event_id) == 1


def test_unregister_keeps_declined_payment_rows(store, student, make_gateway):
    event_id = store.add_event(price=50.0)
    gateway = make_gateway(ok=False)
    svc = store.service(student, payments=gateway)
    svc.purchase_registration(event_id, student.id)
    gateway.ok = True
    svc.purchase_registration(event_id, student.id)

    assert svc.unregister_from_event(event_id, student.id)

    statuses = [r.payment_status for r in store.registrations.list_for_user(student.id)]
    assert statuses == [PaymentStatus.FAILED]
    assert store.registrations.count_completed(event_id) == 0


def test_seat_taken_during_payment_is_refunded(store, student, other_student, make_gateway):
    event_id = store.add_event(max_seats=1, price=80.0)

    def rival_takes_last_seat():
        store.registrations.create(
            event_id=event_id,
            user_id=other_student.id,
            payment_status=PaymentStatus.COMPLETED,
        )

    svc = store.service(student, payments=make_gateway(on_charge=rival_takes_last_seat))

    result = svc.purchase_registration(event_id, student.id)

    assert result.code == ResultCode.CONFLICT
    assert result.message == messages.EVENT_FULL
    assert store.registrations.find(event_id, student.id).payment_status == PaymentStatus.REFUNDED
    assert store.events.get_by_id(event_id).registered_count == 1
    assert svc.get_event(event_id).registered_count == 1


def test_full_paid_event_is_not_charged(store, student, other_student):
    event_id = store.add_event(max_seats=1, price=80.0)
    store.service(other_student).purchase_registration(event_id, other_student.id)
    store.payments.charges.clear()

    result = store.service(student).purchase_registration(event_id, student.id)

    assert result.message == messages.EVENT_FULL
    assert store.payments.charges == []


def test_simulated_gateway_success_uses_clock_for_transaction_id():
    gateway = SimulatedPaymentGateway(0.0, rng=random.Random(1), clock=lambda: 1700000000.5)

    receipt = gateway.charge(100.0, PaymentMethod.UPI, "reg-1")

    assert receipt.ok
    assert receipt.transaction_id == "TXN1700000000500"


def test_simulated_gateway_always_fails_at_full_rate():
    gateway = SimulatedPaymentGateway(1.0, rng=random.Random(7))

    receipts = [gateway.charge(10.0, PaymentMethod.CARD, f"reg-{i}") for i in range(5)]

    assert not any(r.ok for r in receipts)
    assert all(r.transaction_id is None for r in receipts)


@pytest.mark.parametrize("rate", [-0.1, 1.5])
def test_simulated_gateway_rejects_bad_rate(rate):
    with pytest.raises(ValueError):
        SimulatedPaymentGateway(rate)
