from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

import pytest

from campus_events.attendance.memory_attendance_repository import InMemoryAttendanceRepository
from campus_events.core.enums import PaymentMethod, Role
from campus_events.data.service import DataService
from campus_events.database.memory import MemoryDatabase
from campus_events.events.memory_event_repository import InMemoryEventRepository
from campus_events.events.model import EventDraft
from campus_events.food_stalls.memory_food_stall_repository import InMemoryFoodStallRepository
from campus_events.registrations.memory_registration_repository import InMemoryRegistrationRepository
from campus_events.registrations.payment import PaymentReceipt
from campus_events.users.memory_profile_repository import InMemoryProfileRepository
from campus_events.users.model import CurrentUser, Profile
from campus_events.users.session import Session


class FakePaymentGateway:
    def __init__(
        self,
        ok: bool = True,
        transaction_id: str = "TXN1700000000000",
        on_charge: Optional[Callable[[], None]] = None,
    ):
        self.ok = ok
        self.transaction_id = transaction_id
        self.on_charge = on_charge
        self.charges: list[tuple[float, PaymentMethod, str]] = []

    def charge(self, amount: float, method: PaymentMethod, reference: str) -> PaymentReceipt:
        self.charges.append((amount, method, reference))
        if self.on_charge is not None:
            self.on_charge()
        if not self.ok:
            return PaymentReceipt(ok=False, message="Payment declined")
        return PaymentReceipt(ok=True, transaction_id=self.transaction_id, message="Payment successful")


@dataclass
class Store:
    db: MemoryDatabase
    events: InMemoryEventRepository
    registrations: InMemoryRegistrationRepository
    attendance: InMemoryAttendanceRepository
    food_stalls: InMemoryFoodStallRepository
    profiles: InMemoryProfileRepository
    payments: FakePaymentGateway = field(default_factory=FakePaymentGateway)

    def add_profile(self, name: str, role: Role = Role.STUDENT, roll_number: Optional[str] = None) -> Profile:
        profile = Profile(
            id=self.db.new_id(),
            name=name,
            email=f"{name.lower().replace(' ', '.')}@campus.edu",
            role=role,
            roll_number=roll_number,
        )
        self.profiles.create(profile)
        return profile

    def add_event(self, title: str = "Hackathon", *, max_seats: int = 50, price: float = 0.0, date: str = "2030-03-01") -> str:
        return self.events.create(
            EventDraft(
                title=title,
                description=f"{title} description",
                date=date,
                time="10:00",
                location="Main Hall",
                department="Computer Science",
                max_seats=max_seats,
                price=price,
            )
        )

    def service(self, user: Optional[Profile] = None, **kwargs) -> DataService:
        return self.bind(Session(CurrentUser.from_profile(user) if user else None), **kwargs)

    def bind(self, session: Session, **kwargs) -> DataService:
        return DataService(
            session,
            events=self.events,
            registrations=self.registrations,
            attendance=self.attendance,
            food_stalls=self.food_stalls,
            profiles=self.profiles,
            payments=kwargs.pop("payments", self.payments),
            **kwargs,
        )


@pytest.fixture
def fixed_now():
    return datetime(2026, 2, 1, 9, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def store() -> Store:
    db = MemoryDatabase()
    return Store(
        db=db,
        events=InMemoryEventRepository(db),
        registrations=InMemoryRegistrationRepository(db),
        attendance=InMemoryAttendanceRepository(db),
        food_stalls=InMemoryFoodStallRepository(db),
        profiles=InMemoryProfileRepository(db),
    )


@pytest.fixture
def admin(store: Store) -> Profile:
    return store.add_profile("Admin One", role=Role.ADMIN)


@pytest.fixture
def student(store: Store) -> Profile:
    return store.add_profile("Asha Rao", roll_number="21CS101")


@pytest.fixture
def other_student(store: Store) -> Profile:
    return store.add_profile("Ben Kumar", roll_number="21CS102")


@pytest.fixture
def make_gateway():
    return FakePaymentGateway
