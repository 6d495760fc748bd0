from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from werkzeug.security import generate_password_hash

from ..core.enums import Role
from ..events.model import EventDraft
from ..events.repository import EventRepository
from ..food_stalls.model import FoodStallDraft, MenuItem, ReviewDraft
from ..food_stalls.repository import FoodStallRepository
from ..users.model import Profile
from ..users.repository import CredentialRepository, ProfileRepository

logger = logging.getLogger(__name__)

DEMO_ADMIN_EMAIL = "admin@campus.edu"
DEMO_ADMIN_PASSWORD = "admin123"
DEMO_STUDENT_EMAIL = "student@campus.edu"
DEMO_STUDENT_ROLL = "21CS001"
DEMO_STUDENT_PASSWORD = "student123"

DEMO_EVENTS = (
    EventDraft(
        title="Tech Symposium 2024",
        description="Annual technology symposium featuring latest innovations",
        date="2024-12-15",
        time="09:00",
        location="Main Auditorium",
        department="Computer Science",
        max_seats=200,
        price=100.0,
        image_url="https://images.pexels.com/photos/1181671/pexels-photo-1181671.jpeg",
    ),
    EventDraft(
        title="Cultural Fest",
        description="Annual cultural festival with performances and competitions",
        date="2024-12-20",
        time="18:00",
        location="Cultural Center",
        department="Cultural Committee",
        max_seats=500,
        price=50.0,
        image_url="https://images.pexels.com/photos/1190297/pexels-photo-1190297.jpeg",
    ),
)

DEMO_STALLS = (
    FoodStallDraft(
        name="Campus Cafe",
        description="Fresh coffee and light snacks",
        menu=(MenuItem("Coffee", 25.0), MenuItem("Sandwich", 80.0), MenuItem("Pastry", 45.0)),
        location="Main Campus",
        image_url="https://images.pexels.com/photos/302899/pexels-photo-302899.jpeg",
    ),
    FoodStallDraft(
        name="Pizza Corner",
        description="Freshly made pizzas and Italian dishes",
        menu=(MenuItem("Margherita Pizza", 120.0), MenuItem("Pepperoni Pizza", 150.0), MenuItem("Garlic Bread", 60.0)),
        location="Food Court",
        image_url="https://images.pexels.com/photos/1566837/pexels-photo-1566837.jpeg",
    ),
)

# (stall name, rating, comment) left by the demo student.
DEMO_REVIEWS = (
    ("Campus Cafe", 4, "Good coffee, quick service"),
    ("Pizza Corner", 5, "Best garlic bread on campus"),
)


@dataclass(frozen=True)
class SeedSummary:
    admin_id: str
    student_id: str
    events_created: int
    stalls_created: int


def _ensure_user(
    profiles: ProfileRepository,
    credentials: CredentialRepository,
    *,
    name: str,
    email: str,
    password: str,
    role: Role,
    roll_number: str | None = None,
) -> str:
    existing = profiles.get_by_email(email, role=role)
    if existing:
        user_id = existing.id
    else:
        user_id = profiles.create(
            Profile(id=str(uuid.uuid4()), name=name, email=email, role=role, roll_number=roll_number)
        )
    credentials.save_credentials(user_id=user_id, email=email, password_hash=generate_password_hash(password))
    return user_id


def seed_demo_data(
    *,
    profiles: ProfileRepository,
    credentials: CredentialRepository,
    events: EventRepository,
    food_stalls: FoodStallRepository,
) -> SeedSummary:
    """Insert demo users, events, stalls and reviews. Safe to run twice."""

    admin_id = _ensure_user(
        profiles,
        credentials,
        name="Admin Demo",
        email=DEMO_ADMIN_EMAIL,
        password=DEMO_ADMIN_PASSWORD,
        role=Role.ADMIN,
    )
    student_id = _ensure_user(
        profiles,
        credentials,
        name="Student Demo",
        email=DEMO_STUDENT_EMAIL,
        password=DEMO_STUDENT_PASSWORD,
        role=Role.STUDENT,
        roll_number=DEMO_STUDENT_ROLL,
    )

    known_titles = {e.title for e in events.list_with_counts()}
    events_created = 0
    for draft in DEMO_EVENTS:
        if draft.title not in known_titles:
            events.create(draft, created_by=admin_id)
            events_created += 1

    stall_ids = {s.name: s.id for s in food_stalls.list_with_reviews(active_only=False)}
    stalls_created = 0
    for draft in DEMO_STALLS:
        if draft.name not in stall_ids:
            stall_ids[draft.name] = food_stalls.create(draft)
            stalls_created += 1

    for stall_name, rating, comment in DEMO_REVIEWS:
        stall_id = stall_ids[stall_name]
        if food_stalls.find_review(stall_id, student_id) is None:
            food_stalls.create_review(stall_id, ReviewDraft(student_id, rating, comment))

    logger.info("Demo data ready (events +%d, stalls +%d)", events_created, stalls_created)
    return SeedSummary(admin_id, student_id, events_created, stalls_created)
