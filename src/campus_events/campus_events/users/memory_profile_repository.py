from __future__ import annotations

from dataclasses import replace
from typing import Optional

from ..core.enums import Role
from ..core.exceptions import ConflictError
from ..database.memory import MemoryDatabase
from .model import Profile
from .repository import CredentialRepository, ProfileRepository

_PROFILE_FIELDS = {"name", "email", "roll_number", "mobile_number", "otp_enabled", "avatar_url"}


class InMemoryProfileRepository(ProfileRepository, CredentialRepository):
    def __init__(self, db: MemoryDatabase):
        self._db = db

    def get_by_id(self, user_id: str) -> Optional[Profile]:
        with self._db.table("profiles") as profiles:
            return profiles.get(user_id)

    def get_by_email(self, email: str, *, role: Optional[Role] = None) -> Optional[Profile]:
        email = (email or "").strip().lower()
        with self._db.table("profiles") as profiles:
            for p in profiles.values():
                if p.email.lower() == email and (role is None or p.role == role):
                    return p
        return None

    def get_by_roll_number(self, roll_number: str) -> Optional[Profile]:
        with self._db.table("profiles") as profiles:
            for p in profiles.values():
                if p.roll_number and p.roll_number == roll_number:
                    return p
        return None

    def create(self, profile: Profile) -> str:
        with self._db.table("profiles") as profiles:
            if profile.id in profiles:
                raise ConflictError(f"profile {profile.id} already exists")
            if profile.roll_number and any(p.roll_number == profile.roll_number for p in profiles.values()):
                raise ConflictError(f"roll number {profile.roll_number} already registered")
            profiles[profile.id] = profile
            return profile.id

    def update(self, user_id: str, changes: dict) -> bool:
        fields = {k: v for k, v in changes.items() if k in _PROFILE_FIELDS}
        with self._db.table("profiles") as profiles:
            current = profiles.get(user_id)
            if not current:
                return False
            profiles[user_id] = replace(current, **fields)
            return True

    def get_credentials(self, email: str) -> Optional[tuple[str, str]]:
        with self._db.table("credentials") as creds:
            row = creds.get((email or "").strip().lower())
            return (row["user_id"], row["password_hash"]) if row else None

    def save_credentials(self, *, user_id: str, email: str, password_hash: str) -> None:
        with self._db.table("credentials") as creds:
            creds[email.strip().lower()] = {"user_id": user_id, "password_hash": password_hash}
