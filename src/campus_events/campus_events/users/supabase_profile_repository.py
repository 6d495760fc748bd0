from __future__ import annotations

from typing import Optional

from supabase import Client

from ..core.enums import Role
from ..database.supabase_base import execute, rows
from .model import Profile
from .repository import ProfileRepository

_PROFILE_FIELDS = {"name", "email", "roll_number", "mobile_number", "otp_enabled", "avatar_url"}


def row_to_profile(row: dict) -> Profile:
    return Profile(
        id=str(row["id"]),
        name=row.get("name") or "",
        email=row.get("email") or "",
        role=Role(row.get("role") or Role.STUDENT.value),
        roll_number=row.get("roll_number"),
        mobile_number=row.get("mobile_number"),
        otp_enabled=bool(row.get("otp_enabled", False)),
        avatar_url=row.get("avatar_url"),
    )


class SupabaseProfileRepository(ProfileRepository):
    def __init__(self, client: Client):
        self._client = client

    def _first(self, query) -> Optional[Profile]:
        data = rows(execute(query.limit(1)))
        return row_to_profile(data[0]) if data else None

    def get_by_id(self, user_id: str) -> Optional[Profile]:
        return self._first(self._client.table("profiles").select("*").eq("id", user_id))

    def get_by_email(self, email: str, *, role: Optional[Role] = None) -> Optional[Profile]:
        query = self._client.table("profiles").select("*").eq("email", (email or "").strip().lower())
        if role is not None:
            query = query.eq("role", role.value)
        return self._first(query)

    def get_by_roll_number(self, roll_number: str) -> Optional[Profile]:
        return self._first(self._client.table("profiles").select("*").eq("roll_number", roll_number))

    def create(self, profile: Profile) -> str:
        payload = {
            "id": profile.id,
            "email": profile.email,
            "name": profile.name,
            "role": profile.role.value,
            "roll_number": profile.roll_number,
            "mobile_number": profile.mobile_number,
            "otp_enabled": profile.otp_enabled,
            "avatar_url": profile.avatar_url,
        }
        execute(self._client.table("profiles").insert(payload))
        return profile.id

    def update(self, user_id: str, changes: dict) -> bool:
        payload = {k: v for k, v in changes.items() if k in _PROFILE_FIELDS}
        if not payload:
            return self.get_by_id(user_id) is not None
        data = rows(execute(self._client.table("profiles").update(payload).eq("id", user_id)))
        return bool(data)
