from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Profile:
    """Domain entity: identity record of a student or an admin.

    Note: plain data object (no store access code).
    """

    id: str
    name: str
    email: str
    role: Role
    roll_number: Optional[str] = None
    mobile_number: Optional[str] = None
    otp_enabled: bool = False
    avatar_url: Optional[str] = None


@dataclass(frozen=True)
class CurrentUser:
    """What the session exposes to the data service."""

    id: str
    role: Role
    name: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @classmethod
    def from_profile(cls, profile: Profile) -> "CurrentUser":
        return cls(id=profile.id, role=profile.role, name=profile.name)
