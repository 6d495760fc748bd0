from __future__ import annotations

from typing import Optional, Protocol

from ..core.enums import Role
from .model import Profile


class ProfileRepository(Protocol):
    """Repository interface for profiles.

    Note (DIP): services depend on this interface, never on a concrete store.
    """

    def get_by_id(self, user_id: str) -> Optional[Profile]:
        raise NotImplementedError

    def get_by_email(self, email: str, *, role: Optional[Role] = None) -> Optional[Profile]:
        raise NotImplementedError

    def get_by_roll_number(self, roll_number: str) -> Optional[Profile]:
        raise NotImplementedError

    def create(self, profile: Profile) -> str:
        raise NotImplementedError

    def update(self, user_id: str, changes: dict) -> bool:
        """Apply a partial update (store column names as keys)."""

        raise NotImplementedError


class CredentialRepository(Protocol):
    """Password hashes for the local identity provider (MySQL / memory)."""

    def get_credentials(self, email: str) -> Optional[tuple[str, str]]:
        """Return (user_id, password_hash) for an email, if any."""

        raise NotImplementedError

    def save_credentials(self, *, user_id: str, email: str, password_hash: str) -> None:
        raise NotImplementedError
