from __future__ import annotations

import logging
import uuid
from typing import Protocol

from supabase import AuthError, Client
from werkzeug.security import check_password_hash, generate_password_hash

from ..core.exceptions import AuthenticationError, ConflictError
from .repository import CredentialRepository

logger = logging.getLogger(__name__)


class IdentityProvider(Protocol):
    """Email/password accounts; profiles live in ``ProfileRepository``."""

    def sign_up(self, email: str, password: str) -> str:
        """Create an account and return its user id."""

        raise NotImplementedError

    def sign_in(self, email: str, password: str) -> str:
        """Return the user id for valid credentials, else raise ``AuthenticationError``."""

        raise NotImplementedError

    def sign_out(self) -> None:
        raise NotImplementedError


class LocalIdentityProvider(IdentityProvider):
    """Password hashes kept next to the profiles (MySQL / memory backends)."""

    def __init__(self, credentials: CredentialRepository):
        self._credentials = credentials

    def sign_up(self, email: str, password: str) -> str:
        if self._credentials.get_credentials(email):
            raise ConflictError("An account with this email already exists")
        user_id = str(uuid.uuid4())
        self._credentials.save_credentials(
            user_id=user_id,
            email=email,
            password_hash=generate_password_hash(password),
        )
        return user_id

    def sign_in(self, email: str, password: str) -> str:
        found = self._credentials.get_credentials(email)
        if not found:
            raise AuthenticationError("Login failed. Please check your credentials.")
        user_id, password_hash = found
        try:
            ok = check_password_hash(password_hash, password)
        except ValueError:
            # placeholder or corrupted hash
            ok = False
        if not ok:
            raise AuthenticationError("Login failed. Please check your credentials.")
        return user_id

    def sign_out(self) -> None:
        return None


class SupabaseIdentityProvider(IdentityProvider):
    def __init__(self, client: Client):
        self._client = client

    def sign_up(self, email: str, password: str) -> str:
        try:
            response = self._client.auth.sign_up({"email": email, "password": password})
        except AuthError as exc:
            logger.warning("Supabase sign-up failed for %s: %s", email, exc)
            raise AuthenticationError("Registration failed. Please try again.") from exc
        if not response.user:
            raise AuthenticationError("Registration failed. Please try again.")
        return str(response.user.id)

    def sign_in(self, email: str, password: str) -> str:
        try:
            response = self._client.auth.sign_in_with_password({"email": email, "password": password})
        except AuthError as exc:
            raise AuthenticationError("Login failed. Please check your credentials.") from exc
        if not response.user:
            raise AuthenticationError("Login failed. Please check your credentials.")
        return str(response.user.id)

    def sign_out(self) -> None:
        try:
            self._client.auth.sign_out()
        except AuthError as exc:
            logger.error("Logout error: %s", exc)
