from __future__ import annotations

import logging
from typing import Optional

from ..common.validators import require_email, require_min_length, require_mobile, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from .identity import IdentityProvider
from .model import Profile
from .repository import ProfileRepository

logger = logging.getLogger(__name__)


class AuthService:
    """Use case: student/admin registration, login and profile edits."""

    def __init__(self, profiles: ProfileRepository, identity: IdentityProvider):
        self._profiles = profiles
        self._identity = identity

    def register_student(
        self,
        *,
        name: str,
        roll_number: str,
        email: str,
        password: str,
        mobile_number: Optional[str] = None,
        enable_otp: bool = False,
    ) -> Profile:
        name = require_non_empty(name, "Name")
        roll_number = require_non_empty(roll_number, "Roll number")
        email = require_email(email)
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        if self._profiles.get_by_roll_number(roll_number):
            raise ValidationError("Roll Number already registered.")
        if enable_otp and not mobile_number:
            raise ValidationError("Mobile number required for OTP login.")
        mobile = require_mobile(mobile_number) if mobile_number else None

        user_id = self._sign_up(email, password)
        profile = Profile(
            id=user_id,
            name=name,
            email=email,
            role=Role.STUDENT,
            roll_number=roll_number,
            mobile_number=mobile,
            otp_enabled=bool(enable_otp),
        )
        self._profiles.create(profile)
        logger.info("Registered student %s (%s)", roll_number, user_id)
        return profile

    def register_admin(
        self,
        *,
        name: str,
        email: str,
        password: str,
        mobile_number: Optional[str] = None,
    ) -> Profile:
        name = require_non_empty(name, "Name")
        email = require_email(email)
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        if self._profiles.get_by_email(email, role=Role.ADMIN):
            raise ValidationError("Admin already exists.")
        mobile = require_mobile(mobile_number) if mobile_number else None

        user_id = self._sign_up(email, password)
        profile = Profile(id=user_id, name=name, email=email, role=Role.ADMIN, mobile_number=mobile)
        self._profiles.create(profile)
        logger.info("Registered admin %s (%s)", email, user_id)
        return profile

    def _sign_up(self, email: str, password: str) -> str:
        try:
            return self._identity.sign_up(email, password)
        except ConflictError as exc:
            raise ValidationError(str(exc)) from exc

    def login_student(self, roll_number: str, password: str) -> Profile:
        if not roll_number or not password:
            raise ValidationError("Roll number and password are required")
        profile = self._profiles.get_by_roll_number(roll_number.strip())
        if not profile or profile.role != Role.STUDENT:
            raise AuthenticationError("Invalid roll number")
        self._check_password(profile, password)
        return profile

    def login_admin(self, email: str, password: str) -> Profile:
        if not email or not password:
            raise ValidationError("All fields are required")
        profile = self._profiles.get_by_email(email, role=Role.ADMIN)
        if not profile:
            raise AuthenticationError("Admin account not found")
        self._check_password(profile, password)
        return profile

    def _check_password(self, profile: Profile, password: str) -> None:
        user_id = self._identity.sign_in(profile.email, password)
        if user_id != profile.id:
            raise AuthenticationError("Login failed. Please check your credentials.")

    def logout(self) -> None:
        self._identity.sign_out()

    def get_profile(self, user_id: str) -> Profile:
        profile = self._profiles.get_by_id(user_id)
        if not profile:
            raise NotFoundError("Profile not found")
        return profile

    def update_profile(
        self,
        user_id: str,
        *,
        name: Optional[str] = None,
        mobile_number: Optional[str] = None,
        otp_enabled: Optional[bool] = None,
        avatar_url: Optional[str] = None,
    ) -> Profile:
        changes: dict = {}
        if name is not None:
            changes["name"] = require_non_empty(name, "Name")
        if mobile_number is not None:
            changes["mobile_number"] = require_mobile(mobile_number) if mobile_number else None
        if otp_enabled is not None:
            changes["otp_enabled"] = bool(otp_enabled)
        if avatar_url is not None:
            changes["avatar_url"] = avatar_url or None

        current = self.get_profile(user_id)
        if changes.get("otp_enabled") and not changes.get("mobile_number", current.mobile_number):
            raise ValidationError("Mobile number required for OTP login.")
        if not self._profiles.update(user_id, changes):
            raise NotFoundError("Profile not found")
        return self.get_profile(user_id)

    def enable_otp_login(self, user_id: str, mobile_number: str) -> Profile:
        return self.update_profile(user_id, mobile_number=require_mobile(mobile_number), otp_enabled=True)
