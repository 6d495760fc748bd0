from __future__ import annotations

from typing import Optional

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Profile
from .repository import CredentialRepository, ProfileRepository

_COLUMNS = "id, name, email, role, roll_number, mobile_number, otp_enabled, avatar_url"
_PROFILE_FIELDS = ("name", "email", "roll_number", "mobile_number", "otp_enabled", "avatar_url")


def _row_to_profile(r: dict) -> Profile:
    return Profile(
        id=str(r["id"]),
        name=r["name"],
        email=r["email"],
        role=Role(r["role"]),
        roll_number=r.get("roll_number"),
        mobile_number=r.get("mobile_number"),
        otp_enabled=bool(r.get("otp_enabled")),
        avatar_url=r.get("avatar_url"),
    )


class MySQLProfileRepository(ProfileRepository, CredentialRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _one(self, where: str, params: tuple) -> Optional[Profile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM profiles WHERE {where} LIMIT 1", params)
            r = fetchone(cur)
            return _row_to_profile(r) if r else None

    def get_by_id(self, user_id: str) -> Optional[Profile]:
        return self._one("id=%s", (user_id,))

    def get_by_email(self, email: str, *, role: Optional[Role] = None) -> Optional[Profile]:
        email = (email or "").strip().lower()
        if role is None:
            return self._one("email=%s", (email,))
        return self._one("email=%s AND role=%s", (email, role.value))

    def get_by_roll_number(self, roll_number: str) -> Optional[Profile]:
        return self._one("roll_number=%s", (roll_number,))

    def create(self, profile: Profile) -> str:
        # Duplicate id / roll number -> ConflictError via ER_DUP_ENTRY.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO profiles(id, name, email, role, roll_number, mobile_number, otp_enabled, avatar_url)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    profile.id,
                    profile.name,
                    profile.email.lower(),
                    profile.role.value,
                    profile.roll_number,
                    profile.mobile_number,
                    1 if profile.otp_enabled else 0,
                    profile.avatar_url,
                ),
            )
        return profile.id

    def update(self, user_id: str, changes: dict) -> bool:
        columns = [(k, changes[k]) for k in _PROFILE_FIELDS if k in changes]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id FROM profiles WHERE id=%s FOR UPDATE", (user_id,))
            if not fetchone(cur):
                return False
            if columns:
                assignments = ", ".join(f"{col}=%s" for col, _ in columns)
                cur.execute(
                    f"UPDATE profiles SET {assignments} WHERE id=%s",
                    tuple(v for _, v in columns) + (user_id,),
                )
            return True

    def get_credentials(self, email: str) -> Optional[tuple[str, str]]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT user_id, password_hash FROM credentials WHERE email=%s",
                ((email or "").strip().lower(),),
            )
            r = fetchone(cur)
            return (str(r["user_id"]), r["password_hash"]) if r else None

    def save_credentials(self, *, user_id: str, email: str, password_hash: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO credentials(email, user_id, password_hash) VALUES(%s,%s,%s)
                ON DUPLICATE KEY UPDATE user_id=VALUES(user_id), password_hash=VALUES(password_hash)
                """,
                (email.strip().lower(), user_id, password_hash),
            )
