from __future__ import annotations

import uuid
from collections import defaultdict
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json
from .model import STALL_COLUMNS, FoodStall, FoodStallDraft, MenuItem, Review, ReviewDraft
from .repository import FoodStallRepository

_STALL_COLUMNS = "id, name, description, image_url, menu, location, contact_info, is_active"

_REVIEW_SELECT = """
    SELECT r.id, r.stall_id, r.user_id, r.rating, r.comment, r.created_at, p.name AS user_name
    FROM stall_reviews r
    LEFT JOIN profiles p ON p.id = r.user_id
"""


def _row_to_review(r: dict) -> Review:
    return Review(
        id=str(r["id"]),
        stall_id=str(r["stall_id"]),
        user_id=str(r["user_id"]),
        rating=int(r["rating"]),
        comment=r.get("comment") or "",
        user_name=r.get("user_name") or "Anonymous",
        created_at=r.get("created_at"),
    )


def _row_to_stall(r: dict, reviews: Sequence[Review] = ()) -> FoodStall:
    return FoodStall(
        id=str(r["id"]),
        name=r["name"],
        description=r.get("description") or "",
        menu=tuple(MenuItem.from_dict(m) for m in load_json(r.get("menu")) or []),
        location=r.get("location"),
        image_url=r.get("image_url"),
        contact_info=load_json(r.get("contact_info")),
        is_active=bool(r.get("is_active")),
        reviews=tuple(reviews),
    )


def _encode(column: str, value):
    if column == "menu":
        return dump_json([m.to_dict() if isinstance(m, MenuItem) else dict(m) for m in value or []])
    if column == "contact_info":
        return dump_json(value)
    if column == "is_active":
        return 1 if value else 0
    return value


class MySQLFoodStallRepository(FoodStallRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_with_reviews(self, *, active_only: bool = True) -> Sequence[FoodStall]:
        where = " WHERE is_active=1" if active_only else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_STALL_COLUMNS} FROM food_stalls{where} ORDER BY name ASC")
            stalls = fetchall(cur)
            cur.execute(_REVIEW_SELECT + " ORDER BY r.created_at ASC")
            by_stall: dict[str, list[Review]] = defaultdict(list)
            for r in fetchall(cur):
                review = _row_to_review(r)
                by_stall[review.stall_id].append(review)
        return [_row_to_stall(s, by_stall.get(str(s["id"]), ())) for s in stalls]

    def get_by_id(self, stall_id: str) -> Optional[FoodStall]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_STALL_COLUMNS} FROM food_stalls WHERE id=%s", (stall_id,))
            stall = fetchone(cur)
            if not stall:
                return None
            cur.execute(_REVIEW_SELECT + " WHERE r.stall_id=%s ORDER BY r.created_at ASC", (stall_id,))
            reviews = [_row_to_review(r) for r in fetchall(cur)]
        return _row_to_stall(stall, reviews)

    def create(self, draft: FoodStallDraft) -> str:
        stall_id = str(uuid.uuid4())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO food_stalls(id, name, description, image_url, menu, location, contact_info, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    stall_id,
                    draft.name,
                    draft.description,
                    draft.image_url,
                    _encode("menu", draft.menu),
                    draft.location,
                    _encode("contact_info", draft.contact_info),
                    _encode("is_active", draft.is_active),
                ),
            )
        return stall_id

    def update(self, stall_id: str, changes: dict) -> bool:
        columns = [(STALL_COLUMNS[k], _encode(STALL_COLUMNS[k], v)) for k, v in changes.items() if k in STALL_COLUMNS]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id FROM food_stalls WHERE id=%s FOR UPDATE", (stall_id,))
            if not fetchone(cur):
                return False
            if columns:
                assignments = ", ".join(f"{col}=%s" for col, _ in columns)
                cur.execute(
                    f"UPDATE food_stalls SET {assignments} WHERE id=%s",
                    tuple(v for _, v in columns) + (stall_id,),
                )
            return True

    def find_review(self, stall_id: str, user_id: str) -> Optional[Review]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_REVIEW_SELECT + " WHERE r.stall_id=%s AND r.user_id=%s", (stall_id, user_id))
            r = fetchone(cur)
            return _row_to_review(r) if r else None

    def create_review(self, stall_id: str, review: ReviewDraft) -> str:
        review_id = str(uuid.uuid4())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO stall_reviews(id, stall_id, user_id, rating, comment) VALUES(%s,%s,%s,%s,%s)",
                (review_id, stall_id, review.user_id, int(review.rating), review.comment or None),
            )
        return review_id
