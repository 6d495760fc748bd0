from __future__ import annotations

from pathlib import Path

from campus_events.database.bootstrap import _iter_sql_statements, _strip_create_db_and_use, _strip_line_comments
from campus_events.events.supabase_event_repository import row_to_event
from campus_events.food_stalls.supabase_food_stall_repository import row_to_stall

SCHEMA = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def test_splitter_ignores_semicolons_in_quotes():
    sql = "INSERT INTO t VALUES ('a;b');\nINSERT INTO t VALUES (\"c;d\");\n  ;"

    assert list(_iter_sql_statements(sql)) == [
        "INSERT INTO t VALUES ('a;b')",
        'INSERT INTO t VALUES ("c;d")',
    ]


def test_schema_statements_skip_database_selection():
    sql = _strip_line_comments(_strip_create_db_and_use(SCHEMA.read_text(encoding="utf-8")))

    statements = list(_iter_sql_statements(sql))

    assert len(statements) == 7
    assert all(s.upper().startswith("CREATE TABLE") for s in statements)


def test_event_row_uses_embedded_count():
    event = row_to_event(
        {
            "id": "e1",
            "title": "Cultural Fest",
            "date": "2024-12-20",
            "time": "18:00:00",
            "location": "Cultural Center",
            "department": "Cultural Committee",
            "max_seats": 500,
            "price": "50.00",
            "event_registrations": [{"count": 12}],
        }
    )

    assert (event.time, event.price, event.registered_count, event.seats_left) == ("18:00", 50.0, 12, 488)


def test_event_row_without_registrations():
    event = row_to_event({"id": "e2", "title": "Talk", "max_seats": 10, "event_registrations": []})

    assert event.registered_count == 0


def test_stall_row_with_reviews():
    stall = row_to_stall(
        {
            "id": "s1",
            "name": "Pizza Corner",
            "description": "Pizza",
            "menu": [{"item": "Margherita", "price": 150}],
            "is_active": True,
            "stall_reviews": [
                {"id": "r1", "user_id": "u1", "rating": 5, "comment": "Great", "profiles": {"name": "Asha"}},
                {"id": "r2", "user_id": "u2", "rating": 4, "comment": "", "profiles": None},
            ],
        }
    )

    assert (stall.rating, stall.review_count) == (4.5, 2)
    assert stall.menu[0].item == "Margherita"
    assert [r.user_name for r in stall.reviews] == ["Asha", "Anonymous"]
