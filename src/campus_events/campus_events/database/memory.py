from __future__ import annotations

import threading
import uuid
from contextlib import contextmanager
from typing import Iterator

from ..core.exceptions import TableMissingError

TABLES = (
    "profiles",
    "credentials",
    "events",
    "event_registrations",
    "attendance",
    "food_stalls",
    "stall_reviews",
)


class MemoryDatabase:
    """In-process store used for offline/demo mode and tests.

    Every repository call takes ``lock`` for its whole read-check-write
    sequence, which makes this store the single authoritative writer:
    capacity and uniqueness checks cannot interleave.
    """

    def __init__(self):
        self.lock = threading.RLock()
        self.tables: dict[str, dict] = {name: {} for name in TABLES}
        self.missing_tables: set[str] = set()

    @staticmethod
    def new_id() -> str:
        return str(uuid.uuid4())

    def drop_table(self, name: str) -> None:
        """Simulate an unprovisioned table (every access raises)."""

        with self.lock:
            self.missing_tables.add(name)
            self.tables[name] = {}

    def restore_table(self, name: str) -> None:
        with self.lock:
            self.missing_tables.discard(name)

    @contextmanager
    def table(self, name: str) -> Iterator[dict]:
        with self.lock:
            if name in self.missing_tables:
                raise TableMissingError(f"relation \"{name}\" does not exist")
            yield self.tables[name]
