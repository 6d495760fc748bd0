from __future__ import annotations

import logging
from typing import Any, List

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from ..core.constants import OFFLINE_URL_MARKERS
from ..core.exceptions import CapacityError, ConflictError, StoreError, TableMissingError

logger = logging.getLogger(__name__)

# Postgres undefined_table, and PostgREST "table not in schema cache".
_MISSING_TABLE_CODES = {"42P01", "PGRST205"}
_UNIQUE_VIOLATION = "23505"
_RAISE_EXCEPTION = "P0001"


def is_offline_config(url: str | None, key: str | None) -> bool:
    """True when no real Supabase project is configured."""

    if not url or not key:
        return True
    return any(marker in url for marker in OFFLINE_URL_MARKERS)


def build_supabase_client(url: str, key: str) -> Client:
    return create_client(url, key)


def translate_api_error(exc: APIError) -> Exception:
    code = str(getattr(exc, "code", "") or "")
    message = str(getattr(exc, "message", "") or exc)

    if code in _MISSING_TABLE_CODES:
        return TableMissingError(message)
    if code == _UNIQUE_VIOLATION:
        return ConflictError(message)
    # Raised by the capacity trigger in database/supabase_schema.sql.
    if code == _RAISE_EXCEPTION and "fully booked" in message.lower():
        return CapacityError(message)
    return StoreError(message)


def execute(query) -> Any:
    """Run a PostgREST query builder, translating failures to store errors."""

    try:
        return query.execute()
    except APIError as exc:
        raise translate_api_error(exc) from exc
    except httpx.HTTPError as exc:
        raise StoreError(f"Supabase request failed: {exc}") from exc


def rows(response) -> List[dict]:
    data = getattr(response, "data", None)
    if not data:
        return []
    if isinstance(data, dict):
        return [data]
    return list(data)
