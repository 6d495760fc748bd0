from __future__ import annotations

from datetime import date, time, timedelta

import httpx
import mysql.connector
import pytest
from mysql.connector import errorcode
from postgrest.exceptions import APIError

from campus_events.core.exceptions import CapacityError, ConflictError, StoreError, TableMissingError
from campus_events.database.mysql_base import (
    format_hhmm,
    format_iso_date,
    load_json,
    normalize_mysql_time,
    translate_mysql_error,
)
from campus_events.database.supabase_base import execute, is_offline_config, rows, translate_api_error


class FakeQuery:
    def __init__(self, *, data=None, error=None):
        self._data = data
        self._error = error

    def execute(self):
        if self._error is not None:
            raise self._error
        return type("Response", (), {"data": self._data})()


@pytest.mark.parametrize(
    "code, message, expected",
    [
        ("42P01", 'relation "public.events" does not exist', TableMissingError),
        ("PGRST205", "Could not find the table 'public.food_stalls'", TableMissingError),
        ("23505", "duplicate key value violates unique constraint", ConflictError),
        ("P0001", "event is fully booked", CapacityError),
        ("P0001", "some other trigger", StoreError),
        ("08006", "connection failure", StoreError),
    ],
)
def test_translate_api_error(code, message, expected):
    translated = translate_api_error(APIError({"code": code, "message": message}))

    assert type(translated) is expected


def test_execute_translates_api_error():
    query = FakeQuery(error=APIError({"code": "23505", "message": "duplicate key"}))

    with pytest.raises(ConflictError):
        execute(query)


def test_execute_translates_network_error():
    query = FakeQuery(error=httpx.ConnectError("connection refused"))

    with pytest.raises(StoreError, match="Supabase request failed"):
        execute(query)


def test_rows_normalizes_response_shapes():
    assert rows(execute(FakeQuery(data=[{"id": 1}]))) == [{"id": 1}]
    assert rows(execute(FakeQuery(data={"id": 2}))) == [{"id": 2}]
    assert rows(execute(FakeQuery(data=None))) == []


@pytest.mark.parametrize(
    "url, key, offline",
    [
        ("", "key", True),
        ("https://abc.supabase.co", "", True),
        ("https://demo.supabase.co", "key", True),
        ("your_supabase_project_url_here", "key", True),
        ("https://abcd1234.supabase.co", "anon-key", False),
    ],
)
def test_is_offline_config(url, key, offline):
    assert is_offline_config(url, key) is offline


@pytest.mark.parametrize(
    "errno, expected",
    [
        (errorcode.ER_NO_SUCH_TABLE, TableMissingError),
        (errorcode.ER_DUP_ENTRY, ConflictError),
        (errorcode.CR_CONN_HOST_ERROR, StoreError),
    ],
)
def test_translate_mysql_error(errno, expected):
    assert type(translate_mysql_error(mysql.connector.Error(msg="boom", errno=errno))) is expected


@pytest.mark.parametrize(
    "value, expected",
    [
        (time(8, 30), "08:30"),
        (timedelta(hours=18, minutes=5), "18:05"),
        ("09:00:00", "09:00"),
        (None, ""),
    ],
)
def test_format_hhmm(value, expected):
    assert format_hhmm(value) == expected


def test_normalize_mysql_time_rejects_garbage():
    with pytest.raises(ValueError):
        normalize_mysql_time("noon")


def test_format_iso_date_and_json_columns():
    assert format_iso_date(date(2024, 12, 15)) == "2024-12-15"
    assert load_json('[{"item": "Coffee", "price": 25}]') == [{"item": "Coffee", "price": 25}]
    assert load_json(b'{"phone": "123"}') == {"phone": "123"}
    assert load_json({"already": "decoded"}) == {"already": "decoded"}
    assert load_json(None) is None
