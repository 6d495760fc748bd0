from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    STUDENT = "student"
    ADMIN = "admin"


class PaymentStatus(str, Enum):
    """Payment state of an event registration."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    UPI = "upi"
    CARD = "card"
    NETBANKING = "netbanking"
    SPOT = "spot"


class StoreBackend(str, Enum):
    """Which repository implementation the container wires up."""

    SUPABASE = "supabase"
    MYSQL = "mysql"
    MEMORY = "memory"


class ResultCode(str, Enum):
    """Outcome category of a data service operation."""

    OK = "ok"
    INVALID = "invalid"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    PAYMENT_FAILED = "payment_failed"
    UNAVAILABLE = "unavailable"
