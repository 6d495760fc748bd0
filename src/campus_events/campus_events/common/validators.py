from __future__ import annotations

import math
import re
from datetime import datetime

from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_MOBILE_RE = re.compile(r"^[0-9]{10}$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_email(value: str) -> str:
    value = require_non_empty(value, "Email")
    if not _EMAIL_RE.match(value):
        raise ValidationError("Invalid email format")
    return value.lower()


def require_mobile(value: str) -> str:
    digits = re.sub(r"\D", "", value or "")
    if not _MOBILE_RE.match(digits):
        raise ValidationError("Please enter a valid 10-digit mobile number")
    return digits


def require_int_range(value, field_name: str, low: int, high: int | None = None) -> int:
    # bool is an int subclass; a checkbox value is never a valid count/rating.
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a whole number")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a whole number")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"{field_name} must be a whole number")
    if number < low or (high is not None and number > high):
        bound = f"between {low} and {high}" if high is not None else f"at least {low}"
        raise ValidationError(f"{field_name} must be {bound}")
    return number


def require_non_negative_number(value, field_name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not math.isfinite(number):
        raise ValidationError(f"{field_name} must be a number")
    if number < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return number


def require_iso_date(value: str, field_name: str = "Date") -> str:
    value = require_non_empty(value, field_name)
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise ValidationError(f"{field_name} must be YYYY-MM-DD")
    return value


def require_hhmm(value: str, field_name: str = "Time") -> str:
    value = require_non_empty(value, field_name)
    try:
        parsed = datetime.strptime(value[:5], "%H:%M")
    except ValueError:
        raise ValidationError(f"{field_name} must be HH:MM")
    return parsed.strftime("%H:%M")
