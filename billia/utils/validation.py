"""Input validation helpers shared by repositories and routers."""
from __future__ import annotations

import re
import uuid
from datetime import date, datetime
from typing import Optional

from billia.errors import ValidationError

MAX_LENGTHS = {
    "name": 100,
    "name_kana": 100,
    "email": 255,
    "address": 500,
    "phone_number": 20,
    "invoice_reg_number": 20,
    "company_name": 100,
    "title": 200,
    "category": 50,
    "note": 1000,
}

MAX_PAYMENT_AMOUNT = 1_000_000_000

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def validate_required(value: Optional[str], field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def validate_length(value: Optional[str], max_length: int, field_name: str) -> None:
    if value and len(value) > max_length:
        raise ValidationError(f"{field_name} must be at most {max_length} characters")


def validate_email(email: str) -> None:
    if not _EMAIL_RE.match(email or ""):
        raise ValidationError("A valid email address is required")


def validate_positive_integer(value, field_name: str) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{field_name} must be a positive integer")
    return value


def validate_date(value, field_name: str) -> date:
    """Accept a date, a datetime or an ISO formatted string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        raise ValidationError(f"{field_name} must be a valid date")
    raw = str(value).strip()
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        try:
            return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
        except ValueError:
            raise ValidationError(f"{field_name} must be a valid date") from None


def validate_uuid(value, field_name: str) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a valid UUID") from None


def validate_day_of_month(value: Optional[int], field_name: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 31:
        raise ValidationError(f"{field_name} must be between 1 and 31")
    return value
