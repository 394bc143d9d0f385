import uuid
from datetime import date, datetime

import pytest

from billia.errors import ValidationError
from billia.utils.validation import (
    validate_date,
    validate_day_of_month,
    validate_email,
    validate_length,
    validate_positive_integer,
    validate_required,
    validate_uuid,
)


def test_validate_required_strips_and_rejects_blank():
    assert validate_required("  Acme  ", "Name") == "Acme"
    with pytest.raises(ValidationError, match="Name is required"):
        validate_required("   ", "Name")
    with pytest.raises(ValidationError):
        validate_required(None, "Name")


def test_validate_length():
    validate_length("a" * 100, 100, "Name")
    validate_length(None, 100, "Name")
    with pytest.raises(ValidationError, match="at most 100"):
        validate_length("a" * 101, 100, "Name")


@pytest.mark.parametrize("email", ["a@b.co", "first.last@example.jp"])
def test_validate_email_accepts(email):
    validate_email(email)


@pytest.mark.parametrize("email", ["", "no-at-sign", "a@b", "a b@c.com"])
def test_validate_email_rejects(email):
    with pytest.raises(ValidationError):
        validate_email(email)


def test_validate_positive_integer():
    assert validate_positive_integer(5, "Amount") == 5
    for bad in (0, -1, 1.5, "3", True):
        with pytest.raises(ValidationError):
            validate_positive_integer(bad, "Amount")


def test_validate_date_accepts_several_shapes():
    assert validate_date("2024-05-01", "Date") == date(2024, 5, 1)
    assert validate_date("2024-05-01T10:00:00Z", "Date") == date(2024, 5, 1)
    assert validate_date(datetime(2024, 5, 1, 9, 30), "Date") == date(2024, 5, 1)
    with pytest.raises(ValidationError):
        validate_date("not a date", "Date")
    with pytest.raises(ValidationError):
        validate_date("", "Date")


def test_validate_uuid():
    value = uuid.uuid4()
    assert validate_uuid(str(value), "id") == value
    with pytest.raises(ValidationError, match="valid UUID"):
        validate_uuid("abc", "tenant_id")


def test_validate_day_of_month():
    assert validate_day_of_month(None, "Day") is None
    assert validate_day_of_month(31, "Day") == 31
    with pytest.raises(ValidationError):
        validate_day_of_month(0, "Day")
    with pytest.raises(ValidationError):
        validate_day_of_month(32, "Day")
