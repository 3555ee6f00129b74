from datetime import datetime, timedelta, timezone

import pytest

from salon_booking.security_utils import check_password_strength, mask_email
from salon_booking.shared.validators import (
    validate_email,
    validate_future_datetime,
    validate_phone,
)
from salon_booking.utils.sanitization import sanitize_notes


def test_validate_email_normalises_case():
    assert validate_email("  Jane.Doe@Example.COM ") == "jane.doe@example.com"


@pytest.mark.parametrize("email", ["jane", "jane@", "jane@example", "@example.com"])
def test_validate_email_rejects_malformed(email):
    with pytest.raises(ValueError):
        validate_email(email)


@pytest.mark.parametrize("phone", ["07700 900123", "+44 (0)7700-900123", "555.123.4567"])
def test_validate_phone_accepts_common_formats(phone):
    assert validate_phone(f" {phone} ") == phone


@pytest.mark.parametrize("phone", ["123456789", "+1 555 CALL NOW", "1" * 21, "(((--)))---..."])
def test_validate_phone_rejects(phone):
    with pytest.raises(ValueError):
        validate_phone(phone)


def test_validate_future_datetime_converts_to_naive_utc():
    aware = datetime.now(timezone(timedelta(hours=-5))) + timedelta(days=1)

    result = validate_future_datetime(aware)

    assert result.tzinfo is None
    assert result == aware.astimezone(timezone.utc).replace(tzinfo=None)


def test_validate_future_datetime_rejects_past():
    with pytest.raises(ValueError, match="future"):
        validate_future_datetime(datetime(2000, 1, 1))


def test_sanitize_notes():
    assert sanitize_notes("   ") is None
    assert sanitize_notes("Fringe\x00 only <please>") == "Fringe only &lt;please&gt;"
    with pytest.raises(ValueError):
        sanitize_notes("x" * 11, max_length=10)


def test_password_strength():
    assert check_password_strength("password")["is_valid"] is False
    assert check_password_strength("Salon-Pass-2024!")["strength"] == "strong"


def test_mask_email():
    assert mask_email("rhiannon@hairbyrhi.com") == "rh***@ha***.com"
    assert mask_email("broken") == "***@***.***"
