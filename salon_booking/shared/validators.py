"""Shared validation utilities"""

import re
from datetime import datetime, timezone
from typing import Optional


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate a contact phone number.

    Accepts local or international formats (digits, spaces, dashes,
    parentheses, optional leading +). The value is stored as entered,
    trimmed, and must be 10-20 characters long with at least 10 digits.

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    phone = phone.strip()

    if not 10 <= len(phone) <= 20:
        raise ValueError("Phone number must be between 10 and 20 characters")

    if not re.match(r"^\+?[\d\s\-().]+$", phone):
        raise ValueError("Phone number contains invalid characters")

    if len(re.sub(r"\D", "", phone)) < 10:
        raise ValueError("Phone number must contain at least 10 digits")

    return phone


def as_naive_utc(value: datetime) -> datetime:
    """Normalise a datetime to naive UTC; naive input is taken to be UTC already"""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def validate_future_datetime(value: datetime) -> datetime:
    """
    Validate that a datetime lies in the future.

    Returns:
        The datetime as naive UTC

    Raises:
        ValueError: If the datetime is not in the future
    """
    value = as_naive_utc(value)
    if value <= datetime.now(timezone.utc).replace(tzinfo=None):
        raise ValueError("Date and time must be in the future")
    return value
