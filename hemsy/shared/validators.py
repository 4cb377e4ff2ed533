"""Shared validation utilities"""

import re
import uuid
from datetime import date, datetime
from typing import Optional

EMAIL_PATTERN = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


def validate_uuid(value: str) -> bool:
    """Validate UUID format"""
    try:
        uuid.UUID(value)
        return True
    except (ValueError, AttributeError, TypeError):
        return False


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

    if not re.match(EMAIL_PATTERN, email):
        raise ValueError("Invalid email format")

    return email


def validate_time(value: str) -> str:
    """Validate a 24h HH:MM time string; accepts HH:MM:SS and truncates seconds"""
    if value and len(value) == 8 and value[5] == ":":
        value = value[:5]
    if not value or not re.match(TIME_PATTERN, value):
        raise ValueError("Invalid time format, expected HH:MM")
    return value


def validate_time_range(start_time: str, end_time: str) -> None:
    if start_time >= end_time:
        raise ValueError("End time must be after start time")


def parse_date(value) -> date:
    """Parse a YYYY-MM-DD string (or pass a date through)"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError) as e:
        raise ValueError("Invalid date format, expected YYYY-MM-DD") from e
