"""Shared utilities used across the booking engine."""

import re
from datetime import date, datetime, time
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

MINUTES_PER_DAY = 24 * 60


def time_str_to_minutes(value: str) -> int:
    """Convert an ``HH:MM`` string to minutes from midnight.

    ``24:00`` is accepted as end-of-day.

    Examples:
        >>> time_str_to_minutes("09:30")
        570
        >>> time_str_to_minutes("24:00")
        1440
    """
    hours, _, minutes = value.strip().partition(":")
    total = int(hours) * 60 + int(minutes or 0)
    if not 0 <= total <= MINUTES_PER_DAY:
        raise ValueError(f"Time of day out of range: {value!r}")
    return total


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes from midnight to an ``HH:MM`` string.

    Examples:
        >>> minutes_to_time_str(570)
        '09:30'
    """
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def minute_of_day(moment: datetime) -> int:
    return moment.hour * 60 + moment.minute


def day_of_week(day: date) -> int:
    """Day-of-week with Sunday = 0 through Saturday = 6."""
    return (day.weekday() + 1) % 7


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Return ``(start, end)`` datetimes covering a calendar day inclusively."""
    return datetime.combine(day, time.min), datetime.combine(day, time.max)


def normalize_email(value: str) -> str:
    return value.strip().lower()


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value))


def clean_optional(value: Optional[str]) -> Optional[str]:
    """Strip a free-text value, mapping blank input to None."""
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def split_name(full_name: str) -> tuple[str, Optional[str]]:
    """Split a display name into first name and the remainder.

    Examples:
        >>> split_name("Ada  King Lovelace")
        ('Ada', 'King Lovelace')
        >>> split_name("Cher")
        ('Cher', None)
    """
    parts = full_name.strip().split()
    first = parts[0] if parts else ""
    last = " ".join(parts[1:]) or None
    return first, last
