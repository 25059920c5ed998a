from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Tuple, Union

from ..core.exceptions import ValidationError

DateInput = Union[str, date, datetime]

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_iso_date(value: str) -> date:
    """Parse a zero-padded YYYY-MM-DD string into date."""
    if not _ISO_DATE.match(value):
        raise ValueError(f"not a YYYY-MM-DD date: {value!r}")
    return date.fromisoformat(value)


def calendar_day(value: DateInput) -> date:
    """Return the calendar date a client meant, ignoring time-of-day and offset.

    ``"2024-03-01T23:30:00-05:00"`` is still 2024-03-01: the date as written
    wins, so submissions from different timezones collide on the same day.
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("invalid date")

    text = value.strip()
    try:
        if len(text) > 10:
            # Local wall-clock date, not the UTC instant.
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return parse_iso_date(text)
    except ValueError:
        raise ValidationError("invalid date") from None


def normalize_day(value: DateInput) -> datetime:
    """Midnight UTC of the calendar day ``value`` names."""
    return datetime.combine(calendar_day(value), time.min, tzinfo=timezone.utc)


def day_range(value: DateInput) -> Tuple[datetime, datetime]:
    """Half-open ``[day, day+1)`` range used by every date-level read and delete."""
    start = normalize_day(value)
    return start, start + timedelta(days=1)


def utc_today() -> date:
    """Current UTC date.

    Note: Wrapped so tests can patch it.
    """
    return datetime.now(timezone.utc).date()
