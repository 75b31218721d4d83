"""
Time and duration helpers.

Converts between clock times, minute counts and display strings. Display
format is always passed in explicitly; nothing here looks up a user
preference.
"""

import math
from datetime import date, datetime, time

from .types import TimeFormat

MINUTES_PER_DAY = 24 * 60


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def minutes_between(start: datetime, end: datetime) -> float:
    """Signed number of minutes from start to end."""
    return (end - start).total_seconds() / 60


def parse_iso_datetime(value: str) -> datetime:
    """
    Parse an ISO-8601 instant into a naive local datetime.

    A trailing "Z" or explicit offset is converted to host local time, so
    minute arithmetic between parsed values stays consistent.
    """
    if not isinstance(value, str):
        raise TypeError(f"Expected an ISO-8601 string, got {type(value).__name__}")
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def parse_iso_date(value: str) -> date:
    """Parse "YYYY-MM-DD" (or a full ISO datetime) to a calendar date."""
    if not isinstance(value, str):
        raise TypeError(f"Expected an ISO-8601 string, got {type(value).__name__}")
    if "T" in value:
        return parse_iso_datetime(value).date()
    return date.fromisoformat(value)


def format_time(instant: datetime | time, time_format: TimeFormat) -> str:
    """
    Format a point in time as a short clock string.

    "12h" gives "H:MM AM/PM" with no leading zero on the hour,
    "24h" gives zero-padded "HH:MM".
    """
    if time_format == "24h":
        return f"{instant.hour:02d}:{instant.minute:02d}"
    if time_format != "12h":
        raise ValueError(f"Unknown time format: {time_format}")

    hour = instant.hour
    period = "AM" if hour < 12 else "PM"
    if hour == 0:
        hour = 12
    elif hour > 12:
        hour -= 12
    return f"{hour}:{instant.minute:02d} {period}"


def format_duration(minutes: float) -> str:
    """
    Format a non-negative minute count as "7h", "45m" or "7h 30m".

    Hours are floored; the minute remainder is rounded to the nearest minute.
    """
    hours = int(minutes // 60)
    mins = round_half_up(minutes % 60)

    if hours == 0:
        return f"{mins}m"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"
