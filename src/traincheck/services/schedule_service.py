"""Parsing and formatting of query dates and GTFS times."""

import re
from datetime import date

from traincheck.errors import InvalidInputError

# Hours may exceed 23 (GTFS trips running past midnight); minutes and seconds
# are always two digits.
TIME_PATTERN = re.compile(r"^([0-9]{1,2}):([0-5][0-9])(?::([0-5][0-9]))?$")

ISO_DATE_PATTERN = re.compile(r"^([0-9]{4})-([0-9]{2})-([0-9]{2})$")
COMPACT_DATE_PATTERN = re.compile(r"^([0-9]{4})([0-9]{2})([0-9]{2})$")


def parse_gtfs_time(time_str: str) -> tuple[int, int, int]:
    """Parse a time string into hours, minutes, seconds.

    Accepts H:MM, HH:MM, H:MM:SS and HH:MM:SS. Seconds default to 0.
    Hours can exceed 24 for trips that extend past midnight, so
    "25:30" means 1:30 the next day.

    Args:
        time_str: Time string.

    Returns:
        Tuple of (hours, minutes, seconds).

    Raises:
        InvalidInputError: If the time string does not match the grammar.
    """
    match = TIME_PATTERN.match(str(time_str).strip())
    if match is None:
        raise InvalidInputError(f"Invalid time format: {time_str!r} (expected HH:MM or HH:MM:SS)")

    hours, minutes, seconds = match.groups()
    return int(hours), int(minutes), int(seconds or 0)


def gtfs_time_to_seconds(time_str: str) -> int:
    """Convert a time string to seconds since midnight.

    Args:
        time_str: Time string in HH:MM or HH:MM:SS format.

    Returns:
        Total seconds since midnight (can exceed 86400 for next-day times).
    """
    hours, minutes, seconds = parse_gtfs_time(time_str)
    return hours * 3600 + minutes * 60 + seconds


def seconds_to_gtfs_time(total_seconds: int) -> str:
    """Render seconds since midnight as HH:MM:SS (hours may exceed 23)."""
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_gtfs_time(time_str: str) -> str:
    """Format a GTFS time string for display.

    Times >= 24:00 are shown with "(+1)" suffix to indicate next day.

    Args:
        time_str: Time string in HH:MM:SS format.

    Returns:
        Display time like "08:30" or "01:30 (+1)".
    """
    hours, minutes, _ = parse_gtfs_time(time_str)

    next_day = ""
    if hours >= 24:
        days, hours = divmod(hours, 24)
        next_day = f" (+{days})"

    return f"{hours:02d}:{minutes:02d}{next_day}"


def format_duration(total_seconds: int) -> str:
    """Format a travel duration as HH:MM:SS."""
    sign = "-" if total_seconds < 0 else ""
    return sign + seconds_to_gtfs_time(abs(total_seconds))


def normalize_date_input(raw: str) -> str:
    """Normalize a YYYY-MM-DD or YYYYMMDD date to YYYY-MM-DD.

    Raises:
        InvalidInputError: If the value is in neither form or is not a real date.
    """
    value = str(raw).strip()
    match = ISO_DATE_PATTERN.match(value) or COMPACT_DATE_PATTERN.match(value)
    if match is None:
        raise InvalidInputError(f"Invalid date format: {raw!r} (expected YYYY-MM-DD or YYYYMMDD)")

    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day).isoformat()
    except ValueError as e:
        raise InvalidInputError(f"Invalid date: {raw!r}") from e


def parse_query_date(raw: str) -> date:
    """Parse a query date in either accepted form into a date."""
    return date.fromisoformat(normalize_date_input(raw))


def compact_date(iso_date: str) -> str:
    """Convert YYYY-MM-DD to YYYYMMDD."""
    return iso_date.replace("-", "")


def clamp_limit(limit: int | None, default: int, maximum: int) -> int:
    """Clamp a requested result limit to 1..maximum, using default when unset."""
    if not limit:
        return default
    return max(1, min(maximum, int(limit)))


def require_text(value: str | None, field_name: str) -> str:
    """Return the trimmed value or raise if it is missing or blank."""
    text = str(value or "").strip()
    if not text:
        raise InvalidInputError(f"{field_name} is required")
    return text
