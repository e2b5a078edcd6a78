"""Time-of-day helpers for HH:mm (24h, zero-padded) strings."""
from datetime import date, datetime
from typing import Tuple

MINUTES_PER_DAY = 24 * 60

# Arabic AM / PM suffixes used by the clinic's 12h display
AM_SUFFIX = " ص"
PM_SUFFIX = " م"


def split_hhmm(value: str) -> Tuple[int, int]:
    """Split "HH:mm" into (hours, minutes)."""
    hours, minutes = value.split(":")
    return int(hours), int(minutes)


def to_minutes(value: str) -> int:
    """Convert "HH:mm" to minutes since midnight."""
    hours, minutes = split_hhmm(value)
    return hours * 60 + minutes


def format_hhmm(total_minutes: int) -> str:
    """Convert minutes since midnight to zero-padded "HH:mm" (wraps at midnight)."""
    hours, minutes = divmod(total_minutes % MINUTES_PER_DAY, 60)
    return f"{hours:02d}:{minutes:02d}"


def end_time(start: str, duration_minutes: int) -> str:
    """End of an interval starting at `start` lasting `duration_minutes`."""
    return format_hhmm(to_minutes(start) + duration_minutes)


def format_time12(value: str) -> str:
    """
    Convert 24h time to the clinic's 12h display.

    Example:
        "09:30" -> "9:30 ص", "15:00" -> "3:00 م", "00:05" -> "12:05 ص"
    """
    hour, minute = split_hhmm(value)
    suffix = AM_SUFFIX if hour < 12 else PM_SUFFIX
    if hour == 0:
        hour = 12
    elif hour > 12:
        hour -= 12
    return f"{hour}:{minute:02d}{suffix}"


def format_time_range12(start: str, duration_minutes: int) -> str:
    """12h range for display: "9:30 ص - 10:00 ص"."""
    return f"{format_time12(start)} - {format_time12(end_time(start, duration_minutes))}"


def format_time_range24(start: str, duration_minutes: int) -> str:
    """24h range for display: "09:30 - 10:00"."""
    return f"{start} - {end_time(start, duration_minutes)}"


def parse_iso_date(value: str) -> date:
    """Parse a YYYY-MM-DD string."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def today_iso() -> str:
    """Today's local date as YYYY-MM-DD."""
    return date.today().isoformat()
