import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from booking_slots.errors import ConfigurationError
from booking_slots.models import BookingConfiguration, TimeWindow

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class OpenWindow:
    open_minutes: int
    close_minutes: int


def parse_clock(value: str, end_of_day: bool = False) -> int:
    """Parses an HH:MM (or HH:MM:SS) wall-clock string into minutes since midnight.

    With ``end_of_day`` set, "24:00" is accepted as the closing time of a day
    that runs until midnight.
    """
    parts = str(value).strip().split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise ConfigurationError(f"Invalid time '{value}', expected HH:MM")

    hour, minute = int(parts[0]), int(parts[1])
    if end_of_day and hour == 24 and minute == 0 and all(int(p) == 0 for p in parts[2:]):
        return MINUTES_PER_DAY
    if hour > 23 or minute > 59:
        raise ConfigurationError(f"Invalid time '{value}', out of range")
    return hour * 60 + minute


def format_clock(minutes: int) -> str:
    """Formats minutes since midnight as zero-padded HH:MM."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def weekday_index(day: date) -> int:
    """Sunday-based weekday index (Sunday = 0, Saturday = 6)."""
    return (day.weekday() + 1) % 7


def to_open_window(window: TimeWindow, label: str) -> OpenWindow:
    start = parse_clock(window.start)
    end = parse_clock(window.end, end_of_day=True)
    if start >= end:
        raise ConfigurationError(f"{label} must start before it ends ({window.start} >= {window.end})")
    return OpenWindow(open_minutes=start, close_minutes=end)


def resolve_working_hours(day: date, booking_config: BookingConfiguration) -> Optional[OpenWindow]:
    """Returns the open/close window for the given date, or None if the organization is closed."""
    weekday = weekday_index(day)
    hours = booking_config.working_hours.get(weekday)
    if hours is None:
        logger.debug(f"{day.isoformat()} (weekday {weekday}) is a day off")
        return None
    return to_open_window(hours, f"Working hours for weekday {weekday}")


def resolve_break_window(booking_config: BookingConfiguration) -> Optional[OpenWindow]:
    if booking_config.break_time is None:
        return None
    return to_open_window(booking_config.break_time, "Break time")
