import logging
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence, Union

import pytz

from booking_slots import busy as busy_intervals
from booking_slots.classifier import SlotVerdict, classify_slots
from booking_slots.errors import InvalidInputError
from booking_slots.hours import format_clock, resolve_break_window, resolve_working_hours
from booking_slots.models import BookingConfiguration, Slot
from booking_slots.slots import generate_candidate_starts

logger = logging.getLogger(__name__)


def to_date(value: Union[date, str]) -> date:
    """Accepts a date or a YYYY-MM-DD string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"Date must be in YYYY-MM-DD format, got {value!r}") from e


def current_time(tz: pytz.BaseTzInfo) -> datetime:
    return datetime.now(pytz.UTC).astimezone(tz)


def assemble_slots(candidates: Sequence[int], verdicts: Sequence[SlotVerdict]) -> List[Slot]:
    """Pairs each candidate with its verdict; unavailable slots are kept so the UI can disable them."""
    return [
        Slot(time=format_clock(start), available=verdict.available)
        for start, verdict in zip(candidates, verdicts)
    ]


def compute_available_slots(
    target_date: Union[date, str],
    booking_config: BookingConfiguration,
    committed: Iterable,
    service_duration: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[Slot]:
    """Computes the day's slot grid with an availability flag per slot.

    Args:
        target_date: the day to evaluate, in the organization's calendar.
        booking_config: the organization's booking policy.
        committed: committed appointment sources for that day (a list of record
            lists, or a mapping of source name to records), already filtered to
            the date and with cancelled appointments removed.
        service_duration: minutes the requested service takes; defaults to the
            slot cadence.
        now: reference instant for the lead-time check; defaults to the current
            time in the organization's timezone.

    Returns:
        Slots ordered by time, or an empty list for a day off or a service that
        does not fit the working hours.
    """
    day = to_date(target_date)
    if service_duration is None:
        service_duration = booking_config.slot_duration_minutes
    if service_duration <= 0:
        raise InvalidInputError(f"Service duration must be positive, got {service_duration}")

    window = resolve_working_hours(day, booking_config)
    if window is None:
        return []

    tz = booking_config.tz
    if now is None:
        now = current_time(tz)

    candidates = generate_candidate_starts(window, booking_config.slot_duration_minutes, service_duration)
    busy = busy_intervals.aggregate_busy_intervals(committed, tz)
    verdicts = classify_slots(
        candidates,
        service_duration,
        day,
        resolve_break_window(booking_config),
        booking_config.min_advance_hours,
        now,
        tz,
        busy,
    )

    slots = assemble_slots(candidates, verdicts)
    logger.info(
        f"{day.isoformat()}: {len(slots)} slots between {format_clock(window.open_minutes)} and "
        f"{format_clock(window.close_minutes)}, {sum(s.available for s in slots)} available"
    )
    return slots
