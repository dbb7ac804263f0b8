import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional

from booking_slots import config
from booking_slots.busy import aggregate_busy_intervals
from booking_slots.classifier import overlaps_busy
from booking_slots.engine import current_time
from booking_slots.errors import BookingRejected, InvalidInputError
from booking_slots.hours import format_clock, resolve_working_hours
from booking_slots.models import BookingConfiguration

logger = logging.getLogger(__name__)


def _reject(reason: str, message: str):
    logger.info(f"Booking request rejected ({reason}): {message}")
    raise BookingRejected(reason, message)


def check_booking_request(
    scheduled_at: datetime,
    booking_config: BookingConfiguration,
    committed: Iterable,
    duration_minutes: Optional[int] = None,
    now: Optional[datetime] = None,
) -> None:
    """Checks a requested booking start before it is written.

    Raises BookingRejected with one of the reasons past, too_far, too_soon,
    closed_day, outside_hours or conflict. This is a read-only check against a
    snapshot; two concurrent requests can both pass it, so the booking writer
    still has to enforce uniqueness when it inserts.
    """
    tz = booking_config.tz
    if now is None:
        now = current_time(tz)

    if duration_minutes is None:
        duration_minutes = config.DEFAULT_APPOINTMENT_DURATION_MINUTES
    if duration_minutes <= 0:
        raise InvalidInputError(f"Booking duration must be positive, got {duration_minutes}")

    # Compare aware with aware: a naive value is organization wall-clock time.
    if scheduled_at.tzinfo is None and now.tzinfo is not None:
        scheduled_at = tz.localize(scheduled_at)
    elif scheduled_at.tzinfo is not None and now.tzinfo is None:
        now = tz.localize(now)

    if scheduled_at < now:
        _reject("past", "Cannot book in the past")

    if scheduled_at > now + timedelta(days=booking_config.advance_days):
        _reject("too_far", f"Cannot book more than {booking_config.advance_days} days in advance")

    if scheduled_at - now < timedelta(hours=booking_config.min_advance_hours):
        _reject("too_soon", f"Need at least {booking_config.min_advance_hours} hours advance notice")

    local_start = scheduled_at.astimezone(tz) if scheduled_at.tzinfo is not None else scheduled_at
    window = resolve_working_hours(local_start.date(), booking_config)
    if window is None:
        _reject("closed_day", "Selected day is not a working day")

    start_minutes = local_start.hour * 60 + local_start.minute
    if start_minutes < window.open_minutes or start_minutes + duration_minutes > window.close_minutes:
        _reject(
            "outside_hours",
            f"Requested time {format_clock(start_minutes)} is outside working hours "
            f"{format_clock(window.open_minutes)}-{format_clock(window.close_minutes)}",
        )

    busy = aggregate_busy_intervals(committed, tz)
    if overlaps_busy(start_minutes, duration_minutes, busy):
        _reject("conflict", "This time slot is no longer available")
