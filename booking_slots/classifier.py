"""
Availability predicates for a single candidate slot.

A slot is available when it does not start inside the break, is far enough
ahead of "now" and does not overlap any committed appointment. The three
checks are independent and are all evaluated so callers (and tests) can see
which one blocked a slot.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Sequence

import pytz

from booking_slots.hours import OpenWindow
from booking_slots.models import BusyInterval

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotVerdict:
    in_break: bool
    too_soon: bool
    busy: bool

    @property
    def available(self) -> bool:
        return not (self.in_break or self.too_soon or self.busy)


def in_break(start_minutes: int, break_window: Optional[OpenWindow]) -> bool:
    """True if the slot *starts* inside the break.

    Only the start minute is checked: a slot that begins before the break and
    runs into it stays bookable. This matches what the booking page has always
    shown.
    """
    if break_window is None:
        return False
    return break_window.open_minutes <= start_minutes < break_window.close_minutes


def slot_datetime(target_date: date, start_minutes: int) -> datetime:
    return datetime.combine(target_date, time(start_minutes // 60, start_minutes % 60))


def too_soon(
    start_minutes: int,
    target_date: date,
    min_advance_hours: int,
    now: datetime,
    tz: pytz.BaseTzInfo,
) -> bool:
    """True if the slot starts less than min_advance_hours after now.

    An aware ``now`` is compared with the slot localized to the organization's
    timezone; a naive ``now`` is read as organization wall-clock time.
    """
    starts_at = slot_datetime(target_date, start_minutes)
    if now.tzinfo is not None:
        starts_at = tz.localize(starts_at)
    return starts_at - now < timedelta(hours=min_advance_hours)


def overlaps_busy(start_minutes: int, service_duration: int, busy: Sequence[BusyInterval]) -> bool:
    """True if [start, start + duration) intersects any busy interval.

    ``busy`` must be sorted by start; the scan stops at the first interval that
    begins after the slot ends.
    """
    end_minutes = start_minutes + service_duration
    for interval in busy:
        if interval.start_minutes >= end_minutes:
            break
        if start_minutes < interval.end_minutes:
            return True
    return False


def classify_slot(
    start_minutes: int,
    service_duration: int,
    target_date: date,
    break_window: Optional[OpenWindow],
    min_advance_hours: int,
    now: datetime,
    tz: pytz.BaseTzInfo,
    busy: Sequence[BusyInterval],
) -> SlotVerdict:
    return SlotVerdict(
        in_break=in_break(start_minutes, break_window),
        too_soon=too_soon(start_minutes, target_date, min_advance_hours, now, tz),
        busy=overlaps_busy(start_minutes, service_duration, busy),
    )


def classify_slots(
    candidates: List[int],
    service_duration: int,
    target_date: date,
    break_window: Optional[OpenWindow],
    min_advance_hours: int,
    now: datetime,
    tz: pytz.BaseTzInfo,
    busy: Sequence[BusyInterval],
) -> List[SlotVerdict]:
    verdicts = [
        classify_slot(start, service_duration, target_date, break_window, min_advance_hours, now, tz, busy)
        for start in candidates
    ]
    logger.debug(
        f"Classified {len(verdicts)} slots: "
        f"{sum(v.in_break for v in verdicts)} in break, "
        f"{sum(v.too_soon for v in verdicts)} too soon, "
        f"{sum(v.busy for v in verdicts)} busy"
    )
    return verdicts
