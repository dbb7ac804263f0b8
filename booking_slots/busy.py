import logging
from typing import Any, Iterable, List, Mapping, Union

import pytz
from pydantic import ValidationError

from booking_slots import config
from booking_slots.errors import InvalidInputError
from booking_slots.models import BusyInterval, CommittedAppointment

logger = logging.getLogger(__name__)

AppointmentRecord = Union[CommittedAppointment, Mapping[str, Any]]


def to_appointment(record: AppointmentRecord, source: str = "booking") -> CommittedAppointment:
    """Normalizes a raw source record (booking row, visit row, ...) into a CommittedAppointment."""
    if isinstance(record, CommittedAppointment):
        return record
    if not isinstance(record, Mapping):
        raise InvalidInputError(f"Committed {source} record must be a mapping, got {type(record).__name__}")
    try:
        return CommittedAppointment.model_validate({"source": source, **record})
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in e.errors()
        )
        raise InvalidInputError(f"Committed {source} record is invalid ({problems})") from e


def to_busy_interval(appointment: CommittedAppointment, tz: pytz.BaseTzInfo) -> BusyInterval:
    """Converts an appointment to a half-open interval in minutes since local midnight.

    Aware timestamps are moved onto the organization's wall clock; naive ones are
    already local. The caller guarantees the appointment lies on the target date.
    """
    start = appointment.scheduled_at
    if start.tzinfo is not None:
        start = start.astimezone(tz)

    duration = appointment.duration_minutes
    if duration is None:
        duration = config.DEFAULT_APPOINTMENT_DURATION_MINUTES
    elif duration <= 0:
        raise InvalidInputError(
            f"Committed {appointment.source} at {appointment.scheduled_at.isoformat()} "
            f"has non-positive duration {duration}"
        )

    start_minutes = start.hour * 60 + start.minute
    return BusyInterval(start_minutes=start_minutes, end_minutes=start_minutes + duration)


def aggregate_busy_intervals(
    sources: Union[Mapping[str, Iterable[AppointmentRecord]], Iterable[Iterable[AppointmentRecord]]],
    tz: pytz.BaseTzInfo,
) -> List[BusyInterval]:
    """Merges every source collection into one sorted list of busy intervals.

    ``sources`` is either a mapping of source name to records (e.g. bookings and
    visits) or a plain sequence of record lists. Overlapping intervals are not
    collapsed; the classifier only asks whether any interval is hit.
    """
    if isinstance(sources, Mapping):
        named_sources = list(sources.items())
    else:
        named_sources = [(f"source{position}", records) for position, records in enumerate(sources)]

    intervals = []
    for source, records in named_sources:
        for index, record in enumerate(records or []):
            try:
                appointment = to_appointment(record, source)
            except InvalidInputError as e:
                raise InvalidInputError(f"{e} (record #{index})") from e
            intervals.append(to_busy_interval(appointment, tz))

    intervals.sort(key=lambda interval: (interval.start_minutes, interval.end_minutes))
    logger.debug(f"Aggregated {len(intervals)} busy intervals from {len(named_sources)} sources")
    return intervals
