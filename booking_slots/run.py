import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from booking_slots import engine, persist, source
from booking_slots.busy import to_appointment
from booking_slots.errors import InvalidInputError
from booking_slots.models import BookingConfiguration, DaySlots

logger = logging.getLogger(__name__)

CommittedBySource = Dict[str, List[Dict[str, Any]]]


@dataclass
class BookingContext:
    booking_config: BookingConfiguration
    service_duration: Optional[int]
    committed_for_day: Callable[[date], CommittedBySource]


def get_target_dates(start_date: str | None, days: int, booking_config: BookingConfiguration) -> List[date]:
    """Determines the consecutive dates to compute, starting today in the organization's timezone."""
    if start_date:
        first_day = engine.to_date(start_date)
    else:
        first_day = engine.current_time(booking_config.tz).date()
    return [first_day + timedelta(days=i) for i in range(max(days, 1))]


def filter_committed_for_day(
    committed: CommittedBySource, day: date, booking_config: BookingConfiguration
) -> CommittedBySource:
    """Keeps the records that fall on ``day`` locally and are not cancelled."""
    tz = booking_config.tz
    filtered: CommittedBySource = {}

    for source_name, records in committed.items():
        kept = []
        for index, record in enumerate(records or []):
            try:
                appointment = to_appointment(record, source_name)
            except InvalidInputError as e:
                raise InvalidInputError(f"{e} (record #{index})") from e
            if appointment.status == "cancelled":
                continue
            start = appointment.scheduled_at
            if start.tzinfo is not None:
                start = start.astimezone(tz)
            if start.date() == day:
                kept.append(record)
        filtered[source_name] = kept

    return filtered


def load_from_files(settings_path: str, appointments_path: str | None, service_duration: Optional[int]) -> BookingContext:
    booking_config = persist.load_settings(settings_path)
    committed = persist.load_appointments(appointments_path)
    return BookingContext(
        booking_config=booking_config,
        service_duration=service_duration,
        committed_for_day=lambda day: filter_committed_for_day(committed, day, booking_config),
    )


def load_from_api(slug: str, service_duration: Optional[int], service_id: str | None) -> BookingContext:
    org_id, booking_config = source.fetch_organization(slug)
    if service_duration is None and service_id:
        service_duration = source.fetch_service_duration(service_id)
    return BookingContext(
        booking_config=booking_config,
        service_duration=service_duration,
        committed_for_day=lambda day: source.fetch_committed(org_id, day, booking_config),
    )


def collect_availability(
    target_dates: List[date], context: BookingContext, now: Optional[datetime] = None
) -> List[DaySlots]:
    results = []
    for day in target_dates:
        slots = engine.compute_available_slots(
            day,
            context.booking_config,
            context.committed_for_day(day),
            service_duration=context.service_duration,
            now=now,
        )
        results.append(
            DaySlots(date=day.isoformat(), slots=slots, available_count=sum(s.available for s in slots))
        )
    return results


def print_availability_report(day_data: DaySlots):
    """Prints the formatted availability report to stdout."""
    print(f"\n--- Availability Report for {day_data.date} ---")

    if not day_data.slots:
        print("Closed, or no slot fits the service duration.")
        return

    for slot in day_data.slots:
        prefix = "[AVAILABLE]" if slot.available else "[TAKEN]    "
        print(f"{prefix} {slot.time}")

    print(f"Summary: {day_data.available_count} of {len(day_data.slots)} slots available on {day_data.date}.")


def run(
    start_date: str | None = None,
    days: int = 1,
    settings_path: str | None = None,
    appointments_path: str | None = None,
    slug: str | None = None,
    service_duration: Optional[int] = None,
    service_id: str | None = None,
) -> List[DaySlots]:
    """Core orchestration logic. Loads the booking context, computes every target day and saves a report."""
    if slug:
        context = load_from_api(slug, service_duration, service_id)
    elif settings_path:
        context = load_from_files(settings_path, appointments_path, service_duration)
    else:
        raise ValueError("Either a settings file or an organization slug is required.")

    target_dates = get_target_dates(start_date, days, context.booking_config)
    logger.info(f"Computing availability for {len(target_dates)} days: {', '.join(d.isoformat() for d in target_dates)}")

    results = collect_availability(target_dates, context)
    for day_data in results:
        print_availability_report(day_data)

    persist.save_report(results)
    return results
