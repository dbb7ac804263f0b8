from datetime import datetime

import pytest
import pytz

from booking_slots.errors import BookingRejected, InvalidInputError
from booking_slots.models import BookingConfiguration, TimeWindow
from booking_slots.validation import check_booking_request

NOW = datetime(2025, 1, 6, 8, 0)  # Monday morning


@pytest.fixture
def booking_config():
    return BookingConfiguration(
        working_hours={1: TimeWindow(start="09:00", end="17:00")},
        min_advance_hours=2,
        advance_days=30,
    )


@pytest.mark.parametrize(
    "scheduled_at,reason",
    [
        (datetime(2025, 1, 6, 7, 0), "past"),
        (datetime(2025, 2, 10, 10, 0), "too_far"),
        (datetime(2025, 1, 6, 9, 30), "too_soon"),
        (datetime(2025, 1, 12, 10, 0), "closed_day"),
        (datetime(2025, 1, 13, 8, 30), "outside_hours"),
        (datetime(2025, 1, 13, 16, 30), "outside_hours"),
    ],
)
def test_rejections(booking_config, scheduled_at, reason):
    with pytest.raises(BookingRejected) as excinfo:
        check_booking_request(scheduled_at, booking_config, [], duration_minutes=60, now=NOW)
    assert excinfo.value.reason == reason


def test_conflict_with_committed(booking_config):
    committed = {"bookings": [{"scheduled_at": "2025-01-13T09:30:00", "duration_minutes": 60}]}
    with pytest.raises(BookingRejected) as excinfo:
        check_booking_request(datetime(2025, 1, 13, 10, 0), booking_config, committed, now=NOW)
    assert excinfo.value.reason == "conflict"
    assert "no longer available" in str(excinfo.value)


def test_accepts_free_slot(booking_config):
    committed = {"bookings": [{"scheduled_at": "2025-01-13T09:30:00", "duration_minutes": 60}]}
    assert check_booking_request(datetime(2025, 1, 13, 10, 30), booking_config, committed, now=NOW) is None


def test_lead_time_boundary_is_accepted(booking_config):
    assert check_booking_request(datetime(2025, 1, 6, 10, 0), booking_config, [], duration_minutes=30, now=NOW) is None


def test_aware_request_against_naive_now():
    booking_config = BookingConfiguration(
        working_hours={1: TimeWindow(start="09:00", end="17:00")}, min_advance_hours=0, timezone="Asia/Jerusalem"
    )
    # 10:00 UTC is 12:00 local on Monday 2025-01-13
    scheduled_at = datetime(2025, 1, 13, 10, 0, tzinfo=pytz.UTC)
    committed = [[{"scheduled_at": "2025-01-13T12:00:00", "duration_minutes": 30}]]

    with pytest.raises(BookingRejected) as excinfo:
        check_booking_request(scheduled_at, booking_config, committed, duration_minutes=30, now=NOW)
    assert excinfo.value.reason == "conflict"


def test_invalid_duration(booking_config):
    with pytest.raises(InvalidInputError):
        check_booking_request(datetime(2025, 1, 13, 10, 0), booking_config, [], duration_minutes=0, now=NOW)
