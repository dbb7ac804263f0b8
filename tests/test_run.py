import json
from datetime import date
from unittest.mock import MagicMock, patch

import pytest

from booking_slots import run
from booking_slots.errors import InvalidInputError
from booking_slots.models import BookingConfiguration, DaySlots, Slot, TimeWindow

SETTINGS = {
    "working_hours": {"monday": {"enabled": True, "start": "09:00", "end": "12:00"}},
    "slot_duration": 60,
    "min_advance_hours": 0,
}
APPOINTMENTS = {
    "bookings": [
        {"scheduled_at": "2030-01-07T10:00:00", "duration_minutes": 60, "status": "confirmed"},
        {"scheduled_at": "2030-01-07T09:00:00", "duration_minutes": 60, "status": "cancelled"},
        {"scheduled_at": "2030-01-08T09:00:00", "duration_minutes": 60, "status": "pending"},
    ],
    "visits": [],
}


@pytest.fixture
def input_files(tmp_path):
    settings_path = tmp_path / "settings.json"
    appointments_path = tmp_path / "appointments.json"
    settings_path.write_text(json.dumps(SETTINGS))
    appointments_path.write_text(json.dumps(APPOINTMENTS))
    return str(settings_path), str(appointments_path)


def test_get_target_dates():
    booking_config = BookingConfiguration()
    assert run.get_target_dates("2030-01-07", 3, booking_config) == [
        date(2030, 1, 7),
        date(2030, 1, 8),
        date(2030, 1, 9),
    ]
    assert len(run.get_target_dates(None, 0, booking_config)) == 1


def test_filter_committed_for_day():
    booking_config = BookingConfiguration()
    filtered = run.filter_committed_for_day(APPOINTMENTS, date(2030, 1, 7), booking_config)
    assert filtered["bookings"] == [APPOINTMENTS["bookings"][0]]
    assert filtered["visits"] == []


def test_filter_committed_for_day_uses_local_date():
    booking_config = BookingConfiguration(timezone="Asia/Jerusalem")
    committed = {"visits": [{"scheduled_at": "2030-01-06T23:00:00+00:00"}]}  # 01:00 on the 7th locally
    assert run.filter_committed_for_day(committed, date(2030, 1, 7), booking_config)["visits"] == committed["visits"]
    assert run.filter_committed_for_day(committed, date(2030, 1, 6), booking_config)["visits"] == []


@patch("booking_slots.run.persist.save_report")
def test_run_from_files(mock_save_report, input_files, capsys):
    settings_path, appointments_path = input_files

    results = run.run(start_date="2030-01-07", days=2, settings_path=settings_path, appointments_path=appointments_path)

    monday, tuesday = results
    assert [(s.time, s.available) for s in monday.slots] == [("09:00", True), ("10:00", False), ("11:00", True)]
    assert monday.available_count == 2
    assert tuesday.slots == []
    mock_save_report.assert_called_once_with(results)

    out = capsys.readouterr().out
    assert "Availability Report for 2030-01-07" in out
    assert "[TAKEN]     10:00" in out
    assert "Closed" in out


@patch("booking_slots.run.persist.save_report")
@patch("booking_slots.run.source.fetch_committed")
@patch("booking_slots.run.source.fetch_service_duration")
@patch("booking_slots.run.source.fetch_organization")
def test_run_from_api(mock_fetch_org, mock_fetch_service, mock_fetch_committed, mock_save_report):
    booking_config = BookingConfiguration(
        working_hours={1: TimeWindow(start="09:00", end="11:00")}, slot_duration_minutes=30, min_advance_hours=0
    )
    mock_fetch_org.return_value = ("org-1", booking_config)
    mock_fetch_service.return_value = 90
    mock_fetch_committed.return_value = {"bookings": [], "visits": []}

    results = run.run(start_date="2030-01-07", days=1, slug="salon", service_id="svc-1")

    mock_fetch_org.assert_called_once_with("salon")
    mock_fetch_service.assert_called_once_with("svc-1")
    mock_fetch_committed.assert_called_once_with("org-1", date(2030, 1, 7), booking_config)
    assert [s.time for s in results[0].slots] == ["09:00", "09:30"]
    mock_save_report.assert_called_once()


@patch("booking_slots.run.persist.save_report")
@patch("booking_slots.run.source.fetch_committed")
@patch("booking_slots.run.source.fetch_service_duration")
@patch("booking_slots.run.source.fetch_organization")
def test_run_explicit_duration_skips_service_lookup(mock_fetch_org, mock_fetch_service, mock_fetch_committed, mock_save_report):
    mock_fetch_org.return_value = ("org-1", BookingConfiguration())
    mock_fetch_committed.return_value = {}

    run.run(start_date="2030-01-07", slug="salon", service_duration=45, service_id="svc-1")

    mock_fetch_service.assert_not_called()


def test_run_requires_a_source():
    with pytest.raises(ValueError):
        run.run(start_date="2030-01-07")


def test_collect_availability_passes_context():
    context = run.BookingContext(
        booking_config=BookingConfiguration(working_hours={1: TimeWindow(start="09:00", end="10:00")}),
        service_duration=None,
        committed_for_day=MagicMock(return_value={}),
    )
    with patch("booking_slots.run.engine.compute_available_slots") as mock_compute:
        mock_compute.return_value = [Slot(time="09:00", available=True), Slot(time="09:30", available=False)]
        results = run.collect_availability([date(2030, 1, 7)], context)

    context.committed_for_day.assert_called_once_with(date(2030, 1, 7))
    assert results == [DaySlots(date="2030-01-07", slots=mock_compute.return_value, available_count=1)]


@pytest.mark.parametrize("record", ["2030-01-07T10:00:00", {"duration_minutes": 30}])
def test_filter_committed_for_day_rejects_malformed_records(record):
    committed = {"bookings": [{"scheduled_at": "2030-01-07T09:00:00"}, record]}
    with pytest.raises(InvalidInputError, match="record #1"):
        run.filter_committed_for_day(committed, date(2030, 1, 7), BookingConfiguration())


def test_filter_committed_for_day_skips_cancelled_before_date_check():
    committed = {"visits": [{"scheduled_at": "2030-01-07T09:00:00", "status": "cancelled"}], "bookings": None}
    assert run.filter_committed_for_day(committed, date(2030, 1, 7), BookingConfiguration()) == {
        "visits": [],
        "bookings": [],
    }
