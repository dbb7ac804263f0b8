import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List

from booking_slots import config
from booking_slots.models import BookingConfiguration, DaySlots

logger = logging.getLogger(__name__)


def ensure_report_dir(path: str):
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)


def load_json(path: str) -> Any:
    try:
        with open(path, "r") as f:
            return json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        logger.error(f"Failed to read {path}: {e}")
        raise


def load_settings(path: str) -> BookingConfiguration:
    """Loads booking settings from a JSON file.

    The file holds either the booking_settings object itself or an organization
    row that wraps it under "booking_settings".
    """
    data = load_json(path)
    if isinstance(data, dict) and "booking_settings" in data:
        data = data["booking_settings"]
    logger.info(f"Loaded booking settings from {path}")
    return BookingConfiguration.from_settings(data)


def load_appointments(path: str | None) -> Dict[str, List[Dict]]:
    """Loads committed appointments grouped by source.

    Accepts {"bookings": [...], "visits": [...]} or a bare list, which is read
    as bookings.
    """
    if not path:
        return {}

    data = load_json(path)
    if isinstance(data, list):
        data = {"bookings": data}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a list or an object of appointment lists")

    logger.info(f"Loaded {sum(len(v or []) for v in data.values())} appointments from {path}")
    return {source: records or [] for source, records in data.items()}


def save_report(results: List[DaySlots], path: str | None = None):
    """Writes the computed days, with a timestamp and an overall count of open slots, as JSON."""
    path = path or config.REPORT_FILE
    ensure_report_dir(path)
    report = {
        "last_updated": datetime.now(timezone.utc).isoformat(),
        "available_total": sum(day.available_count for day in results),
        "days": [day.model_dump() for day in results],
    }
    try:
        with open(path, "w") as f:
            json.dump(report, f, indent=2)
        logger.info(f"Saved report for {len(results)} days to {path}")
    except IOError as e:
        logger.error(f"Failed to save report to {path}: {e}")
