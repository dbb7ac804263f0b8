import logging
from typing import List

from booking_slots.errors import InvalidInputError
from booking_slots.hours import OpenWindow

logger = logging.getLogger(__name__)


def generate_candidate_starts(window: OpenWindow, slot_duration_minutes: int, service_duration: int) -> List[int]:
    """Generates every candidate start minute on the day's grid that leaves room for the service."""
    if slot_duration_minutes <= 0:
        raise InvalidInputError(f"Slot duration must be positive, got {slot_duration_minutes}")
    if service_duration <= 0:
        raise InvalidInputError(f"Service duration must be positive, got {service_duration}")

    candidates = []
    current = window.open_minutes
    while current + service_duration <= window.close_minutes:
        candidates.append(current)
        current += slot_duration_minutes

    logger.debug(f"Generated {len(candidates)} candidate slots: {candidates}")
    return candidates
