import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional, Tuple

import pytz
import requests

from booking_slots import config
from booking_slots.errors import DataSourceError, OrganizationNotFound
from booking_slots.models import BookingConfiguration

logger = logging.getLogger(__name__)

# Collections whose rows block time on the shared calendar.
COMMITTED_TABLES = ("bookings", "visits")


def build_headers() -> Dict[str, str]:
    if not config.DATA_API_URL or not config.DATA_API_KEY:
        raise DataSourceError("Data API configuration missing (SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY).")
    return {
        "apikey": config.DATA_API_KEY,
        "Authorization": f"Bearer {config.DATA_API_KEY}",
        "Accept": "application/json",
    }


def fetch_rows(table: str, params: List[Tuple[str, str]]) -> List[Dict[str, Any]]:
    """Runs a single read against the REST data API and returns the decoded rows."""
    headers = build_headers()
    url = f"{config.DATA_API_URL.rstrip('/')}/rest/v1/{table}"
    logger.debug(f"Fetching {table} with {params}")

    try:
        response = requests.get(url, headers=headers, params=params, timeout=config.REQUEST_TIMEOUT)
        response.raise_for_status()
        rows = response.json()
    except requests.RequestException as e:
        logger.error(f"Failed to fetch {table}: {e}")
        raise DataSourceError(f"Failed to fetch {table}: {e}") from e
    except ValueError as e:
        logger.error(f"Invalid JSON from {table}: {e}")
        raise DataSourceError(f"Invalid JSON from {table}") from e

    if not isinstance(rows, list):
        raise DataSourceError(f"Unexpected payload from {table}: expected a list")
    return rows


def fetch_organization(slug: str) -> Tuple[str, BookingConfiguration]:
    """Looks up an organization by its public booking slug."""
    rows = fetch_rows("organizations", [("select", "id,booking_settings"), ("slug", f"eq.{slug}"), ("limit", "1")])
    if not rows:
        raise OrganizationNotFound(f"Organization not found for slug '{slug}'")

    org = rows[0]
    logger.info(f"Found organization {org['id']} for slug '{slug}'")
    return org["id"], BookingConfiguration.from_settings(org.get("booking_settings"))


def fetch_service_duration(service_id: str) -> Optional[int]:
    rows = fetch_rows("services", [("select", "duration_minutes"), ("id", f"eq.{service_id}"), ("limit", "1")])
    if not rows:
        logger.warning(f"Service {service_id} not found, using the slot duration instead")
        return None
    return rows[0].get("duration_minutes") or None


def day_bounds(day: date, tz: pytz.BaseTzInfo) -> Tuple[str, str]:
    """Start and end of the organization's local day as ISO timestamps."""
    start = tz.localize(datetime.combine(day, time.min))
    end = tz.localize(datetime.combine(day + timedelta(days=1), time.min))
    return start.isoformat(), end.isoformat()


def _committed_params(org_id: str, day_start: str, day_end: str) -> List[Tuple[str, str]]:
    return [
        ("select", "scheduled_at,duration_minutes"),
        ("org_id", f"eq.{org_id}"),
        ("scheduled_at", f"gte.{day_start}"),
        ("scheduled_at", f"lt.{day_end}"),
        ("status", "neq.cancelled"),
    ]


def fetch_committed(org_id: str, day: date, booking_config: BookingConfiguration) -> Dict[str, List[Dict[str, Any]]]:
    """Fetches non-cancelled bookings and visits for the day, both reads in parallel."""
    day_start, day_end = day_bounds(day, booking_config.tz)
    params = _committed_params(org_id, day_start, day_end)

    with ThreadPoolExecutor(max_workers=len(COMMITTED_TABLES)) as executor:
        futures = {table: executor.submit(fetch_rows, table, params) for table in COMMITTED_TABLES}
        committed = {table: future.result() for table, future in futures.items()}

    logger.info(
        f"Loaded committed appointments for {day.isoformat()}: "
        + ", ".join(f"{len(rows)} {table}" for table, rows in committed.items())
    )
    return committed
