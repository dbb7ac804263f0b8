import logging
import os

logger = logging.getLogger(__name__)

# --- File Paths ---
DATA_DIR = os.environ.get("BOOKING_DATA_DIR", "public/data")
REPORT_FILE = os.path.join(DATA_DIR, "availability_report.json")

# --- Data API ---
DATA_API_URL = os.environ.get("SUPABASE_URL") or os.environ.get("NEXT_PUBLIC_SUPABASE_URL")
DATA_API_KEY = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
REQUEST_TIMEOUT = int(os.environ.get("REQUEST_TIMEOUT", "10"))

# --- Booking defaults ---
# Used whenever an organization's booking_settings leave a value out.
DEFAULT_TIMEZONE = os.environ.get("DEFAULT_TIMEZONE", "UTC")
DEFAULT_SLOT_DURATION_MINUTES = 30
DEFAULT_MIN_ADVANCE_HOURS = 2
DEFAULT_ADVANCE_DAYS = 30
DEFAULT_APPOINTMENT_DURATION_MINUTES = 60
DEFAULT_DAY_START = "09:00"
DEFAULT_DAY_END = "19:00"

# Sunday = 0, matching the booking page calendar.
WEEKDAY_NAMES = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]

if not DATA_API_URL or not DATA_API_KEY:
    logger.debug("Data API configuration incomplete. Only local input files can be used.")
