import argparse
import logging
import sys
import time

from booking_slots import run
from booking_slots.errors import AvailabilityError, DataSourceError

logger = logging.getLogger(__name__)

# Loggers of the HTTP stack, kept at WARNING unless --verbose is given.
NOISY_LOGGERS = ("urllib3", "requests")


def setup_logging(verbose: bool):
    """Logs to stderr on the local clock. Verbose mode also lets the HTTP client's debug output through."""
    handler = logging.StreamHandler(sys.stderr)
    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s]: %(name)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    formatter.converter = time.localtime
    handler.setFormatter(formatter)

    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, handlers=[handler])
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)


def parse_arguments(argv=None):
    """Parses command line arguments."""
    parser = argparse.ArgumentParser(description="Compute bookable appointment slots for an organization.")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--settings", type=str, help="Path to a booking_settings JSON file.")
    source.add_argument("--slug", type=str, help="Public booking slug; reads settings and appointments from the data API.")
    parser.add_argument("--appointments", type=str, help="Path to a JSON file with committed bookings/visits.")
    parser.add_argument("--date", type=str, help="First date in YYYY-MM-DD format. Defaults to today.")
    parser.add_argument("--days", type=int, default=1, help="Number of consecutive days to compute. Defaults to 1.")
    parser.add_argument("--service-duration", type=int, help="Service duration in minutes. Defaults to the slot duration.")
    parser.add_argument("--service-id", type=str, help="Service whose duration to use (with --slug).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging.")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_arguments(argv)
    setup_logging(args.verbose)
    try:
        run.run(
            start_date=args.date,
            days=args.days,
            settings_path=args.settings,
            appointments_path=args.appointments,
            slug=args.slug,
            service_duration=args.service_duration,
            service_id=args.service_id,
        )
    except (AvailabilityError, DataSourceError, OSError, ValueError) as e:
        logger.error(f"Error: {e}")
        sys.exit(1)
