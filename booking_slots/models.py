from datetime import datetime
from typing import Any, Dict, List, Optional

import pytz
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from booking_slots import config
from booking_slots.errors import ConfigurationError


class TimeWindow(BaseModel):
    """A wall-clock window such as working hours or a break, kept as HH:MM strings."""

    model_config = ConfigDict(frozen=True)

    start: str
    end: str


class BookingConfiguration(BaseModel):
    """Booking policy of one organization, read once per computation."""

    model_config = ConfigDict(frozen=True)

    working_hours: Dict[int, Optional[TimeWindow]] = Field(default_factory=dict)
    slot_duration_minutes: int = Field(default=config.DEFAULT_SLOT_DURATION_MINUTES, gt=0)
    min_advance_hours: int = Field(default=config.DEFAULT_MIN_ADVANCE_HOURS, ge=0)
    break_time: Optional[TimeWindow] = None
    timezone: str = config.DEFAULT_TIMEZONE
    advance_days: int = Field(default=config.DEFAULT_ADVANCE_DAYS, gt=0)

    @field_validator("working_hours")
    @classmethod
    def _weekday_keys_in_range(cls, value: Dict[int, Optional[TimeWindow]]):
        for weekday in value:
            if not 0 <= weekday <= 6:
                raise ValueError(f"weekday index must be between 0 and 6, got {weekday}")
        return value

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError:
            raise ValueError(f"unknown timezone '{value}'")
        return value

    @property
    def tz(self) -> pytz.BaseTzInfo:
        return pytz.timezone(self.timezone)

    @classmethod
    def from_settings(cls, settings: Optional[Dict[str, Any]]) -> "BookingConfiguration":
        """Builds a configuration from an organization's stored booking_settings JSON.

        Two shapes are in use: working hours keyed by weekday index ("0" = Sunday)
        with a single ``break_time``, and working hours keyed by day name with an
        ``enabled`` flag and a ``break_times`` list. Only the first break is honored.
        Missing values fall back to the defaults in ``config``.
        """
        settings = settings or {}
        if not isinstance(settings, dict):
            raise ConfigurationError(f"Booking settings must be an object, got {type(settings).__name__}")

        raw_hours = settings.get("working_hours") or {}
        if not isinstance(raw_hours, dict):
            raise ConfigurationError("Working hours must be an object keyed by weekday")

        working_hours: Dict[int, Dict[str, Any]] = {}
        for key, entry in raw_hours.items():
            weekday = _weekday_from_key(key)
            if not entry:
                continue
            if not isinstance(entry, dict):
                raise ConfigurationError(f"Working hours for '{key}' must be an object, got {entry!r}")
            if entry.get("enabled") is False:
                continue
            working_hours[weekday] = {
                "start": entry.get("start") or config.DEFAULT_DAY_START,
                "end": entry.get("end") or config.DEFAULT_DAY_END,
            }

        break_time = settings.get("break_time")
        break_times = settings.get("break_times")
        if not break_time and break_times:
            if not isinstance(break_times, list):
                raise ConfigurationError(f"break_times must be a list, got {type(break_times).__name__}")
            break_time = break_times[0]

        values: Dict[str, Any] = {"working_hours": working_hours, "break_time": break_time or None}
        for field, key in (
            ("slot_duration_minutes", "slot_duration"),
            ("min_advance_hours", "min_advance_hours"),
            ("advance_days", "advance_days"),
            ("timezone", "timezone"),
        ):
            if settings.get(key) is not None:
                values[field] = settings[key]

        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid booking settings: {e}") from e


def _weekday_from_key(key: Any) -> int:
    """Maps a working_hours key ("0".."6" or a day name) to a Sunday-based index."""
    text = str(key).strip().lower()
    if text in config.WEEKDAY_NAMES:
        return config.WEEKDAY_NAMES.index(text)
    if text.isdigit() and 0 <= int(text) <= 6:
        return int(text)
    raise ConfigurationError(f"Unknown working hours day '{key}'")


class CommittedAppointment(BaseModel):
    """An already committed booking or visit, as read from any source collection."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    scheduled_at: datetime = Field(validation_alias=AliasChoices("scheduled_at", "start_datetime", "start"))
    duration_minutes: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("duration_minutes", "duration")
    )
    source: str = "booking"
    status: Optional[str] = None


class BusyInterval(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_minutes: int
    end_minutes: int

    @model_validator(mode="after")
    def _start_before_end(self):
        if self.start_minutes >= self.end_minutes:
            raise ValueError(f"busy interval must end after it starts ({self.start_minutes} >= {self.end_minutes})")
        return self


class Slot(BaseModel):
    time: str  # HH:MM, organization wall clock
    available: bool


class DaySlots(BaseModel):
    date: str  # ISO format YYYY-MM-DD
    slots: List[Slot]
    available_count: int
