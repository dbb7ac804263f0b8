class AvailabilityError(ValueError):
    """Base class for everything the availability engine raises."""


class ConfigurationError(AvailabilityError):
    """Organization booking settings are malformed and need fixing upstream."""


class InvalidInputError(AvailabilityError):
    """A caller passed a duration, date or appointment record the engine cannot use."""


class BookingRejected(AvailabilityError):
    """A requested booking start failed the read-only pre-check."""

    def __init__(self, reason: str, message: str):
        super().__init__(message)
        self.reason = reason


class DataSourceError(Exception):
    """The data API could not be reached or returned an unexpected payload."""


class OrganizationNotFound(DataSourceError):
    pass
