class AvailabilityError(Exception):
    """Base class for business-hours errors."""


class PersistenceError(AvailabilityError):
    """Reading or writing the durable storage failed.

    The previously persisted schedule stays authoritative and any in-memory
    draft is kept so the caller can retry.
    """

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message)
        self.key = key


class ValidationError(AvailabilityError, ValueError):
    """A day name, time value or time ordering is invalid."""
