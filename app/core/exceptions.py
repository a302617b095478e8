"""Error kinds raised by the availability and booking core.

Every error is returned to the immediate caller; the core never retries.
"""


class BookingError(Exception):
    """Base class for booking core errors."""

    def __init__(self, message: str = None, **context):
        super().__init__(message or self.__doc__)
        self.message = message or self.__doc__
        self.context = context


class ValidationError(BookingError, ValueError):
    """Malformed input."""


class NotFoundError(BookingError):
    """Referenced studio, employee, service or booking does not exist."""


class ServiceNotOfferedError(BookingError):
    """Service not offered by this employee."""


class SlotNoLongerAvailableError(BookingError):
    """The requested time window is no longer available."""


class InvalidTransitionError(BookingError):
    """Requested status change is not reachable from the current status."""
