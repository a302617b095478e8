from fastapi import HTTPException, status

from app.core.exceptions import (
    BookingError,
    InvalidTransitionError,
    NotFoundError,
    ServiceNotOfferedError,
    SlotNoLongerAvailableError,
    ValidationError,
)

STATUS_BY_ERROR = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ServiceNotOfferedError: 422,
    SlotNoLongerAvailableError: status.HTTP_409_CONFLICT,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
}


def http_error(error: BookingError) -> HTTPException:
    """Translate a booking core error into the matching HTTP error."""
    for error_type, status_code in STATUS_BY_ERROR.items():
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=error.message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)
