"""Test mapping of booking core errors onto HTTP status codes."""

import pytest

from app.api.deps.errors import http_error
from app.core.exceptions import (
    BookingError,
    InvalidTransitionError,
    NotFoundError,
    ServiceNotOfferedError,
    SlotNoLongerAvailableError,
    ValidationError,
)


@pytest.mark.parametrize(
    "error,status_code",
    [
        (ValidationError("bad input"), 400),
        (NotFoundError(), 404),
        (ServiceNotOfferedError(), 422),
        (SlotNoLongerAvailableError(employee_id=1), 409),
        (InvalidTransitionError(), 409),
        (BookingError("unclassified"), 400),
    ],
)
def test_status_codes(error, status_code):
    exc = http_error(error)

    assert exc.status_code == status_code
    assert exc.detail == error.message
