# Import all models to ensure they are registered with SQLAlchemy
from . import (
    booking,
    employee,
    employee_service,
    service,
    studio,
    time_off,
    working_hours,
)

__all__ = [
    "booking",
    "employee",
    "employee_service",
    "service",
    "studio",
    "time_off",
    "working_hours",
]
