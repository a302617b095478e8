from fastapi import APIRouter

from app.api.v1.endpoints import availability, bookings, employees

api_router = APIRouter()

# Slot and day availability
api_router.include_router(
    availability.router, prefix="/availability", tags=["availability"]
)

# Employee configuration and day schedule
api_router.include_router(employees.router, prefix="/employees", tags=["employees"])

# Booking lifecycle
api_router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
