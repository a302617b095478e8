from datetime import date

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.database import get_db
from app.api.deps.errors import http_error
from app.core.exceptions import BookingError
from app.schemas.scheduling import AvailableDays, ServiceSlots
from app.services.scheduling import SchedulingEngineService

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/slots", response_model=ServiceSlots)
async def get_available_slots(
    employee_id: int = Query(..., description="Employee ID"),
    service_id: int = Query(..., description="Service ID"),
    date: date = Query(..., description="Studio-local date (YYYY-MM-DD)"),
    db: AsyncSession = Depends(get_db),
):
    """Bookable start times for a service with an employee on one date.

    Slots are UTC instants; buffered bookings, time off and studio
    holidays are already excluded.
    """
    scheduling_service = SchedulingEngineService(db)
    try:
        return await scheduling_service.get_service_slots(employee_id, service_id, date)
    except BookingError as e:
        raise http_error(e)
    except Exception:
        logger.exception("Failed to compute available slots", employee_id=employee_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get available slots",
        )


@router.get("/days", response_model=AvailableDays)
async def get_available_days(
    employee_id: int = Query(...),
    service_id: int = Query(...),
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Dates in the range with at least one free slot, for calendar pickers."""
    scheduling_service = SchedulingEngineService(db)
    try:
        days = await scheduling_service.get_available_days(
            employee_id, service_id, start_date, end_date
        )
    except BookingError as e:
        raise http_error(e)
    except Exception:
        logger.exception("Failed to compute available days", employee_id=employee_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get available days",
        )

    return AvailableDays(
        employee_id=employee_id,
        service_id=service_id,
        start_date=start_date,
        end_date=end_date,
        days=days,
    )
