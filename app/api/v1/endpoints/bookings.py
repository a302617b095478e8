from datetime import datetime
from typing import List, Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.database import get_db
from app.api.deps.errors import http_error
from app.core.exceptions import BookingError
from app.models.booking import BookingStatus
from app.schemas.booking import (
    Booking,
    BookingCreate,
    BookingFilters,
    BookingList,
    BookingStatusUpdate,
)
from app.services.booking import BookingService

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/", response_model=Booking, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    db: AsyncSession = Depends(get_db),
):
    """Book a service with an employee; returns 409 if the window was taken."""
    service = BookingService(db)
    try:
        return await service.create_booking(booking_data)
    except BookingError as e:
        raise http_error(e)
    except Exception:
        await db.rollback()
        logger.exception("Failed to create booking")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create booking",
        )


@router.get("/", response_model=BookingList)
async def list_bookings(
    studio_id: int = Query(...),
    employee_id: Optional[int] = Query(None),
    statuses: Optional[List[BookingStatus]] = Query(None, alias="status"),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    filters = BookingFilters(
        studio_id=studio_id,
        employee_id=employee_id,
        statuses=statuses or [],
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )

    service = BookingService(db)
    try:
        bookings, total_count = await service.list_studio_bookings(filters)
    except BookingError as e:
        raise http_error(e)

    return BookingList(
        bookings=bookings,
        total_count=total_count,
        limit=limit,
        offset=offset,
    )


@router.get("/{booking_uuid}", response_model=Booking)
async def get_booking(booking_uuid: UUID, db: AsyncSession = Depends(get_db)):
    service = BookingService(db)
    try:
        return await service.get_booking(booking_uuid)
    except BookingError as e:
        raise http_error(e)


@router.patch("/{booking_uuid}/status", response_model=Booking)
async def update_booking_status(
    booking_uuid: UUID,
    update: BookingStatusUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Move a booking through its lifecycle.

    ``private_notes`` is only touched when present in the request body.
    """
    service = BookingService(db)
    try:
        return await service.update_booking_status(booking_uuid, update)
    except BookingError as e:
        raise http_error(e)
    except Exception:
        await db.rollback()
        logger.exception(
            "Failed to update booking status", booking_uuid=str(booking_uuid)
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update booking status",
        )
