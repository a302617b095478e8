from datetime import date, datetime
from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.database import get_db
from app.api.deps.errors import http_error
from app.core.exceptions import BookingError
from app.models.booking import BookingStatus
from app.schemas.booking import Booking
from app.schemas.employee import (
    Employee,
    EmployeeCreate,
    EmployeeServiceAssign,
    EmployeeServiceOffering,
    EmployeeServiceUpdate,
    EmployeeUpdate,
    ServiceEmployeeList,
    TimeOff,
    TimeOffCreate,
)
from app.schemas.scheduling import DaySchedule, WorkingHoursResponse
from app.schemas.working_hours import WeeklySchedule
from app.services.booking import BookingService
from app.services.employee_management import EmployeeManagementService
from app.services.scheduling import SchedulingEngineService, studio_zone

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.patch("/{employee_id}", response_model=Employee)
async def update_employee(
    employee_id: int,
    update_data: EmployeeUpdate,
    db: AsyncSession = Depends(get_db),
):
    service = EmployeeManagementService(db)
    try:
        return await service.update_employee(employee_id, update_data)
    except BookingError as e:
        raise http_error(e)
    except Exception:
        await db.rollback()
        logger.exception("Failed to update employee", employee_id=employee_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update employee",
        )


@router.get("/{employee_id}/working-hours", response_model=WorkingHoursResponse)
async def get_working_hours(employee_id: int, db: AsyncSession = Depends(get_db)):
    scheduling_service = SchedulingEngineService(db)
    try:
        employee = await scheduling_service.get_employee(employee_id)
    except BookingError as e:
        raise http_error(e)

    return WorkingHoursResponse(
        employee_id=employee.id,
        timezone=str(studio_zone(employee.studio)),
        working_hours=WeeklySchedule.from_rows(employee.working_hours),
    )


@router.put("/{employee_id}/working-hours", response_model=WorkingHoursResponse)
async def set_working_hours(
    employee_id: int,
    schedule: WeeklySchedule,
    db: AsyncSession = Depends(get_db),
):
    """Replace the weekly working-hours template."""
    service = EmployeeManagementService(db)
    try:
        working_hours = await service.set_working_hours(employee_id, schedule)
        employee = await SchedulingEngineService(db).get_employee(employee_id)
    except BookingError as e:
        raise http_error(e)
    except Exception:
        await db.rollback()
        logger.exception("Failed to set working hours", employee_id=employee_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to set working hours",
        )

    return WorkingHoursResponse(
        employee_id=employee_id,
        timezone=str(studio_zone(employee.studio)),
        working_hours=working_hours,
    )


@router.get("/{employee_id}/schedule", response_model=DaySchedule)
async def get_day_schedule(
    employee_id: int,
    date: date = Query(..., description="Studio-local date (YYYY-MM-DD)"),
    db: AsyncSession = Depends(get_db),
):
    """Working hours, bookings, blackouts and free windows of one day."""
    scheduling_service = SchedulingEngineService(db)
    try:
        return await scheduling_service.get_day_schedule(employee_id, date)
    except BookingError as e:
        raise http_error(e)


@router.get("/{employee_id}/bookings", response_model=List[Booking])
async def list_employee_bookings(
    employee_id: int,
    statuses: Optional[List[BookingStatus]] = Query(None, alias="status"),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Bookings of one employee in any status."""
    service = BookingService(db)
    try:
        return await service.list_employee_bookings(
            employee_id, statuses=statuses or [], start=start_date, end=end_date
        )
    except BookingError as e:
        raise http_error(e)


@router.put(
    "/{employee_id}/services/{service_id}", response_model=EmployeeServiceOffering
)
async def assign_service(
    employee_id: int,
    service_id: int,
    assignment: EmployeeServiceAssign,
    db: AsyncSession = Depends(get_db),
):
    """Offer a service at the employee's own price and duration."""
    service = EmployeeManagementService(db)
    try:
        return await service.assign_service(employee_id, service_id, assignment)
    except BookingError as e:
        raise http_error(e)
    except Exception:
        await db.rollback()
        logger.exception(
            "Failed to assign service", employee_id=employee_id, service_id=service_id
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to assign service",
        )


@router.patch(
    "/{employee_id}/services/{service_id}", response_model=EmployeeServiceOffering
)
async def update_employee_service(
    employee_id: int,
    service_id: int,
    update_data: EmployeeServiceUpdate,
    db: AsyncSession = Depends(get_db),
):
    service = EmployeeManagementService(db)
    try:
        return await service.update_employee_service(
            employee_id, service_id, update_data
        )
    except BookingError as e:
        raise http_error(e)


@router.post(
    "/{employee_id}/time-off",
    response_model=TimeOff,
    status_code=status.HTTP_201_CREATED,
)
async def add_time_off(
    employee_id: int,
    time_off_data: TimeOffCreate,
    db: AsyncSession = Depends(get_db),
):
    service = EmployeeManagementService(db)
    try:
        return await service.add_time_off(employee_id, time_off_data)
    except BookingError as e:
        raise http_error(e)
    except Exception:
        await db.rollback()
        logger.exception("Failed to add time off", employee_id=employee_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add time off",
        )


@router.post("/", response_model=Employee, status_code=status.HTTP_201_CREATED)
async def create_employee(
    employee_data: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create an employee; omitted hours default to Mon-Fri 09:00-17:00."""
    service = EmployeeManagementService(db)
    try:
        return await service.create_employee(employee_data)
    except BookingError as e:
        raise http_error(e)
    except Exception:
        await db.rollback()
        logger.exception("Failed to create employee", studio_id=employee_data.studio_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create employee",
        )


@router.get("/", response_model=ServiceEmployeeList)
async def list_employees_for_service(
    service_id: int = Query(..., description="Service ID"),
    db: AsyncSession = Depends(get_db),
):
    """Active employees offering a service, with their price and duration."""
    service = EmployeeManagementService(db)
    try:
        return await service.list_employees_for_service(service_id)
    except BookingError as e:
        raise http_error(e)
