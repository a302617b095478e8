from typing import Optional

import structlog
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.models.employee import Employee
from app.models.employee_service import EmployeeService
from app.models.service import Service
from app.models.studio import Studio
from app.models.time_off import EmployeeTimeOff
from app.models.working_hours import WorkingHours
from app.schemas.employee import (
    EmployeeCreate,
    EmployeeServiceAssign,
    EmployeeServiceUpdate,
    EmployeeUpdate,
    ServiceEmployee,
    ServiceEmployeeList,
    TimeOffCreate,
)
from app.schemas.working_hours import WeeklySchedule

logger = structlog.get_logger(__name__)


def _coerce(schema, data):
    """Validate a plain dict into ``schema``, reporting errors as ValidationError."""
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(str(e), errors=e.errors())


class EmployeeManagementService:
    """Employee configuration: profile, weekly hours, offered services, time off."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_employee(self, employee_data: EmployeeCreate) -> Employee:
        """Create an employee; hours default to Mon-Fri 09:00-17:00."""
        employee_data = _coerce(EmployeeCreate, employee_data)
        await self._get_studio_id(employee_data.studio_id)

        buffer_minutes = employee_data.buffer_time_minutes
        if buffer_minutes is None:
            buffer_minutes = settings.DEFAULT_BUFFER_MINUTES

        employee = Employee(
            studio_id=employee_data.studio_id,
            name=employee_data.name,
            title=employee_data.title,
            bio=employee_data.bio,
            photo_url=employee_data.photo_url,
            buffer_time_minutes=buffer_minutes,
            working_hours=self._working_hours_rows(
                employee_data.working_hours or WeeklySchedule.default()
            ),
        )
        self.db.add(employee)
        await self.db.commit()

        logger.info(
            "Employee created",
            employee_id=employee.id,
            studio_id=employee.studio_id,
            buffer_time_minutes=buffer_minutes,
        )
        return await self.get_employee(employee.id)

    async def get_employee(self, employee_id: int) -> Employee:
        result = await self.db.execute(
            select(Employee)
            .options(selectinload(Employee.working_hours))
            .where(Employee.id == employee_id)
            .execution_options(populate_existing=True)
        )
        employee = result.scalar_one_or_none()
        if not employee:
            raise NotFoundError("Employee not found", employee_id=employee_id)
        return employee

    async def update_employee(
        self, employee_id: int, update_data: EmployeeUpdate
    ) -> Employee:
        """Merge only the fields present in the patch."""
        update_data = _coerce(EmployeeUpdate, update_data)
        employee = await self.get_employee(employee_id)

        changes = update_data.model_dump(exclude_unset=True, exclude={"working_hours"})
        for field, value in changes.items():
            setattr(employee, field, value)

        if "working_hours" in update_data.model_fields_set:
            employee.working_hours = self._working_hours_rows(
                update_data.working_hours
            )

        await self.db.commit()
        logger.info(
            "Employee updated",
            employee_id=employee.id,
            fields=sorted(update_data.model_fields_set),
        )
        return await self.get_employee(employee.id)

    async def set_working_hours(
        self, employee_id: int, schedule: WeeklySchedule
    ) -> WeeklySchedule:
        """Replace the employee's weekly template."""
        schedule = _coerce(WeeklySchedule, schedule)
        employee = await self.get_employee(employee_id)
        employee.working_hours = self._working_hours_rows(schedule)
        await self.db.commit()

        logger.info("Working hours replaced", employee_id=employee.id)
        employee = await self.get_employee(employee.id)
        return WeeklySchedule.from_rows(employee.working_hours)

    async def assign_service(
        self,
        employee_id: int,
        service_id: int,
        assignment: EmployeeServiceAssign,
    ) -> EmployeeService:
        """Create or replace the employee's offering of a service."""
        assignment = _coerce(EmployeeServiceAssign, assignment)
        employee = await self.get_employee(employee_id)
        service = await self._get_service(service_id)
        if service.studio_id != employee.studio_id:
            raise NotFoundError(
                "Service not found in this studio",
                service_id=service_id,
                studio_id=employee.studio_id,
            )

        offering = await self._get_offering(employee_id, service_id)
        if offering is None:
            offering = EmployeeService(employee_id=employee_id, service_id=service_id)
            self.db.add(offering)
        offering.price = assignment.price
        offering.duration_minutes = assignment.duration_minutes
        offering.is_active = assignment.is_active

        await self.db.commit()
        await self.db.refresh(offering)
        logger.info(
            "Service assigned",
            employee_id=employee_id,
            service_id=service_id,
            price=str(offering.price),
            duration_minutes=offering.duration_minutes,
        )
        return offering

    async def update_employee_service(
        self,
        employee_id: int,
        service_id: int,
        update_data: EmployeeServiceUpdate,
    ) -> EmployeeService:
        update_data = _coerce(EmployeeServiceUpdate, update_data)
        offering = await self._get_offering(employee_id, service_id)
        if offering is None:
            raise NotFoundError(
                "Employee service not found",
                employee_id=employee_id,
                service_id=service_id,
            )

        for field, value in update_data.model_dump(exclude_unset=True).items():
            setattr(offering, field, value)

        await self.db.commit()
        await self.db.refresh(offering)
        return offering

    async def add_time_off(
        self, employee_id: int, time_off_data: TimeOffCreate
    ) -> EmployeeTimeOff:
        time_off_data = _coerce(TimeOffCreate, time_off_data)
        employee = await self.get_employee(employee_id)

        time_off = EmployeeTimeOff(
            employee_id=employee.id,
            start_datetime=time_off_data.start_datetime,
            end_datetime=time_off_data.end_datetime,
            type=time_off_data.type.value,
            reason=time_off_data.reason,
            is_all_day=time_off_data.is_all_day,
        )
        self.db.add(time_off)
        await self.db.commit()
        await self.db.refresh(time_off)

        logger.info(
            "Time off added",
            employee_id=employee.id,
            start=time_off.start_datetime.isoformat(),
            end=time_off.end_datetime.isoformat(),
        )
        return time_off

    async def list_employees_for_service(self, service_id: int) -> ServiceEmployeeList:
        """Active employees with an active offering of ``service_id``, by name."""
        await self._get_service(service_id)
        result = await self.db.execute(
            select(Employee, EmployeeService)
            .join(EmployeeService, EmployeeService.employee_id == Employee.id)
            .where(
                and_(
                    EmployeeService.service_id == service_id,
                    EmployeeService.is_active,
                    Employee.is_active,
                )
            )
            .order_by(Employee.name)
        )
        return ServiceEmployeeList(
            service_id=service_id,
            employees=[
                ServiceEmployee(
                    employee_id=employee.id,
                    employee_name=employee.name,
                    employee_title=employee.title,
                    price=offering.price,
                    duration_minutes=offering.duration_minutes,
                )
                for employee, offering in result.all()
            ],
        )

    @staticmethod
    def _working_hours_rows(schedule: WeeklySchedule) -> list[WorkingHours]:
        return [
            WorkingHours(
                weekday=weekday.name,
                start_time=time_range.start_time,
                end_time=time_range.end_time,
            )
            for weekday, time_range in schedule.iter_ranges()
        ]

    async def _get_offering(
        self, employee_id: int, service_id: int
    ) -> Optional[EmployeeService]:
        result = await self.db.execute(
            select(EmployeeService).where(
                and_(
                    EmployeeService.employee_id == employee_id,
                    EmployeeService.service_id == service_id,
                )
            )
        )
        return result.scalar_one_or_none()

    async def _get_service(self, service_id: int) -> Service:
        result = await self.db.execute(select(Service).where(Service.id == service_id))
        service = result.scalar_one_or_none()
        if not service:
            raise NotFoundError("Service not found", service_id=service_id)
        return service

    async def _get_studio_id(self, studio_id: int) -> int:
        result = await self.db.execute(select(Studio.id).where(Studio.id == studio_id))
        if result.scalar_one_or_none() is None:
            raise NotFoundError("Studio not found", studio_id=studio_id)
        return studio_id
