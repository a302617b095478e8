from datetime import date as date_type
from datetime import datetime, time, timedelta, timezone
from typing import Optional
from uuid import UUID
from zoneinfo import ZoneInfo
import logging

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.core.exceptions import NotFoundError, ServiceNotOfferedError, ValidationError
from app.models.booking import RELEASED_STATUSES, Booking
from app.models.employee import Employee
from app.models.employee_service import EmployeeService
from app.models.service import Service
from app.models.studio import Studio
from app.models.time_off import EmployeeTimeOff
from app.schemas.scheduling import (
    AvailableSlot,
    BookedWindow,
    DaySchedule,
    ServiceSlots,
    TimeWindow,
)
from app.schemas.working_hours import WeeklySchedule
from app.services.holidays import HolidayService
from app.services.slots import (
    filter_available_slots,
    find_conflicts,
    generate_candidate_slots,
    validate_buffer,
    validate_duration,
)
from app.utils.intervals import Interval, merge, subtract


logger = logging.getLogger(__name__)


def studio_zone(studio: Studio) -> ZoneInfo:
    return ZoneInfo(studio.timezone or "UTC")


def day_bounds(target_date: date_type, tz: ZoneInfo) -> Interval:
    """Local calendar day ``[00:00, next 00:00)`` as a UTC interval."""
    start = datetime.combine(target_date, time.min, tzinfo=tz)
    end = datetime.combine(target_date + timedelta(days=1), time.min, tzinfo=tz)
    return Interval(start.astimezone(timezone.utc), end.astimezone(timezone.utc))


class SchedulingEngineService:
    """Availability engine: working hours, active bookings and blackouts in,
    bookable slots out. Read-only and lock-free."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_working_hours(self, employee_id: int) -> WeeklySchedule:
        """Weekly working-hours template of an employee."""
        employee = await self.get_employee(employee_id)
        return WeeklySchedule.from_rows(employee.working_hours)

    async def get_employee_service(
        self, employee_id: int, service_id: int
    ) -> Optional[EmployeeService]:
        """Employee-service offering row, active or not, or None."""
        result = await self.db.execute(
            select(EmployeeService)
            .options(selectinload(EmployeeService.service))
            .where(
                and_(
                    EmployeeService.employee_id == employee_id,
                    EmployeeService.service_id == service_id,
                )
            )
        )
        return result.scalar_one_or_none()

    async def get_active_offering(
        self, employee_id: int, service_id: int
    ) -> EmployeeService:
        """Active offering for (employee, service) or ServiceNotOfferedError."""
        offering = await self.get_employee_service(employee_id, service_id)
        if (
            offering is None
            or not offering.is_active
            or not offering.service.is_active
        ):
            logger.info(
                f"Service {service_id} is not offered by employee {employee_id}"
            )
            raise ServiceNotOfferedError(
                "Service not offered by this employee",
                employee_id=employee_id,
                service_id=service_id,
            )
        return offering

    async def list_active_bookings(
        self, employee_id: int, start: datetime, end: datetime
    ) -> list[Booking]:
        """Bookings of the employee overlapping ``[start, end)``, excluding
        cancelled and declined ones, ordered by start time."""
        result = await self.db.execute(
            select(Booking)
            .where(
                and_(
                    Booking.employee_id == employee_id,
                    Booking.status.notin_([s.value for s in RELEASED_STATUSES]),
                    Booking.start_time < end,
                    Booking.end_time > start,
                )
            )
            .order_by(Booking.start_time)
        )
        return list(result.scalars().all())

    async def get_blackouts(
        self, employee: Employee, start: datetime, end: datetime
    ) -> list[Interval]:
        """Employee time off and studio public holidays overlapping ``[start, end)``."""
        if not settings.APPLY_BLACKOUTS:
            return []
        studio = employee.studio

        result = await self.db.execute(
            select(EmployeeTimeOff).where(
                and_(
                    EmployeeTimeOff.employee_id == employee.id,
                    EmployeeTimeOff.start_datetime < end,
                    EmployeeTimeOff.end_datetime > start,
                )
            )
        )
        blackouts = [
            Interval(t.start_datetime, t.end_datetime) for t in result.scalars().all()
        ]

        if studio.holiday_country:
            tz = studio_zone(studio)
            blackouts.extend(
                HolidayService.holiday_blackouts(
                    studio.holiday_country,
                    start.astimezone(tz).date(),
                    end.astimezone(tz).date(),
                    tz,
                )
            )
        return merge(blackouts)

    async def is_window_available(
        self,
        employee_id: int,
        start: datetime,
        end: datetime,
        exclude_booking_uuid: Optional[UUID] = None,
    ) -> bool:
        """Whether ``[start, end)`` is clear of buffered bookings and blackouts.

        ``exclude_booking_uuid`` leaves one booking out of the check, e.g. the
        booking being moved or brought back.
        """
        if end <= start:
            raise ValidationError("end must be after start", start=start, end=end)
        employee = await self.get_employee(employee_id)
        buffer_minutes = employee.buffer_time_minutes

        bookings = await self.list_active_bookings(
            employee.id, start - timedelta(minutes=buffer_minutes), end
        )
        booked = [
            Interval(b.start_time, b.end_time)
            for b in bookings
            if b.uuid != exclude_booking_uuid
        ]
        blackouts = await self.get_blackouts(employee, start, end)

        conflicts = find_conflicts(
            Interval(start, end), booked, buffer_minutes, blackouts
        )
        if conflicts:
            logger.debug(
                f"Window {start} - {end} of employee {employee_id} has "
                f"{len(conflicts)} conflicts"
            )
        return not conflicts

    async def compute_available_slots(
        self,
        employee_id: int,
        target_date: date_type,
        duration_minutes: int,
        buffer_minutes: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> list[AvailableSlot]:
        """Bookable windows for an employee on a studio-local date.

        ``buffer_minutes`` defaults to the employee's configured buffer.
        """
        validate_duration(duration_minutes)
        if buffer_minutes is not None:
            validate_buffer(buffer_minutes)

        employee = await self.get_employee(employee_id)
        if buffer_minutes is None:
            buffer_minutes = employee.buffer_time_minutes

        slots_by_day = await self._slots_for_days(
            employee,
            [target_date],
            duration_minutes,
            buffer_minutes,
            now or datetime.now(timezone.utc),
        )
        return slots_by_day[target_date]

    async def get_service_slots(
        self,
        employee_id: int,
        service_id: int,
        target_date: date_type,
        now: Optional[datetime] = None,
    ) -> ServiceSlots:
        """Slots for a service, with duration and price from the offering."""
        offering = await self.get_active_offering(employee_id, service_id)
        employee = await self.get_employee(employee_id)
        slots = await self.compute_available_slots(
            employee_id,
            target_date,
            offering.duration_minutes,
            employee.buffer_time_minutes,
            now=now,
        )
        return ServiceSlots(
            employee_id=employee_id,
            service_id=service_id,
            date=target_date,
            duration_minutes=offering.duration_minutes,
            buffer_minutes=employee.buffer_time_minutes,
            price=offering.price,
            slots=slots,
        )

    async def get_available_days(
        self,
        employee_id: int,
        service_id: int,
        start_date: date_type,
        end_date: date_type,
        now: Optional[datetime] = None,
    ) -> list[date_type]:
        """Dates in ``[start_date, end_date]`` with at least one free slot."""
        if end_date < start_date:
            raise ValidationError("end_date must not be before start_date")
        total_days = (end_date - start_date).days + 1
        if total_days > settings.MAX_AVAILABLE_DAYS_RANGE:
            raise ValidationError(
                f"Date range cannot exceed {settings.MAX_AVAILABLE_DAYS_RANGE} days",
                total_days=total_days,
            )

        offering = await self.get_active_offering(employee_id, service_id)
        employee = await self.get_employee(employee_id)
        dates = [start_date + timedelta(days=i) for i in range(total_days)]

        slots_by_day = await self._slots_for_days(
            employee,
            dates,
            offering.duration_minutes,
            employee.buffer_time_minutes,
            now or datetime.now(timezone.utc),
        )
        available_days = [d for d in dates if slots_by_day[d]]

        logger.info(
            f"Found {len(available_days)} available days out of {total_days} "
            f"for employee {employee_id}, service {service_id}"
        )
        return available_days

    async def get_day_schedule(
        self, employee_id: int, target_date: date_type
    ) -> DaySchedule:
        """Working hours, blackouts, bookings and the free time left over."""
        employee = await self.get_employee(employee_id)
        studio = employee.studio
        tz = studio_zone(studio)
        buffer_minutes = employee.buffer_time_minutes

        day = day_bounds(target_date, tz)
        windows = WeeklySchedule.from_rows(employee.working_hours).to_datetimes(
            target_date, tz
        )
        bookings = await self.list_active_bookings(
            employee.id, day.start - timedelta(minutes=buffer_minutes), day.end
        )
        blackouts = await self.get_blackouts(employee, day.start, day.end)

        blocked = [b.blocked_interval(buffer_minutes) for b in bookings] + blackouts
        free_windows = [
            piece for window in windows for piece in subtract(window, blocked)
        ]

        return DaySchedule(
            employee_id=employee.id,
            date=target_date,
            timezone=str(tz),
            buffer_minutes=buffer_minutes,
            working_hours=[
                TimeWindow(start_time=w.start, end_time=w.end) for w in windows
            ],
            blackouts=[
                TimeWindow(start_time=b.start, end_time=b.end) for b in blackouts
            ],
            bookings=[
                BookedWindow(
                    booking_uuid=b.uuid,
                    status=b.status,
                    start_time=b.start_time,
                    end_time=b.end_time,
                    blocked_until=b.blocked_interval(buffer_minutes).end,
                )
                for b in bookings
            ],
            free_windows=[
                TimeWindow(start_time=f.start, end_time=f.end) for f in free_windows
            ],
        )

    async def _slots_for_days(
        self,
        employee: Employee,
        dates: list[date_type],
        duration_minutes: int,
        buffer_minutes: int,
        now: datetime,
    ) -> dict[date_type, list[AvailableSlot]]:
        """Available slots of each date in ``dates``.

        Bookings and blackouts are read once for the whole range.
        """
        if not employee.is_active:
            logger.info(f"Employee {employee.id} is inactive - no slots")
            return {d: [] for d in dates}

        studio = employee.studio
        tz = studio_zone(studio)
        schedule = WeeklySchedule.from_rows(employee.working_hours)

        range_start = day_bounds(dates[0], tz).start
        range_end = day_bounds(dates[-1], tz).end
        bookings = await self.list_active_bookings(
            employee.id, range_start - timedelta(minutes=buffer_minutes), range_end
        )
        booked = [Interval(b.start_time, b.end_time) for b in bookings]
        blackouts = await self.get_blackouts(employee, range_start, range_end)

        slots_by_day = {}
        for target_date in dates:
            windows = schedule.to_datetimes(target_date, tz)
            if not windows:
                logger.debug(f"Employee {employee.id} does not work on {target_date}")
                slots_by_day[target_date] = []
                continue

            candidates = generate_candidate_slots(windows, duration_minutes)
            slots = filter_available_slots(
                candidates, booked, buffer_minutes, now, blackouts
            )
            logger.debug(
                f"Employee {employee.id} on {target_date}: "
                f"{len(candidates)} candidates, {len(slots)} available"
            )
            slots_by_day[target_date] = slots
        return slots_by_day

    async def get_employee(self, employee_id: int) -> Employee:
        """Employee with studio and working hours loaded, or NotFoundError."""
        result = await self.db.execute(
            select(Employee)
            .options(
                selectinload(Employee.studio),
                selectinload(Employee.working_hours),
            )
            .where(Employee.id == employee_id)
            .execution_options(populate_existing=True)
        )
        employee = result.scalar_one_or_none()
        if not employee:
            logger.warning(f"Employee not found: {employee_id}")
            raise NotFoundError("Employee not found", employee_id=employee_id)
        return employee

    async def get_service(self, service_id: int) -> Service:
        result = await self.db.execute(select(Service).where(Service.id == service_id))
        service = result.scalar_one_or_none()
        if not service:
            raise NotFoundError("Service not found", service_id=service_id)
        return service

    async def get_studio(self, studio_id: int) -> Studio:
        result = await self.db.execute(select(Studio).where(Studio.id == studio_id))
        studio = result.scalar_one_or_none()
        if not studio:
            raise NotFoundError("Studio not found", studio_id=studio_id)
        return studio
