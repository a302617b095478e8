from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence, Union
from uuid import UUID

import structlog

from app.core.config import settings
from app.core.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    SlotNoLongerAvailableError,
    ValidationError,
)
from app.models.booking import RELEASED_STATUSES, Booking, BookingStatus
from app.repositories.booking import BookingRepository, employee_locks
from app.schemas.booking import BookingCreate, BookingFilters, BookingStatusUpdate
from app.services.scheduling import SchedulingEngineService, day_bounds, studio_zone

logger = structlog.get_logger(__name__)


class BookingService:
    """Booking lifecycle: conflict-free creation, status changes and listings."""

    def __init__(self, db):
        self.db = db
        self.repository = BookingRepository(db)
        self.scheduling_engine = SchedulingEngineService(db)

    async def create_booking(
        self, booking_data: BookingCreate, now: Optional[datetime] = None
    ) -> Booking:
        """Create a PENDING booking for an available window.

        Duration and price come from the employee-service offering; the
        price is a snapshot and never follows later offering changes.
        """
        now = now or datetime.now(timezone.utc)

        studio = await self.scheduling_engine.get_studio(booking_data.studio_id)
        employee = await self.scheduling_engine.get_employee(booking_data.employee_id)
        if employee.studio_id != studio.id:
            raise NotFoundError(
                "Employee not found in this studio",
                studio_id=studio.id,
                employee_id=employee.id,
            )
        service = await self.scheduling_engine.get_service(booking_data.service_id)
        if service.studio_id != studio.id:
            raise NotFoundError(
                "Service not found in this studio",
                studio_id=studio.id,
                service_id=service.id,
            )
        if not employee.is_active:
            raise NotFoundError("Employee is not active", employee_id=employee.id)
        offering = await self.scheduling_engine.get_active_offering(
            employee.id, service.id
        )

        start_time = booking_data.start_time
        if start_time <= now:
            raise ValidationError(
                "Booking start time must be in the future",
                start_time=start_time,
            )
        end_time = start_time + timedelta(minutes=offering.duration_minutes)

        blackouts = await self.scheduling_engine.get_blackouts(
            employee, start_time, end_time
        )

        booking = Booking(
            studio_id=studio.id,
            service_id=service.id,
            employee_id=employee.id,
            start_time=start_time,
            end_time=end_time,
            status=BookingStatus.PENDING.value,
            customer_name=booking_data.customer_name,
            customer_phone=booking_data.customer_phone,
            customer_email=booking_data.customer_email,
            price=offering.price,
            notes=booking_data.notes,
        )
        booking = await self.repository.create_if_no_conflict(
            booking, employee.buffer_time_minutes, blackouts
        )

        logger.info(
            "Booking created",
            booking_uuid=str(booking.uuid),
            studio_id=studio.id,
            employee_id=employee.id,
            service_id=service.id,
            start_time=start_time.isoformat(),
        )
        return booking

    async def get_booking(self, booking_uuid: Union[UUID, str]) -> Booking:
        booking = await self.repository.get_by_uuid(self._parse_uuid(booking_uuid))
        if not booking:
            raise NotFoundError("Booking not found", booking_uuid=str(booking_uuid))
        return booking

    async def update_booking_status(
        self, booking_uuid: Union[UUID, str], update: BookingStatusUpdate
    ) -> Booking:
        """Move a booking to ``update.status`` and merge the provided fields.

        With ``ENFORCE_STATUS_TRANSITIONS`` off, any target is accepted and a
        change to the current status leaves status history untouched. Bringing
        a cancelled or declined booking back re-checks its window first.
        """
        booking = await self.get_booking(booking_uuid)
        current = booking.status_enum
        new_status = update.status

        if settings.ENFORCE_STATUS_TRANSITIONS and not booking.can_transition_to(
            new_status
        ):
            logger.info(
                "Rejected status transition",
                booking_uuid=str(booking.uuid),
                current=current.value,
                requested=new_status.value,
            )
            raise InvalidTransitionError(
                f"Cannot change booking from {current.value} to {new_status.value}",
                current=current.value,
                requested=new_status.value,
            )

        if not booking.is_active and new_status not in RELEASED_STATUSES:
            async with employee_locks.get(booking.employee_id):
                await self._ensure_window_free(booking)
                booking = await self._apply_status(booking, new_status, update)
        else:
            booking = await self._apply_status(booking, new_status, update)

        logger.info(
            "Booking status updated",
            booking_uuid=str(booking.uuid),
            previous_status=current.value,
            status=booking.status,
        )
        return booking

    async def _apply_status(
        self, booking: Booking, new_status: BookingStatus, update: BookingStatusUpdate
    ) -> Booking:
        if settings.ENFORCE_STATUS_TRANSITIONS or new_status != booking.status_enum:
            booking.transition_to(new_status)
        return await self.repository.apply_patch(booking, update.changes())

    async def _ensure_window_free(self, booking: Booking) -> None:
        available = await self.scheduling_engine.is_window_available(
            booking.employee_id,
            booking.start_time,
            booking.end_time,
            exclude_booking_uuid=booking.uuid,
        )
        if not available:
            logger.info(
                "Cannot reactivate booking, window is taken",
                booking_uuid=str(booking.uuid),
                employee_id=booking.employee_id,
            )
            raise SlotNoLongerAvailableError(
                employee_id=booking.employee_id,
                start_time=booking.start_time,
            )

    async def confirm_booking(self, booking_uuid: Union[UUID, str]) -> Booking:
        return await self.update_booking_status(
            booking_uuid, BookingStatusUpdate(status=BookingStatus.CONFIRMED)
        )

    async def decline_booking(self, booking_uuid: Union[UUID, str]) -> Booking:
        return await self.update_booking_status(
            booking_uuid, BookingStatusUpdate(status=BookingStatus.DECLINED)
        )

    async def cancel_booking(self, booking_uuid: Union[UUID, str]) -> Booking:
        return await self.update_booking_status(
            booking_uuid, BookingStatusUpdate(status=BookingStatus.CANCELLED)
        )

    async def complete_booking(
        self, booking_uuid: Union[UUID, str], private_notes: Optional[str] = None
    ) -> Booking:
        fields = {"status": BookingStatus.COMPLETED}
        if private_notes is not None:
            fields["private_notes"] = private_notes
        return await self.update_booking_status(
            booking_uuid, BookingStatusUpdate(**fields)
        )

    async def mark_no_show(self, booking_uuid: Union[UUID, str]) -> Booking:
        return await self.update_booking_status(
            booking_uuid, BookingStatusUpdate(status=BookingStatus.NO_SHOW)
        )

    async def list_studio_bookings(
        self, filters: BookingFilters
    ) -> tuple[list[Booking], int]:
        await self.scheduling_engine.get_studio(filters.studio_id)
        return await self.repository.list_for_studio(
            filters.studio_id,
            statuses=filters.statuses,
            employee_id=filters.employee_id,
            start=filters.start_date,
            end=filters.end_date,
            limit=filters.limit,
            offset=filters.offset,
        )

    async def list_employee_bookings(
        self,
        employee_id: int,
        statuses: Sequence[BookingStatus] = (),
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Booking]:
        """Bookings of one employee in any status, ordered by start time."""
        employee = await self.scheduling_engine.get_employee(employee_id)
        bookings, _ = await self.repository.list_for_studio(
            employee.studio_id,
            statuses=statuses,
            employee_id=employee.id,
            start=start,
            end=end,
            limit=500,
        )
        return bookings

    async def list_upcoming_bookings(
        self, studio_id: int, limit: int = 10, now: Optional[datetime] = None
    ) -> list[Booking]:
        """Next PENDING or CONFIRMED bookings of a studio."""
        await self.scheduling_engine.get_studio(studio_id)
        bookings, _ = await self.repository.list_for_studio(
            studio_id,
            statuses=(BookingStatus.PENDING, BookingStatus.CONFIRMED),
            start=now or datetime.now(timezone.utc),
            limit=limit,
        )
        return bookings

    async def list_todays_bookings(
        self, studio_id: int, now: Optional[datetime] = None
    ) -> list[Booking]:
        """PENDING or CONFIRMED bookings on the studio's current local day."""
        studio = await self.scheduling_engine.get_studio(studio_id)
        tz = studio_zone(studio)
        today = (now or datetime.now(timezone.utc)).astimezone(tz).date()
        day = day_bounds(today, tz)
        bookings, _ = await self.repository.list_for_studio(
            studio_id,
            statuses=(BookingStatus.PENDING, BookingStatus.CONFIRMED),
            start=day.start,
            end=day.end,
            limit=200,
        )
        return bookings

    @staticmethod
    def _parse_uuid(value: Union[UUID, str]) -> UUID:
        if isinstance(value, UUID):
            return value
        try:
            return UUID(str(value))
        except ValueError:
            raise NotFoundError("Booking not found", booking_uuid=str(value))
