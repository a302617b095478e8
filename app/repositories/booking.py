"""Booking persistence and the conflict-checked allocator."""

import asyncio
import weakref
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence
from uuid import UUID

import structlog
from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import SlotNoLongerAvailableError
from app.models.booking import RELEASED_STATUSES, Booking, BookingStatus
from app.models.employee import Employee
from app.services.slots import find_conflicts
from app.utils.intervals import Interval

logger = structlog.get_logger(__name__)


class EmployeeLocks:
    """One ``asyncio.Lock`` per employee, per running event loop.

    Serializes allocations for the same employee inside this process; the
    row lock taken in the transaction covers other processes.
    """

    def __init__(self):
        self._locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, dict]" = (
            weakref.WeakKeyDictionary()
        )

    def get(self, employee_id: int) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        locks = self._locks.get(loop)
        if locks is None:
            locks = self._locks[loop] = {}
        lock = locks.get(employee_id)
        if lock is None:
            lock = locks[employee_id] = asyncio.Lock()
        return lock


employee_locks = EmployeeLocks()


class BookingRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_uuid(self, booking_uuid: UUID) -> Optional[Booking]:
        result = await self.db.execute(
            select(Booking).where(Booking.uuid == booking_uuid)
        )
        return result.scalar_one_or_none()

    async def find_overlapping(
        self, employee_id: int, start: datetime, end: datetime
    ) -> list[Booking]:
        """Active bookings of the employee overlapping ``[start, end)``."""
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

    async def list_for_studio(
        self,
        studio_id: int,
        statuses: Sequence[BookingStatus] = (),
        employee_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Booking], int]:
        """Studio bookings ordered by start time, with the unpaged total."""
        conditions = [Booking.studio_id == studio_id]
        if employee_id is not None:
            conditions.append(Booking.employee_id == employee_id)
        if statuses:
            conditions.append(Booking.status.in_([s.value for s in statuses]))
        if start is not None:
            conditions.append(Booking.start_time >= start)
        if end is not None:
            conditions.append(Booking.start_time < end)

        total = await self.db.scalar(
            select(func.count()).select_from(Booking).where(and_(*conditions))
        )
        result = await self.db.execute(
            select(Booking)
            .where(and_(*conditions))
            .order_by(Booking.start_time, Booking.id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def create_if_no_conflict(
        self,
        booking: Booking,
        buffer_minutes: int,
        blackouts: Iterable[Interval] = (),
    ) -> Booking:
        """Insert ``booking`` unless its window hits an active booking or a blackout.

        The conflict re-check and the insert run under the employee lock and
        inside one transaction, so two concurrent requests for overlapping
        windows of the same employee cannot both succeed.
        """
        window = Interval(booking.start_time, booking.end_time)
        blackouts = list(blackouts)

        async with employee_locks.get(booking.employee_id):
            try:
                # Row lock on the employee; a no-op on SQLite
                await self.db.execute(
                    select(Employee.id)
                    .where(Employee.id == booking.employee_id)
                    .with_for_update()
                )

                existing = await self.find_overlapping(
                    booking.employee_id,
                    window.start - timedelta(minutes=buffer_minutes),
                    window.end,
                )
                conflicts = find_conflicts(
                    window,
                    [Interval(b.start_time, b.end_time) for b in existing],
                    buffer_minutes,
                    blackouts,
                )
                if conflicts:
                    await self.db.rollback()
                    logger.info(
                        "Booking window no longer available",
                        employee_id=booking.employee_id,
                        start_time=window.start.isoformat(),
                        end_time=window.end.isoformat(),
                        conflicts=len(conflicts),
                    )
                    raise SlotNoLongerAvailableError(
                        employee_id=booking.employee_id,
                        start_time=window.start,
                    )

                self.db.add(booking)
                await self.db.flush()
                await self.db.commit()
            except SlotNoLongerAvailableError:
                raise
            except Exception:
                await self.db.rollback()
                raise

        await self.db.refresh(booking)
        return booking

    async def apply_patch(self, booking: Booking, changes: dict) -> Booking:
        """Merge only the fields present in ``changes`` and commit."""
        for field, value in changes.items():
            setattr(booking, field, value)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(booking)
        return booking
