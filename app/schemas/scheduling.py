from datetime import date, datetime
from decimal import Decimal
from typing import List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.working_hours import WeeklySchedule


class AvailableSlot(BaseModel):
    """Candidate bookable window; ephemeral, never persisted."""

    model_config = ConfigDict(frozen=True)

    start_time: datetime
    end_time: datetime


class ServiceSlots(BaseModel):
    employee_id: int
    service_id: int
    date: date
    duration_minutes: int
    buffer_minutes: int
    price: Decimal
    slots: List[AvailableSlot] = Field(default_factory=list)


class AvailableDays(BaseModel):
    employee_id: int
    service_id: int
    start_date: date
    end_date: date
    days: List[date] = Field(default_factory=list)


class TimeWindow(BaseModel):
    start_time: datetime
    end_time: datetime


class BookedWindow(TimeWindow):
    booking_uuid: UUID
    status: str
    blocked_until: datetime


class DaySchedule(BaseModel):
    employee_id: int
    date: date
    timezone: str
    buffer_minutes: int
    working_hours: List[TimeWindow] = Field(default_factory=list)
    blackouts: List[TimeWindow] = Field(default_factory=list)
    bookings: List[BookedWindow] = Field(default_factory=list)
    free_windows: List[TimeWindow] = Field(default_factory=list)


class WorkingHoursResponse(BaseModel):
    employee_id: int
    timezone: str
    working_hours: WeeklySchedule
