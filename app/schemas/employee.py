from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.core.config import settings
from app.models.time_off import TimeOffType
from app.schemas.working_hours import WeeklySchedule


def _as_utc(v: datetime) -> datetime:
    if v.tzinfo is None:
        v = v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


class EmployeeCreate(BaseModel):
    studio_id: int
    name: str = Field(..., min_length=1, max_length=100)
    title: str = Field(..., min_length=1, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)
    photo_url: Optional[str] = Field(None, max_length=500)
    working_hours: Optional[WeeklySchedule] = None
    buffer_time_minutes: Optional[int] = Field(
        None, ge=0, le=settings.MAX_BUFFER_MINUTES
    )


class EmployeeUpdate(BaseModel):
    """Partial update; only explicitly provided fields are merged."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)
    photo_url: Optional[str] = Field(None, max_length=500)
    working_hours: Optional[WeeklySchedule] = None
    buffer_time_minutes: Optional[int] = Field(
        None, ge=0, le=settings.MAX_BUFFER_MINUTES
    )
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def reject_null_required(self):
        for field in (
            "name", "title", "working_hours", "buffer_time_minutes", "is_active"
        ):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class Employee(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    uuid: UUID
    studio_id: int
    name: str
    title: str
    bio: Optional[str] = None
    photo_url: Optional[str] = None
    buffer_time_minutes: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


class EmployeeServiceAssign(BaseModel):
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    duration_minutes: int = Field(..., gt=0, le=24 * 60)
    is_active: bool = True


class EmployeeServiceUpdate(BaseModel):
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    duration_minutes: Optional[int] = Field(None, gt=0, le=24 * 60)
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def reject_null_fields(self):
        for field in self.model_fields_set:
            if getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class EmployeeServiceOffering(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    uuid: UUID
    employee_id: int
    service_id: int
    price: Decimal
    duration_minutes: int
    is_active: bool


class TimeOffCreate(BaseModel):
    start_datetime: datetime
    end_datetime: datetime
    type: TimeOffType = TimeOffType.PERSONAL
    reason: Optional[str] = Field(None, max_length=500)
    is_all_day: bool = False

    @field_validator("start_datetime", "end_datetime")
    @classmethod
    def normalize_datetimes(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @model_validator(mode="after")
    def validate_order(self):
        if self.end_datetime <= self.start_datetime:
            raise ValueError("end_datetime must be after start_datetime")
        return self


class TimeOff(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    uuid: UUID
    employee_id: int
    start_datetime: datetime
    end_datetime: datetime
    type: TimeOffType
    reason: Optional[str] = None
    is_all_day: bool


class ServiceEmployee(BaseModel):
    """Employee offering a given service, for booking pickers."""

    employee_id: int
    employee_name: str
    employee_title: str
    price: Decimal
    duration_minutes: int


class ServiceEmployeeList(BaseModel):
    service_id: int
    employees: List[ServiceEmployee] = Field(default_factory=list)
