from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.booking import BookingStatus
from app.utils.validation import validate_email_format, validate_phone_number


class BookingCreate(BaseModel):
    """Customer-triggered booking request."""

    studio_id: int
    service_id: int
    employee_id: int
    start_time: datetime
    customer_name: str = Field(..., min_length=1, max_length=100)
    customer_phone: str = Field(..., min_length=1, max_length=20)
    customer_email: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("start_time")
    @classmethod
    def normalize_start_time(cls, v: datetime) -> datetime:
        # Naive instants are taken as UTC
        if v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @field_validator("customer_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("customer_name must not be blank")
        return v

    @field_validator("customer_phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        if not validate_phone_number(v):
            raise ValueError("customer_phone is not a valid phone number")
        return v.strip()

    @field_validator("customer_email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not validate_email_format(v):
            raise ValueError("customer_email is not a valid email address")
        return v or None


class BookingStatusUpdate(BaseModel):
    """Status patch; ``private_notes`` is applied only when explicitly given.

    Presence is tracked by ``model_fields_set``, so ``private_notes=None``
    clears the note while omitting it leaves the note untouched.
    """

    status: BookingStatus
    private_notes: Optional[str] = Field(None, max_length=500)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude={"status"})


class Booking(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    uuid: UUID
    studio_id: int
    service_id: int
    employee_id: int
    start_time: datetime
    end_time: datetime
    status: BookingStatus
    previous_status: Optional[BookingStatus] = None
    status_changed_at: datetime
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    price: Decimal
    notes: Optional[str] = None
    private_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class BookingFilters(BaseModel):
    studio_id: int
    employee_id: Optional[int] = None
    statuses: List[BookingStatus] = Field(default_factory=list)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    limit: int = Field(50, ge=1, le=200)
    offset: int = Field(0, ge=0)


class BookingList(BaseModel):
    bookings: List[Booking]
    total_count: int
    limit: int
    offset: int
