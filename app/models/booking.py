import enum
import uuid
from datetime import timedelta

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.types import UTCDateTime, utcnow
from app.utils.intervals import Interval


class BookingStatus(enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    DECLINED = "DECLINED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


# Statuses whose time window is free again.
RELEASED_STATUSES = (BookingStatus.CANCELLED, BookingStatus.DECLINED)

ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: (
        BookingStatus.CONFIRMED,
        BookingStatus.DECLINED,
        BookingStatus.CANCELLED,
    ),
    BookingStatus.CONFIRMED: (
        BookingStatus.COMPLETED,
        BookingStatus.NO_SHOW,
        BookingStatus.CANCELLED,
    ),
    BookingStatus.DECLINED: (),  # Final state
    BookingStatus.COMPLETED: (),  # Final state
    BookingStatus.CANCELLED: (),  # Final state
    BookingStatus.NO_SHOW: (),  # Final state
}


class Booking(Base):
    """Customer booking of one service with one employee.

    ``price`` is a snapshot of the employee-service price at creation time.
    """

    __tablename__ = "bookings"

    # Core identity
    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(
        UUID(as_uuid=True), unique=True, nullable=False, default=uuid.uuid4, index=True
    )
    studio_id = Column(Integer, ForeignKey("studios.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)

    # Scheduling details
    start_time = Column(UTCDateTime, nullable=False)
    end_time = Column(UTCDateTime, nullable=False)

    # Status management
    status = Column(
        String(20), nullable=False, default=BookingStatus.PENDING.value, index=True
    )
    previous_status = Column(String(20), nullable=True)
    status_changed_at = Column(UTCDateTime, default=utcnow, nullable=False)

    # Customer contact
    customer_name = Column(String(100), nullable=False)
    customer_phone = Column(String(20), nullable=False)
    customer_email = Column(String(255), nullable=True)

    # Pricing snapshot
    price = Column(Numeric(10, 2), nullable=False)

    # Notes
    notes = Column(Text, nullable=True)
    private_notes = Column(Text, nullable=True)

    # Audit timestamps
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="check_end_after_start"),
        CheckConstraint("price >= 0", name="check_non_negative_price"),
        Index("ix_bookings_employee_window", "employee_id", "start_time", "end_time"),
    )

    # Relationships (read-only references, no cascading ownership)
    studio = relationship("Studio")
    service = relationship("Service")
    employee = relationship("Employee")

    @property
    def status_enum(self) -> BookingStatus:
        return BookingStatus(self.status)

    @property
    def is_active(self) -> bool:
        """Whether this booking still occupies its time window."""
        return self.status_enum not in RELEASED_STATUSES

    def blocked_interval(self, buffer_minutes: int = 0) -> Interval:
        """Window this booking blocks, extended by the trailing buffer."""
        return Interval(self.start_time, self.end_time + timedelta(minutes=buffer_minutes))

    def can_transition_to(self, new_status: BookingStatus) -> bool:
        return new_status in ALLOWED_TRANSITIONS.get(self.status_enum, ())

    def transition_to(self, new_status: BookingStatus) -> None:
        """Apply a status change without checking the transition table."""
        self.previous_status = self.status
        self.status = new_status.value
        self.status_changed_at = utcnow()

    def __repr__(self):
        return (
            f"<Booking(id={self.id}, status='{self.status}', "
            f"start='{self.start_time}', employee_id={self.employee_id})>"
        )
