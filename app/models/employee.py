import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.types import UTCDateTime, utcnow


class Employee(Base):
    """Service provider within a studio; owns working hours and buffer policy."""

    __tablename__ = "employees"

    # Core identity
    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(
        UUID(as_uuid=True), unique=True, nullable=False, default=uuid.uuid4, index=True
    )
    studio_id = Column(Integer, ForeignKey("studios.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)

    # Profile information
    title = Column(String(100), nullable=False)
    bio = Column(Text, nullable=True)
    photo_url = Column(String(500), nullable=True)

    # Booking settings
    buffer_time_minutes = Column(Integer, nullable=False, default=15)
    is_active = Column(Boolean, default=True, nullable=False)

    # Audit timestamps
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "buffer_time_minutes >= 0 AND buffer_time_minutes <= 60",
            name="check_buffer_time_range",
        ),
    )

    # Relationships
    studio = relationship("Studio", back_populates="employees")
    employee_services = relationship(
        "EmployeeService", back_populates="employee", cascade="all, delete-orphan"
    )
    working_hours = relationship(
        "WorkingHours",
        back_populates="employee",
        cascade="all, delete-orphan",
        order_by="WorkingHours.start_time",
    )
    time_offs = relationship(
        "EmployeeTimeOff", back_populates="employee", cascade="all, delete-orphan"
    )
    # Bookings reference employees by id only; history is never cascaded.

    def __repr__(self):
        return (
            f"<Employee(id={self.id}, name='{self.name}', "
            f"buffer={self.buffer_time_minutes}, active={self.is_active})>"
        )
