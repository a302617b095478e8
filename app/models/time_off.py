import enum
import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.types import UTCDateTime, utcnow


class TimeOffType(enum.Enum):
    VACATION = "VACATION"
    SICK_LEAVE = "SICK_LEAVE"
    PERSONAL = "PERSONAL"
    HOLIDAY = "HOLIDAY"
    OTHER = "OTHER"


class EmployeeTimeOff(Base):
    """Full-day or partial blackout for one employee."""

    __tablename__ = "employee_time_off"

    # Core identity
    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(
        UUID(as_uuid=True), unique=True, nullable=False, default=uuid.uuid4, index=True
    )
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)

    # Blackout period, half-open
    start_datetime = Column(UTCDateTime, nullable=False)
    end_datetime = Column(UTCDateTime, nullable=False)

    # Type and details
    type = Column(String(20), nullable=False, default=TimeOffType.PERSONAL.value)
    reason = Column(Text, nullable=True)
    is_all_day = Column(Boolean, default=False, nullable=False)

    # Audit timestamps
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)

    employee = relationship("Employee", back_populates="time_offs")

    __table_args__ = (
        Index("ix_time_off_employee_dates", "employee_id", "start_datetime", "end_datetime"),
        CheckConstraint("end_datetime > start_datetime", name="check_time_off_order"),
    )

    def __repr__(self):
        return (
            f"<EmployeeTimeOff(id={self.id}, employee_id={self.employee_id}, "
            f"type={self.type}, {self.start_datetime} - {self.end_datetime})>"
        )
