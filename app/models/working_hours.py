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
    Time,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.types import UTCDateTime, utcnow


class WeekDay(enum.Enum):
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @property
    def key(self) -> str:
        """Lower-case name used as the weekly schedule key."""
        return self.name.lower()

    @classmethod
    def for_date(cls, value) -> "WeekDay":
        return cls(value.weekday())


class WorkingHours(Base):
    """One recurring working interval of an employee on a weekday.

    An employee may have several rows for the same weekday (split shifts).
    """

    __tablename__ = "working_hours"

    # Core identity
    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(
        UUID(as_uuid=True), unique=True, nullable=False, default=uuid.uuid4, index=True
    )
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)

    # Schedule details
    weekday = Column(String(20), nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)

    # Audit timestamps
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)

    employee = relationship("Employee", back_populates="working_hours")

    __table_args__ = (
        Index("ix_working_hours_employee_weekday", "employee_id", "weekday"),
        CheckConstraint("end_time > start_time", name="check_working_hours_order"),
    )

    def __repr__(self):
        return (
            f"<WorkingHours(id={self.id}, employee_id={self.employee_id}, "
            f"{self.weekday}: {self.start_time}-{self.end_time})>"
        )
