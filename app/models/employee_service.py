import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Integer,
    Numeric,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.types import UTCDateTime, utcnow


class EmployeeService(Base):
    """Employee-service junction fixing price and duration for one employee."""

    __tablename__ = "employee_services"

    # Core identity
    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(
        UUID(as_uuid=True), unique=True, nullable=False, default=uuid.uuid4, index=True
    )
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)

    # Authoritative pricing and timing
    price = Column(Numeric(10, 2), nullable=False)
    duration_minutes = Column(Integer, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)

    # Audit timestamps
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("employee_id", "service_id", name="uq_employee_service"),
        CheckConstraint("price > 0", name="check_positive_price"),
        CheckConstraint("duration_minutes > 0", name="check_positive_duration"),
    )

    # Relationships
    employee = relationship("Employee", back_populates="employee_services")
    service = relationship("Service", back_populates="employee_services")

    def __repr__(self):
        return (
            f"<EmployeeService(id={self.id}, employee_id={self.employee_id}, "
            f"service_id={self.service_id}, price={self.price}, "
            f"duration={self.duration_minutes}, active={self.is_active})>"
        )
