import uuid

from sqlalchemy import (
    Boolean,
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


class Service(Base):
    """Studio offering; price and duration live on EmployeeService."""

    __tablename__ = "services"

    # Core identity
    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(
        UUID(as_uuid=True), unique=True, nullable=False, default=uuid.uuid4, index=True
    )
    studio_id = Column(Integer, ForeignKey("studios.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=False)

    # Display and organization
    image_url = Column(String(500), nullable=True)
    display_order = Column(Integer, default=0, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)

    # Audit timestamps
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    studio = relationship("Studio", back_populates="services")
    employee_services = relationship(
        "EmployeeService", back_populates="service", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Service(id={self.id}, name='{self.name}', category='{self.category}')>"
