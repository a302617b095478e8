import uuid

from sqlalchemy import Boolean, Column, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.types import UTCDateTime, utcnow


class Studio(Base):
    """Tenant studio with timezone and holiday calendar settings."""

    __tablename__ = "studios"

    # Core identity
    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(
        UUID(as_uuid=True), unique=True, nullable=False, default=uuid.uuid4, index=True
    )
    name = Column(String(100), nullable=False)
    subdomain = Column(String(63), unique=True, nullable=False, index=True)

    # Contact
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)

    # Location & calendar
    timezone = Column(String(50), nullable=False, default="UTC")
    holiday_country = Column(String(2), nullable=True)  # ISO 3166 alpha-2

    is_active = Column(Boolean, default=True, nullable=False)

    # Audit timestamps
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    employees = relationship("Employee", back_populates="studio")
    services = relationship("Service", back_populates="studio")

    def __repr__(self):
        return f"<Studio(id={self.id}, subdomain='{self.subdomain}')>"
