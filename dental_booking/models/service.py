"""Service model definitions."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, Text

from dental_booking.database import Base, generate_id


class Service(Base):
    """Represents a billable treatment type."""
    __tablename__ = "services"

    id = Column(String(32), primary_key=True, default=generate_id)
    name = Column(String, nullable=False)
    description = Column(Text)
    price = Column(Numeric(10, 2), nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    category = Column(String, nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.now)
