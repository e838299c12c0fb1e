"""Dentist model definitions."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, String

from dental_booking.database import Base, generate_id


class Dentist(Base):
    """Represents a practitioner offered for booking."""
    __tablename__ = "dentists"

    id = Column(String(32), primary_key=True, default=generate_id)
    name = Column(String, nullable=False)
    specialization = Column(String, nullable=False)
    experience = Column(String)
    phone = Column(String)
    image_url = Column(String)
    is_active = Column(Boolean, default=True)
    is_available = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now)
