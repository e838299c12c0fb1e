"""Availability model definitions."""

from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, String, Time

from dental_booking.database import Base, generate_id


class Availability(Base):
    """A dentist's working window on a given date."""
    __tablename__ = "availability"

    id = Column(String(32), primary_key=True, default=generate_id)
    dentist_id = Column(String(32), index=True, nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_available = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.now)
