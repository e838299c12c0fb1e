"""Appointment model definitions."""

from datetime import datetime
from enum import Enum

from sqlalchemy import Column, Date, DateTime, Integer, Numeric, String, Text, Time

from dental_booking.database import Base, generate_id


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


class Appointment(Base):
    """A booking, with user, dentist and service details frozen at booking time."""
    __tablename__ = "appointments"

    id = Column(String(32), primary_key=True, default=generate_id)

    user_id = Column(String(32), index=True, nullable=False)
    user_first_name = Column(String)
    user_last_name = Column(String)
    user_email = Column(String)
    user_phone = Column(String)

    dentist_id = Column(String(32), index=True, nullable=False)
    dentist_name = Column(String)
    dentist_phone = Column(String)
    dentist_specialization = Column(String)

    service_id = Column(String(32), nullable=False)
    service_name = Column(String)
    service_price = Column(Numeric(10, 2))
    service_duration = Column(Integer)
    service_description = Column(Text)

    appointment_date = Column(Date, nullable=False)
    appointment_time = Column(Time, nullable=False)
    status = Column(String(20), nullable=False, default=AppointmentStatus.SCHEDULED.value)
    notes = Column(Text)
    total_cost = Column(Numeric(10, 2))
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now)
