"""User model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from dental_booking.database import Base, generate_id

ROLE_PATIENT = "patient"
ROLE_ADMIN = "admin"
ROLES = (ROLE_PATIENT, ROLE_ADMIN)


class User(Base):
    """Represents a patient or clinic administrator."""
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=generate_id)
    # Stable identifier from the identity provider; lookups go through this,
    # never through the storage key.
    subject = Column(String, unique=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String)
    last_name = Column(String)
    phone = Column(String)
    profile_image_url = Column(String)
    role = Column(String, nullable=False, default=ROLE_PATIENT)
    age = Column(Integer)
    gender = Column(String)
    address = Column(String)
    sso_provider = Column(String)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
