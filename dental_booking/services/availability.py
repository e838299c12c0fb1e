"""Per-dentist working windows.

Bookings do not depend on these records unless the availability time-slot
provider is enabled.
"""

from datetime import date, datetime, time

from sqlalchemy.orm import Session

from dental_booking.core.errors import ValidationError
from dental_booking.database import read_with_retry, store_errors
from dental_booking.models.availability import Availability
from dental_booking.models.user import User
from dental_booking.services.authorization import require_admin
from dental_booking.services.catalog import get_dentist


def list_availability(db: Session, dentist_id: str, on_date: date) -> list[Availability]:
    return read_with_retry(
        db,
        lambda: db.query(Availability).filter(
            Availability.dentist_id == dentist_id,
            Availability.date == on_date,
        ).order_by(Availability.start_time.asc()).all(),
    )


def create_availability(
    db: Session,
    acting_user: User,
    dentist_id: str,
    on_date: date,
    start_time: time,
    end_time: time,
    is_available: bool = True,
) -> Availability:
    require_admin(acting_user, 'manage dentist availability')
    if start_time >= end_time:
        raise ValidationError('Start time must be before end time.', field='end_time')
    get_dentist(db, dentist_id)

    with store_errors(db):
        window = Availability(
            dentist_id=dentist_id,
            date=on_date,
            start_time=start_time,
            end_time=end_time,
            is_available=is_available,
            created_at=datetime.now(),
        )
        db.add(window)
        db.commit()
        db.refresh(window)
    return window
