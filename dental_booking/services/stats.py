from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import Session

from dental_booking.database import read_with_retry
from dental_booking.models.appointment import Appointment
from dental_booking.models.dentist import Dentist
from dental_booking.models.user import User
from dental_booking.services.authorization import require_admin


def dashboard_stats(db: Session, acting_user: User, today: date | None = None) -> dict[str, int]:
    """Headline numbers for the admin dashboard."""
    require_admin(acting_user, 'view clinic statistics')
    today = today or date.today()

    def query() -> dict[str, int]:
        return {
            'today_appointments': db.query(Appointment).filter(Appointment.appointment_date == today).count(),
            'total_patients': db.query(func.count(func.distinct(Appointment.user_id))).scalar() or 0,
            'active_dentists': db.query(Dentist).filter(Dentist.is_active.is_(True)).count(),
            'total_appointments': db.query(Appointment).count(),
        }

    return read_with_retry(db, query)
