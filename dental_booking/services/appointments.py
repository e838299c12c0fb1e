"""Appointment lifecycle: creation, status transitions, reschedule and cancel.

Status graph::

    scheduled -> confirmed | cancelled | completed | no_show
    confirmed -> cancelled | completed | no_show

``cancelled``, ``completed`` and ``no_show`` are terminal. Owners may only
cancel or reschedule; every other status change is an administrative
action. Each mutation validates completely before it assigns anything,
then writes the single row once.
"""

import logging
from datetime import date, datetime, time

from sqlalchemy.orm import Session

from dental_booking.core import config
from dental_booking.core.errors import (
    ConflictError,
    ImmutableFieldError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDenied,
    ValidationError,
)
from dental_booking.database import read_with_retry, store_errors
from dental_booking.models.appointment import Appointment, AppointmentStatus
from dental_booking.models.user import User
from dental_booking.services.authorization import is_admin, require_admin, require_mutate, require_read
from dental_booking.services.catalog import get_dentist, get_service
from dental_booking.services.time_slots import format_time, parse_time

logger = logging.getLogger(__name__)

SCHEDULED = AppointmentStatus.SCHEDULED
CONFIRMED = AppointmentStatus.CONFIRMED
CANCELLED = AppointmentStatus.CANCELLED
COMPLETED = AppointmentStatus.COMPLETED
NO_SHOW = AppointmentStatus.NO_SHOW

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    SCHEDULED: frozenset({CONFIRMED, CANCELLED, COMPLETED, NO_SHOW}),
    CONFIRMED: frozenset({CANCELLED, COMPLETED, NO_SHOW}),
    CANCELLED: frozenset(),
    COMPLETED: frozenset(),
    NO_SHOW: frozenset(),
}
TERMINAL_STATUSES = frozenset(status for status, targets in ALLOWED_TRANSITIONS.items() if not targets)
RESCHEDULABLE_STATUSES = frozenset({SCHEDULED, CONFIRMED})
ADMIN_ONLY_STATUSES = frozenset({CONFIRMED, COMPLETED, NO_SHOW})

IMMUTABLE_FIELDS = ('user_id', 'dentist_id', 'service_id')
UPDATABLE_FIELDS = ('status', 'appointment_date', 'appointment_time', 'notes')


def parse_status(value: str | AppointmentStatus) -> AppointmentStatus:
    try:
        return AppointmentStatus(value)
    except ValueError as exc:
        allowed = ', '.join(status.value for status in AppointmentStatus)
        raise ValidationError(f'Status must be one of: {allowed}.', field='status') from exc


def current_status(appointment: Appointment) -> AppointmentStatus:
    try:
        return AppointmentStatus(appointment.status)
    except ValueError as exc:
        raise InvalidTransitionError(
            f'Appointment has an unrecognised status {appointment.status!r}.',
            field='status',
        ) from exc


def is_terminal(status: AppointmentStatus) -> bool:
    return status in TERMINAL_STATUSES


def check_transition(current: AppointmentStatus, target: AppointmentStatus) -> None:
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(
            f'Cannot change an appointment from {current.value} to {target.value}.',
            field='status',
        )


def check_reschedulable(appointment: Appointment) -> None:
    status = current_status(appointment)
    if status not in RESCHEDULABLE_STATUSES:
        raise InvalidTransitionError(
            f'A {status.value} appointment cannot be rescheduled.',
            field='status',
        )


def parse_date(value: str | date | None, field: str = 'appointment_date') -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        raise ValidationError('Please select a date.', field=field)
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError) as exc:
        raise ValidationError('Dates must use the YYYY-MM-DD format.', field=field) from exc


def validate_appointment_date(value: date, today: date | None = None) -> None:
    if config.ALLOW_PAST_APPOINTMENT_DATES:
        return
    if value < (today or date.today()):
        raise ValidationError('Appointments cannot be booked in the past.', field='appointment_date')


def clean_notes(notes: str | None) -> str | None:
    if notes is None:
        return None
    normalized = notes.strip()
    if not normalized:
        return None
    if len(normalized) > config.MAX_APPOINTMENT_NOTES_LENGTH:
        raise ValidationError(
            f'Notes must be {config.MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.',
            field='notes',
        )
    return normalized


def ensure_slot_free(
    db: Session,
    dentist_id: str,
    appointment_date: date,
    appointment_time: time,
    exclude_id: str | None = None,
) -> None:
    """Reject a slot already held for the dentist.

    Only active when ``PREVENT_DOUBLE_BOOKING`` is enabled; by default the
    clinic accepts overlapping bookings.
    """
    if not config.PREVENT_DOUBLE_BOOKING:
        return

    with store_errors(db):
        query = db.query(Appointment).filter(
            Appointment.dentist_id == dentist_id,
            Appointment.appointment_date == appointment_date,
            Appointment.appointment_time == appointment_time,
            Appointment.status != CANCELLED.value,
        )
        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)
        taken = query.first()
    if taken is not None:
        raise ConflictError(
            f'This dentist is already booked on {appointment_date.isoformat()} at {format_time(appointment_time)}.',
            field='appointment_time',
        )


def _load(db: Session, appointment_id: str) -> Appointment:
    with store_errors(db):
        appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    if appointment is None:
        raise NotFoundError('Appointment not found.')
    return appointment


def _save(db: Session, appointment: Appointment, changes: dict) -> Appointment:
    with store_errors(db):
        for field, value in changes.items():
            setattr(appointment, field, value)
        appointment.updated_at = datetime.now()
        db.commit()
        db.refresh(appointment)
    return appointment


def _describe_missing(missing: list[str]) -> str:
    labels = {
        'service_id': 'a service',
        'dentist_id': 'a dentist',
        'appointment_date': 'a date',
        'appointment_time': 'a time',
    }
    return ' and '.join(labels.get(field, field) for field in missing)


def create_appointment(
    db: Session,
    acting_user: User,
    service_id: str | None,
    dentist_id: str | None,
    appointment_date: str | date | None,
    appointment_time: str | time | None,
    notes: str | None = None,
) -> Appointment:
    """Book an appointment owned by ``acting_user``.

    Service and dentist details are copied from the stored catalog rows, so
    later catalog edits leave the booking as it was.
    """
    missing = [
        field
        for field, value in (
            ('service_id', service_id),
            ('dentist_id', dentist_id),
            ('appointment_date', appointment_date),
            ('appointment_time', appointment_time),
        )
        if not value
    ]
    if missing:
        raise ValidationError(f'Please select {_describe_missing(missing)}.', missing=missing)

    booking_date = parse_date(appointment_date)
    booking_time = parse_time(appointment_time)
    validate_appointment_date(booking_date)
    notes = clean_notes(notes)

    service = get_service(db, service_id)
    if not service.is_active:
        raise ValidationError('This service is no longer offered.', field='service_id')
    dentist = get_dentist(db, dentist_id)
    if not dentist.is_active:
        raise ValidationError('This dentist is not accepting bookings.', field='dentist_id')

    ensure_slot_free(db, dentist.id, booking_date, booking_time)

    with store_errors(db):
        now = datetime.now()
        appointment = Appointment(
            user_id=acting_user.id,
            user_first_name=acting_user.first_name,
            user_last_name=acting_user.last_name,
            user_email=acting_user.email,
            user_phone=acting_user.phone or '',
            dentist_id=dentist.id,
            dentist_name=dentist.name,
            dentist_phone=dentist.phone or '',
            dentist_specialization=dentist.specialization,
            service_id=service.id,
            service_name=service.name,
            service_price=service.price,
            service_duration=service.duration,
            service_description=service.description,
            appointment_date=booking_date,
            appointment_time=booking_time,
            status=SCHEDULED.value,
            notes=notes,
            total_cost=service.price,
            created_at=now,
            updated_at=now,
        )
        db.add(appointment)
        db.commit()
        db.refresh(appointment)

    logger.info(
        'User %s booked appointment %s with dentist %s on %s %s',
        acting_user.id,
        appointment.id,
        dentist.id,
        booking_date.isoformat(),
        format_time(booking_time),
    )
    return appointment


def get_appointment(db: Session, acting_user: User, appointment_id: str) -> Appointment:
    appointment = _load(db, appointment_id)
    require_read(acting_user, appointment)
    return appointment


def list_appointments(
    db: Session,
    acting_user: User,
    dentist_id: str | None = None,
    on_date: date | None = None,
) -> list[Appointment]:
    """All appointments for admins, the caller's own otherwise.

    Filtering by dentist or date is an admin view.
    """
    admin = is_admin(acting_user)
    if not admin and (dentist_id or on_date):
        raise PermissionDenied('Only administrators can filter appointments by dentist or date.')

    def query() -> list[Appointment]:
        appointments = db.query(Appointment)
        if not admin:
            appointments = appointments.filter(Appointment.user_id == acting_user.id)
        if dentist_id:
            appointments = appointments.filter(Appointment.dentist_id == dentist_id)
        if on_date:
            appointments = appointments.filter(Appointment.appointment_date == on_date)
        return appointments.order_by(
            Appointment.appointment_date.desc(),
            Appointment.appointment_time.desc(),
        ).all()

    return read_with_retry(db, query)


def _check_status_change(acting_user: User, appointment: Appointment, new_status: AppointmentStatus) -> None:
    if new_status in ADMIN_ONLY_STATUSES:
        require_admin(acting_user, f'mark appointments as {new_status.value}')
    check_transition(current_status(appointment), new_status)


def update_appointment_status(
    db: Session,
    acting_user: User,
    appointment_id: str,
    new_status: str | AppointmentStatus,
) -> Appointment:
    target = parse_status(new_status)
    appointment = _load(db, appointment_id)
    require_mutate(acting_user, appointment)
    previous = appointment.status
    _check_status_change(acting_user, appointment, target)

    appointment = _save(db, appointment, {'status': target.value})
    logger.info('User %s moved appointment %s from %s to %s', acting_user.id, appointment.id, previous, target.value)
    return appointment


def cancel_appointment(db: Session, acting_user: User, appointment_id: str) -> Appointment:
    return update_appointment_status(db, acting_user, appointment_id, CANCELLED)


def reschedule_appointment(
    db: Session,
    acting_user: User,
    appointment_id: str,
    new_date: str | date | None,
    new_time: str | time | None,
) -> Appointment:
    """Move an appointment to a new date and time without touching its status.

    The new slot is not checked against other bookings unless
    ``PREVENT_DOUBLE_BOOKING`` is enabled.
    """
    appointment = _load(db, appointment_id)
    require_mutate(acting_user, appointment)
    check_reschedulable(appointment)

    missing = [
        field
        for field, value in (('appointment_date', new_date), ('appointment_time', new_time))
        if not value
    ]
    if missing:
        raise ValidationError(f'Please select {_describe_missing(missing)}.', missing=missing)
    booking_date = parse_date(new_date)
    booking_time = parse_time(new_time)
    validate_appointment_date(booking_date)
    ensure_slot_free(db, appointment.dentist_id, booking_date, booking_time, exclude_id=appointment.id)

    appointment = _save(db, appointment, {'appointment_date': booking_date, 'appointment_time': booking_time})
    logger.info(
        'User %s rescheduled appointment %s to %s %s',
        acting_user.id,
        appointment.id,
        booking_date.isoformat(),
        format_time(booking_time),
    )
    return appointment


def update_appointment(db: Session, acting_user: User, appointment_id: str, changes: dict) -> Appointment:
    """Apply a partial update of status, date, time or notes."""
    appointment = _load(db, appointment_id)
    require_mutate(acting_user, appointment)

    for field in IMMUTABLE_FIELDS:
        if field in changes and changes[field] != getattr(appointment, field):
            raise ImmutableFieldError(f'{field} cannot be changed after booking.', field=field)
    for field in changes:
        if field not in UPDATABLE_FIELDS and field not in IMMUTABLE_FIELDS:
            raise ValidationError(f'Unknown field {field}.', field=field)

    updates: dict = {}

    if 'appointment_date' in changes or 'appointment_time' in changes:
        check_reschedulable(appointment)
        booking_date = parse_date(changes.get('appointment_date') or appointment.appointment_date)
        booking_time = parse_time(changes.get('appointment_time') or appointment.appointment_time)
        if booking_date != appointment.appointment_date:
            validate_appointment_date(booking_date)
        ensure_slot_free(db, appointment.dentist_id, booking_date, booking_time, exclude_id=appointment.id)
        updates['appointment_date'] = booking_date
        updates['appointment_time'] = booking_time

    if changes.get('status') is not None:
        target = parse_status(changes['status'])
        if target.value != appointment.status:
            _check_status_change(acting_user, appointment, target)
            updates['status'] = target.value

    if 'notes' in changes:
        updates['notes'] = clean_notes(changes['notes'])

    if not updates:
        return appointment
    appointment = _save(db, appointment, updates)
    logger.info('User %s updated appointment %s fields %s', acting_user.id, appointment.id, sorted(updates))
    return appointment


def delete_appointment(db: Session, acting_user: User, appointment_id: str) -> None:
    require_admin(acting_user, 'delete appointments')
    appointment = _load(db, appointment_id)

    with store_errors(db):
        db.delete(appointment)
        db.commit()
    logger.info('User %s deleted appointment %s', acting_user.id, appointment_id)
