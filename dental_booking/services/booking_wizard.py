"""Three-step booking wizard.

The draft lives with the client and is passed by value: every function
takes a ``BookingDraft`` and returns a new one, leaving the argument
untouched. Nothing is persisted until ``confirm``.
"""

from datetime import date, time
from decimal import Decimal
from enum import IntEnum

from pydantic import BaseModel, ConfigDict, field_serializer
from sqlalchemy.orm import Session

from dental_booking.core.errors import ValidationError
from dental_booking.models.appointment import Appointment
from dental_booking.models.dentist import Dentist
from dental_booking.models.service import Service
from dental_booking.models.user import User
from dental_booking.services.appointments import clean_notes, create_appointment
from dental_booking.services.time_slots import TimeSlotProvider, format_time, parse_time

DASHBOARD_PATH = '/dashboard'


class BookingStep(IntEnum):
    SERVICE_AND_DENTIST = 1
    DATE_AND_TIME = 2
    CONFIRMATION = 3


REQUIRED_BY_STEP = {
    BookingStep.SERVICE_AND_DENTIST: ('service_id', 'dentist_id'),
    BookingStep.DATE_AND_TIME: ('appointment_date', 'appointment_time'),
}

MISSING_MESSAGES = {
    BookingStep.SERVICE_AND_DENTIST: 'Please select both a service and a dentist.',
    BookingStep.DATE_AND_TIME: 'Please select both a date and time.',
}


class BookingDraft(BaseModel):
    model_config = ConfigDict(frozen=True)

    step: BookingStep = BookingStep.SERVICE_AND_DENTIST

    service_id: str = ''
    service_name: str = ''
    service_price: Decimal | None = None
    service_duration: int = 0
    service_description: str | None = None

    dentist_id: str = ''
    dentist_name: str = ''
    dentist_phone: str | None = None
    dentist_specialization: str = ''

    appointment_date: date | None = None
    appointment_time: time | None = None
    notes: str | None = None

    @field_serializer('appointment_time')
    def serialize_time(self, value: time | None) -> str | None:
        return format_time(value) if value is not None else None


def select_service(draft: BookingDraft, service: Service) -> BookingDraft:
    return draft.model_copy(update={
        'service_id': service.id,
        'service_name': service.name,
        'service_price': service.price,
        'service_duration': service.duration,
        'service_description': service.description,
    })


def select_dentist(draft: BookingDraft, dentist: Dentist) -> BookingDraft:
    return draft.model_copy(update={
        'dentist_id': dentist.id,
        'dentist_name': dentist.name,
        'dentist_phone': dentist.phone,
        'dentist_specialization': dentist.specialization,
    })


def select_date(draft: BookingDraft, value: date, today: date | None = None) -> BookingDraft:
    if value < (today or date.today()):
        raise ValidationError('Please choose today or a later date.', field='appointment_date')
    return draft.model_copy(update={'appointment_date': value})


def select_time(draft: BookingDraft, value: str | time, slots: list[time]) -> BookingDraft:
    chosen = parse_time(value)
    if chosen not in slots:
        raise ValidationError('Please choose one of the offered times.', field='appointment_time')
    return draft.model_copy(update={'appointment_time': chosen})


def set_notes(draft: BookingDraft, notes: str | None) -> BookingDraft:
    return draft.model_copy(update={'notes': clean_notes(notes)})


def missing_selections(draft: BookingDraft, step: BookingStep | None = None) -> list[str]:
    required = REQUIRED_BY_STEP.get(step or draft.step, ())
    return [field for field in required if not getattr(draft, field)]


def advance(
    draft: BookingDraft,
    slots: list[time] | None = None,
    today: date | None = None,
) -> BookingDraft:
    """Move to the next step once the current step's selections are complete.

    Leaving the date step also re-checks the date against ``today`` and, when
    ``slots`` is given, the time against the offered candidates.
    """
    if draft.step == BookingStep.CONFIRMATION:
        raise ValidationError('The booking is ready to confirm.', field='step')
    missing = missing_selections(draft)
    if missing:
        raise ValidationError(MISSING_MESSAGES[draft.step], missing=missing)
    if draft.step == BookingStep.DATE_AND_TIME:
        select_date(draft, draft.appointment_date, today=today)
        if slots is not None:
            select_time(draft, draft.appointment_time, slots)
    return draft.model_copy(update={'step': BookingStep(draft.step + 1)})


def go_back(draft: BookingDraft) -> BookingDraft:
    return draft.model_copy(update={'step': BookingStep(max(draft.step - 1, BookingStep.SERVICE_AND_DENTIST))})


def confirm(
    db: Session,
    acting_user: User,
    draft: BookingDraft,
    provider: TimeSlotProvider | None = None,
) -> Appointment:
    """Create the appointment for ``acting_user`` from a completed draft.

    On failure the error propagates and the caller keeps its draft for a
    retry.
    """
    if draft.step != BookingStep.CONFIRMATION:
        raise ValidationError('Complete the previous steps before confirming.', field='step')
    for step in (BookingStep.SERVICE_AND_DENTIST, BookingStep.DATE_AND_TIME):
        missing = missing_selections(draft, step)
        if missing:
            raise ValidationError(MISSING_MESSAGES[step], missing=missing)

    if provider is not None:
        offered = provider.slots_for(draft.dentist_id, draft.appointment_date)
        if draft.appointment_time not in offered:
            raise ValidationError('The chosen time is no longer offered.', field='appointment_time')

    return create_appointment(
        db,
        acting_user,
        service_id=draft.service_id,
        dentist_id=draft.dentist_id,
        appointment_date=draft.appointment_date,
        appointment_time=draft.appointment_time,
        notes=draft.notes,
    )
