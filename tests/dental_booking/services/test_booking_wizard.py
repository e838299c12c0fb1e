from datetime import date, time, timedelta

import pytest

from dental_booking.core.errors import NotFoundError, ValidationError
from dental_booking.models.appointment import Appointment
from dental_booking.services import booking_wizard as wizard
from dental_booking.services.booking_wizard import BookingDraft, BookingStep
from dental_booking.services.time_slots import FixedTimeSlotProvider

TODAY = date(2030, 3, 11)
SLOTS = FixedTimeSlotProvider().slots_for('any', TODAY)


def _complete_first_step(cleaning, dr_x) -> BookingDraft:
    draft = wizard.select_service(BookingDraft(), cleaning)
    draft = wizard.select_dentist(draft, dr_x)
    return wizard.advance(draft)


def test_new_draft_starts_at_first_step() -> None:
    draft = BookingDraft()

    assert draft.step == BookingStep.SERVICE_AND_DENTIST
    assert wizard.missing_selections(draft) == ['service_id', 'dentist_id']


def test_advance_without_dentist_reports_message_and_keeps_step(cleaning) -> None:
    draft = wizard.select_service(BookingDraft(), cleaning)

    with pytest.raises(ValidationError) as exception_info:
        wizard.advance(draft)

    assert exception_info.value.detail == 'Please select both a service and a dentist.'
    assert exception_info.value.missing == ['dentist_id']
    assert draft.step == BookingStep.SERVICE_AND_DENTIST


def test_selection_copies_catalog_details(cleaning, dr_x) -> None:
    draft = _complete_first_step(cleaning, dr_x)

    assert draft.step == BookingStep.DATE_AND_TIME
    assert draft.service_name == 'Cleaning'
    assert draft.service_price == cleaning.price
    assert draft.dentist_name == 'Dr. X'


def test_selection_returns_new_draft(cleaning) -> None:
    original = BookingDraft()

    updated = wizard.select_service(original, cleaning)

    assert original.service_id == ''
    assert updated.service_id == cleaning.id


def test_advance_from_second_step_requires_date_and_time(cleaning, dr_x) -> None:
    draft = wizard.select_date(_complete_first_step(cleaning, dr_x), TODAY, today=TODAY)

    with pytest.raises(ValidationError) as exception_info:
        wizard.advance(draft, today=TODAY)

    assert exception_info.value.detail == 'Please select both a date and time.'
    assert exception_info.value.missing == ['appointment_time']


def test_select_date_rejects_yesterday(cleaning, dr_x) -> None:
    draft = _complete_first_step(cleaning, dr_x)

    with pytest.raises(ValidationError) as exception_info:
        wizard.select_date(draft, TODAY - timedelta(days=1), today=TODAY)

    assert exception_info.value.field == 'appointment_date'


def test_select_time_must_be_offered(cleaning, dr_x) -> None:
    draft = _complete_first_step(cleaning, dr_x)

    with pytest.raises(ValidationError):
        wizard.select_time(draft, '11:45', SLOTS)
    assert wizard.select_time(draft, '10:30', SLOTS).appointment_time == time(10, 30)


def test_advance_rechecks_stale_date(cleaning, dr_x) -> None:
    draft = _complete_first_step(cleaning, dr_x)
    draft = wizard.select_date(draft, TODAY, today=TODAY)
    draft = wizard.select_time(draft, '09:00', SLOTS)

    with pytest.raises(ValidationError):
        wizard.advance(draft, slots=SLOTS, today=TODAY + timedelta(days=1))


def test_go_back_keeps_selections(cleaning, dr_x) -> None:
    draft = _complete_first_step(cleaning, dr_x)

    previous = wizard.go_back(draft)

    assert previous.step == BookingStep.SERVICE_AND_DENTIST
    assert previous.service_id == cleaning.id
    assert wizard.go_back(previous).step == BookingStep.SERVICE_AND_DENTIST


def test_cannot_advance_past_confirmation(cleaning, dr_x) -> None:
    draft = BookingDraft(step=BookingStep.CONFIRMATION, service_id=cleaning.id, dentist_id=dr_x.id)

    with pytest.raises(ValidationError):
        wizard.advance(draft)


def test_draft_serializes_time_as_hh_mm() -> None:
    draft = BookingDraft(appointment_time=time(9, 0))

    assert draft.model_dump(mode='json')['appointment_time'] == '09:00'


def test_confirm_creates_scheduled_appointment(db_session, patient, cleaning, dr_x, next_week) -> None:
    draft = _complete_first_step(cleaning, dr_x)
    draft = wizard.select_date(draft, next_week)
    draft = wizard.select_time(draft, '14:00', SLOTS)
    draft = wizard.set_notes(draft, 'First visit')
    draft = wizard.advance(draft, slots=SLOTS)

    appointment = wizard.confirm(db_session, patient, draft, provider=FixedTimeSlotProvider())

    assert draft.step == BookingStep.CONFIRMATION
    assert appointment.status == 'scheduled'
    assert appointment.user_id == patient.id
    assert appointment.appointment_time == time(14, 0)
    assert appointment.notes == 'First visit'
    assert wizard.DASHBOARD_PATH == '/dashboard'


def test_confirm_before_final_step_is_rejected(db_session, patient, cleaning, dr_x) -> None:
    draft = _complete_first_step(cleaning, dr_x)

    with pytest.raises(ValidationError):
        wizard.confirm(db_session, patient, draft)

    assert db_session.query(Appointment).count() == 0


def test_confirm_failure_leaves_draft_usable(db_session, patient, cleaning, dr_x, next_week) -> None:
    draft = BookingDraft(
        step=BookingStep.CONFIRMATION,
        service_id=cleaning.id,
        dentist_id='retired-dentist',
        appointment_date=next_week,
        appointment_time=time(9, 0),
    )

    with pytest.raises(NotFoundError):
        wizard.confirm(db_session, patient, draft)

    assert draft.step == BookingStep.CONFIRMATION
    assert draft.appointment_time == time(9, 0)
    assert db_session.query(Appointment).count() == 0


def test_confirm_rejects_time_no_longer_offered(db_session, patient, cleaning, dr_x, next_week) -> None:
    draft = BookingDraft(
        step=BookingStep.CONFIRMATION,
        service_id=cleaning.id,
        dentist_id=dr_x.id,
        appointment_date=next_week,
        appointment_time=time(10, 30),
    )

    with pytest.raises(ValidationError):
        wizard.confirm(db_session, patient, draft, provider=FixedTimeSlotProvider(['09:00']))
