from datetime import date

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from dental_booking.auth.dependencies import get_current_user
from dental_booking.database import get_db
from dental_booking.models.user import User
from dental_booking.routes.appointment_routes import AppointmentResponse
from dental_booking.services import booking_wizard
from dental_booking.services.booking_wizard import BookingDraft, BookingStep
from dental_booking.services.time_slots import format_time, get_time_slot_provider

router = APIRouter(tags=['booking'])


class TimeSlotsResponse(BaseModel):
    dentist_id: str
    date: date
    time_slots: list[str]


class ConfirmBookingResponse(BaseModel):
    appointment: AppointmentResponse
    redirect_to: str


@router.get('/time-slots', response_model=TimeSlotsResponse)
def list_time_slots(
    dentist_id: str = Query(...),
    on_date: date = Query(..., alias='date'),
    db: Session = Depends(get_db),
):
    provider = get_time_slot_provider(db)
    slots = provider.slots_for(dentist_id, on_date)
    return TimeSlotsResponse(
        dentist_id=dentist_id,
        date=on_date,
        time_slots=[format_time(slot) for slot in slots],
    )


@router.post('/advance', response_model=BookingDraft)
def advance_booking(draft: BookingDraft, db: Session = Depends(get_db)):
    slots = None
    if draft.step == BookingStep.DATE_AND_TIME and draft.dentist_id and draft.appointment_date:
        slots = get_time_slot_provider(db).slots_for(draft.dentist_id, draft.appointment_date)
    return booking_wizard.advance(draft, slots=slots)


@router.post('/back', response_model=BookingDraft)
def go_back(draft: BookingDraft):
    return booking_wizard.go_back(draft)


@router.post('/confirm', response_model=ConfirmBookingResponse, status_code=status.HTTP_201_CREATED)
def confirm_booking(
    draft: BookingDraft,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    appointment = booking_wizard.confirm(db, current_user, draft, provider=get_time_slot_provider(db))
    return ConfirmBookingResponse(
        appointment=AppointmentResponse.model_validate(appointment),
        redirect_to=booking_wizard.DASHBOARD_PATH,
    )
