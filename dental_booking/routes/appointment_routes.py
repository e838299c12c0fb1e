from datetime import date, datetime, time
from decimal import Decimal

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_serializer
from sqlalchemy.orm import Session

from dental_booking.auth.dependencies import get_current_user
from dental_booking.core.errors import ValidationError
from dental_booking.database import get_db
from dental_booking.models.user import User
from dental_booking.services import appointments
from dental_booking.services.time_slots import format_time

router = APIRouter(tags=['appointments'])


class CreateAppointmentRequest(BaseModel):
    service_id: str = ''
    dentist_id: str = ''
    appointment_date: date | None = None
    appointment_time: time | None = None
    notes: str | None = None


class UpdateAppointmentRequest(BaseModel):
    status: str | None = None
    appointment_date: date | None = None
    appointment_time: time | None = None
    notes: str | None = None
    # Accepted only so that attempts to change them are reported.
    user_id: str | None = None
    dentist_id: str | None = None
    service_id: str | None = None


class UpdateStatusRequest(BaseModel):
    status: str


class RescheduleRequest(BaseModel):
    appointment_date: date
    appointment_time: time
    confirm: bool = False


class CancelRequest(BaseModel):
    confirm: bool = False


class AppointmentResponse(BaseModel):
    id: str
    user_id: str
    user_first_name: str | None = None
    user_last_name: str | None = None
    user_email: str | None = None
    user_phone: str | None = None
    dentist_id: str
    dentist_name: str | None = None
    dentist_phone: str | None = None
    dentist_specialization: str | None = None
    service_id: str
    service_name: str | None = None
    service_price: Decimal | None = None
    service_duration: int | None = None
    service_description: str | None = None
    appointment_date: date
    appointment_time: time
    status: str
    notes: str | None = None
    total_cost: Decimal | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True

    @field_serializer('appointment_time')
    def serialize_appointment_time(self, value: time) -> str:
        return format_time(value)


def require_confirmation(confirmed: bool, action: str) -> None:
    if not confirmed:
        raise ValidationError(f'Please confirm that you want to {action} this appointment.', field='confirm')


@router.get('', response_model=list[AppointmentResponse])
def list_appointments(
    dentist_id: str | None = Query(default=None),
    on_date: date | None = Query(default=None, alias='date'),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return appointments.list_appointments(db, current_user, dentist_id=dentist_id, on_date=on_date)


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return appointments.create_appointment(
        db,
        current_user,
        service_id=data.service_id,
        dentist_id=data.dentist_id,
        appointment_date=data.appointment_date,
        appointment_time=data.appointment_time,
        notes=data.notes,
    )


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return appointments.get_appointment(db, current_user, appointment_id)


@router.patch('/{appointment_id}', response_model=AppointmentResponse)
def update_appointment(
    appointment_id: str,
    data: UpdateAppointmentRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return appointments.update_appointment(db, current_user, appointment_id, data.model_dump(exclude_unset=True))


@router.post('/{appointment_id}/status', response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: str,
    data: UpdateStatusRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return appointments.update_appointment_status(db, current_user, appointment_id, data.status)


@router.post('/{appointment_id}/reschedule', response_model=AppointmentResponse)
def reschedule_appointment(
    appointment_id: str,
    data: RescheduleRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_confirmation(data.confirm, 'reschedule')
    return appointments.reschedule_appointment(
        db,
        current_user,
        appointment_id,
        new_date=data.appointment_date,
        new_time=data.appointment_time,
    )


@router.post('/{appointment_id}/cancel', response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: str,
    data: CancelRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_confirmation(data.confirm, 'cancel')
    return appointments.cancel_appointment(db, current_user, appointment_id)


@router.delete('/{appointment_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment(
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    appointments.delete_appointment(db, current_user, appointment_id)
