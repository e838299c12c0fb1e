from datetime import date, datetime, time

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from dental_booking.auth.dependencies import get_current_user
from dental_booking.database import get_db
from dental_booking.models.user import User
from dental_booking.services import availability

router = APIRouter(tags=['availability'])


class CreateAvailabilityRequest(BaseModel):
    dentist_id: str
    date: date
    start_time: time
    end_time: time
    is_available: bool = True


class AvailabilityResponse(BaseModel):
    id: str
    dentist_id: str
    date: date
    start_time: time
    end_time: time
    is_available: bool
    created_at: datetime | None = None

    class Config:
        from_attributes = True


@router.get('', response_model=list[AvailabilityResponse])
def list_availability(
    dentist_id: str = Query(...),
    on_date: date = Query(..., alias='date'),
    db: Session = Depends(get_db),
):
    return availability.list_availability(db, dentist_id, on_date)


@router.post('', response_model=AvailabilityResponse, status_code=status.HTTP_201_CREATED)
def create_availability(
    data: CreateAvailabilityRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return availability.create_availability(
        db,
        current_user,
        dentist_id=data.dentist_id,
        on_date=data.date,
        start_time=data.start_time,
        end_time=data.end_time,
        is_available=data.is_available,
    )
