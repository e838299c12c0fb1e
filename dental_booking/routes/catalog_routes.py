from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from dental_booking.auth.dependencies import get_current_user
from dental_booking.database import get_db
from dental_booking.models.user import User
from dental_booking.services import catalog

router = APIRouter(tags=['catalog'])


class CreateDentistRequest(BaseModel):
    name: str
    specialization: str
    experience: str | None = None
    phone: str | None = None
    image_url: str | None = None
    is_active: bool = True
    is_available: bool = True


class UpdateDentistRequest(BaseModel):
    name: str | None = None
    specialization: str | None = None
    experience: str | None = None
    phone: str | None = None
    image_url: str | None = None
    is_active: bool | None = None
    is_available: bool | None = None


class DentistResponse(BaseModel):
    id: str
    name: str
    specialization: str
    experience: str | None = None
    phone: str | None = None
    image_url: str | None = None
    is_active: bool
    is_available: bool | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class CreateServiceRequest(BaseModel):
    name: str
    description: str | None = None
    price: Decimal
    duration: int
    category: str
    is_active: bool = True


class UpdateServiceRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    price: Decimal | None = None
    duration: int | None = None
    category: str | None = None
    is_active: bool | None = None


class ServiceResponse(BaseModel):
    id: str
    name: str
    description: str | None = None
    price: Decimal
    duration: int
    category: str
    is_active: bool
    created_at: datetime | None = None

    class Config:
        from_attributes = True


@router.get('/dentists', response_model=list[DentistResponse])
def list_dentists(db: Session = Depends(get_db)):
    return catalog.list_dentists(db)


@router.get('/dentists/{dentist_id}', response_model=DentistResponse)
def get_dentist(dentist_id: str, db: Session = Depends(get_db)):
    return catalog.get_dentist(db, dentist_id)


@router.post('/dentists', response_model=DentistResponse, status_code=status.HTTP_201_CREATED)
def create_dentist(
    data: CreateDentistRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return catalog.create_dentist(db, current_user, data.model_dump())


@router.patch('/dentists/{dentist_id}', response_model=DentistResponse)
def update_dentist(
    dentist_id: str,
    data: UpdateDentistRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return catalog.update_dentist(db, current_user, dentist_id, data.model_dump(exclude_unset=True))


@router.get('/services', response_model=list[ServiceResponse])
def list_services(db: Session = Depends(get_db)):
    return catalog.list_services(db)


@router.get('/services/{service_id}', response_model=ServiceResponse)
def get_service(service_id: str, db: Session = Depends(get_db)):
    return catalog.get_service(db, service_id)


@router.post('/services', response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
def create_service(
    data: CreateServiceRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return catalog.create_service(db, current_user, data.model_dump())


@router.patch('/services/{service_id}', response_model=ServiceResponse)
def update_service(
    service_id: str,
    data: UpdateServiceRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return catalog.update_service(db, current_user, service_id, data.model_dump(exclude_unset=True))
