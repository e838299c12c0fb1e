"""Dentist and service catalog: public listings and admin maintenance."""

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation

from sqlalchemy.orm import Session

from dental_booking.core.errors import NotFoundError, ValidationError
from dental_booking.database import read_with_retry, store_errors
from dental_booking.models.dentist import Dentist
from dental_booking.models.service import Service
from dental_booking.models.user import User
from dental_booking.services.authorization import require_catalog_manager

logger = logging.getLogger(__name__)

DENTIST_FIELDS = ('name', 'specialization', 'experience', 'phone', 'image_url', 'is_active', 'is_available')
SERVICE_FIELDS = ('name', 'description', 'price', 'duration', 'category', 'is_active')

SAMPLE_SERVICES = [
    {
        'name': 'Regular Cleaning',
        'description': 'Professional dental cleaning and examination',
        'duration': 60,
        'price': '120',
        'category': 'Preventive',
    },
    {
        'name': 'Teeth Whitening',
        'description': 'Professional teeth whitening treatment',
        'duration': 90,
        'price': '300',
        'category': 'Cosmetic',
    },
    {
        'name': 'Dental Filling',
        'description': 'Cavity filling treatment',
        'duration': 45,
        'price': '180',
        'category': 'Restorative',
    },
    {
        'name': 'Root Canal',
        'description': 'Root canal therapy',
        'duration': 120,
        'price': '800',
        'category': 'Endodontic',
    },
]

SAMPLE_DENTISTS = [
    {'name': 'Dr. Sarah Johnson', 'specialization': 'General Dentistry', 'experience': '8 years'},
    {'name': 'Dr. Michael Chen', 'specialization': 'Orthodontics', 'experience': '12 years'},
    {'name': 'Dr. Emily Davis', 'specialization': 'Cosmetic Dentistry', 'experience': '10 years'},
]


def list_dentists(db: Session) -> list[Dentist]:
    return read_with_retry(
        db,
        lambda: db.query(Dentist).filter(Dentist.is_active.is_(True)).order_by(Dentist.name.asc()).all(),
    )


def list_services(db: Session) -> list[Service]:
    return read_with_retry(
        db,
        lambda: db.query(Service).filter(Service.is_active.is_(True)).order_by(Service.name.asc()).all(),
    )


def get_dentist(db: Session, dentist_id: str) -> Dentist:
    dentist = read_with_retry(db, lambda: db.query(Dentist).filter(Dentist.id == dentist_id).first())
    if dentist is None:
        raise NotFoundError('Dentist not found.', field='dentist_id')
    return dentist


def get_service(db: Session, service_id: str) -> Service:
    service = read_with_retry(db, lambda: db.query(Service).filter(Service.id == service_id).first())
    if service is None:
        raise NotFoundError('Service not found.', field='service_id')
    return service


def _check_fields(data: dict, allowed: tuple[str, ...]) -> None:
    for field in data:
        if field not in allowed:
            raise ValidationError(f'Unknown field {field}.', field=field)


def _require_text(data: dict, field: str, label: str) -> None:
    if field in data and not (data[field] or '').strip():
        raise ValidationError(f'{label} is required.', field=field)


def _require_flags(data: dict, fields: tuple[str, ...]) -> None:
    for field in fields:
        if field in data and not isinstance(data[field], bool):
            raise ValidationError(f'{field} must be true or false.', field=field)


def _clean_dentist(data: dict, creating: bool) -> dict:
    _check_fields(data, DENTIST_FIELDS)
    if creating:
        data = {'name': '', 'specialization': '', **data}
    _require_text(data, 'name', 'Dentist name')
    _require_text(data, 'specialization', 'Specialization')
    _require_flags(data, ('is_active', 'is_available'))
    return {key: value.strip() if isinstance(value, str) else value for key, value in data.items()}


def _clean_service(data: dict, creating: bool) -> dict:
    _check_fields(data, SERVICE_FIELDS)
    if creating:
        data = {'name': '', 'category': '', 'price': None, 'duration': None, **data}
    _require_text(data, 'name', 'Service name')
    _require_text(data, 'category', 'Category')
    _require_flags(data, ('is_active',))

    cleaned = {key: value.strip() if isinstance(value, str) else value for key, value in data.items()}
    if 'price' in cleaned:
        try:
            price = Decimal(str(cleaned['price']))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError('Price must be a number.', field='price') from exc
        if not price.is_finite() or price < 0:
            raise ValidationError('Price cannot be negative.', field='price')
        cleaned['price'] = price
    if 'duration' in cleaned:
        duration = cleaned['duration']
        if not isinstance(duration, int) or isinstance(duration, bool) or duration <= 0:
            raise ValidationError('Duration must be a positive number of minutes.', field='duration')
    return cleaned


def create_dentist(db: Session, acting_user: User, data: dict) -> Dentist:
    require_catalog_manager(acting_user)
    values = _clean_dentist(data, creating=True)

    with store_errors(db):
        dentist = Dentist(**values)
        db.add(dentist)
        db.commit()
        db.refresh(dentist)
    logger.info('User %s created dentist %s', acting_user.id, dentist.id)
    return dentist


def update_dentist(db: Session, acting_user: User, dentist_id: str, changes: dict) -> Dentist:
    require_catalog_manager(acting_user)
    values = _clean_dentist(changes, creating=False)
    dentist = get_dentist(db, dentist_id)

    with store_errors(db):
        for field, value in values.items():
            setattr(dentist, field, value)
        dentist.updated_at = datetime.now()
        db.commit()
        db.refresh(dentist)
    return dentist


def create_service(db: Session, acting_user: User, data: dict) -> Service:
    require_catalog_manager(acting_user)
    values = _clean_service(data, creating=True)

    with store_errors(db):
        service = Service(**values)
        db.add(service)
        db.commit()
        db.refresh(service)
    logger.info('User %s created service %s', acting_user.id, service.id)
    return service


def update_service(db: Session, acting_user: User, service_id: str, changes: dict) -> Service:
    require_catalog_manager(acting_user)
    values = _clean_service(changes, creating=False)
    service = get_service(db, service_id)

    with store_errors(db):
        for field, value in values.items():
            setattr(service, field, value)
        db.commit()
        db.refresh(service)
    return service


def seed_sample_catalog(db: Session) -> tuple[int, int]:
    """Insert the sample services and dentists into an empty catalog.

    Returns the number of services and dentists added.
    """
    with store_errors(db):
        added_services = 0
        added_dentists = 0
        if db.query(Service).count() == 0:
            for values in SAMPLE_SERVICES:
                db.add(Service(**{**values, 'price': Decimal(values['price']), 'is_active': True}))
                added_services += 1
        if db.query(Dentist).count() == 0:
            for values in SAMPLE_DENTISTS:
                db.add(Dentist(**values, is_active=True, is_available=True))
                added_dentists += 1
        db.commit()
    return added_services, added_dentists
