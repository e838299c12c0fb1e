import os
from datetime import date, datetime, time, timedelta
from decimal import Decimal

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from dental_booking.auth import jwt_handler  # noqa: E402
from dental_booking.database import Base, get_db  # noqa: E402
from dental_booking.main import app  # noqa: E402
from dental_booking.models.appointment import Appointment  # noqa: E402
from dental_booking.models.dentist import Dentist  # noqa: E402
from dental_booking.models.service import Service  # noqa: E402
from dental_booking.models.user import ROLE_ADMIN, ROLE_PATIENT, User  # noqa: E402


@pytest.fixture
def db_session():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def make_user(db_session):
    def _make_user(email: str, role: str = ROLE_PATIENT, **fields) -> User:
        user = User(subject=f'idp|{email}', email=email, role=role, **fields)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def patient(make_user) -> User:
    return make_user('pat@example.com', first_name='Pat', last_name='Molar', phone='555-0100')


@pytest.fixture
def other_patient(make_user) -> User:
    return make_user('quinn@example.com', first_name='Quinn', last_name='Canine')


@pytest.fixture
def admin(make_user) -> User:
    return make_user('front.desk@clinic.example', role=ROLE_ADMIN, first_name='Front', last_name='Desk')


@pytest.fixture
def cleaning(db_session) -> Service:
    service = Service(
        name='Cleaning',
        description='Routine cleaning and examination',
        price=Decimal('120'),
        duration=60,
        category='Preventive',
        is_active=True,
    )
    db_session.add(service)
    db_session.commit()
    db_session.refresh(service)
    return service


@pytest.fixture
def dr_x(db_session) -> Dentist:
    dentist = Dentist(
        name='Dr. X',
        specialization='General Dentistry',
        experience='8 years',
        phone='555-0199',
        is_active=True,
        is_available=True,
    )
    db_session.add(dentist)
    db_session.commit()
    db_session.refresh(dentist)
    return dentist


@pytest.fixture
def next_week() -> date:
    return date.today() + timedelta(days=7)


@pytest.fixture
def make_appointment(db_session, cleaning, dr_x, next_week):
    def _make_appointment(owner: User, status: str = 'scheduled', **fields) -> Appointment:
        values = {
            'user_id': owner.id,
            'user_first_name': owner.first_name,
            'user_email': owner.email,
            'dentist_id': dr_x.id,
            'dentist_name': dr_x.name,
            'dentist_specialization': dr_x.specialization,
            'service_id': cleaning.id,
            'service_name': cleaning.name,
            'service_price': cleaning.price,
            'service_duration': cleaning.duration,
            'appointment_date': next_week,
            'appointment_time': time(9, 0),
            'status': status,
            'total_cost': cleaning.price,
            'created_at': datetime(2026, 1, 5, 8, 0),
            'updated_at': datetime(2026, 1, 5, 8, 0),
        }
        values.update(fields)
        appointment = Appointment(**values)
        db_session.add(appointment)
        db_session.commit()
        db_session.refresh(appointment)
        return appointment

    return _make_appointment


@pytest.fixture
def client(db_session):
    app.dependency_overrides[get_db] = lambda: db_session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _auth_headers(user: User) -> dict:
        token = jwt_handler.create_access_token(subject=user.id)
        return {'Authorization': f'Bearer {token}'}

    return _auth_headers
