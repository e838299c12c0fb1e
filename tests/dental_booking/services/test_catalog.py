from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from dental_booking.core.errors import NotFoundError, PermissionDenied, TransientStoreError, ValidationError
from dental_booking.models.dentist import Dentist
from dental_booking.models.service import Service
from dental_booking.services import catalog


def _add_dentist(db_session, name: str, is_active: bool = True) -> Dentist:
    dentist = Dentist(name=name, specialization='General Dentistry', is_active=is_active)
    db_session.add(dentist)
    db_session.commit()
    return dentist


def test_list_dentists_returns_active_only_sorted_by_name(db_session) -> None:
    _add_dentist(db_session, 'Dr. Zed')
    _add_dentist(db_session, 'Dr. Adams')
    _add_dentist(db_session, 'Dr. Retired', is_active=False)

    names = [dentist.name for dentist in catalog.list_dentists(db_session)]

    assert names == ['Dr. Adams', 'Dr. Zed']


def test_list_services_excludes_inactive(db_session, cleaning) -> None:
    db_session.add(Service(name='Gold Crown', price=Decimal('900'), duration=90, category='Restorative', is_active=False))
    db_session.commit()

    services = catalog.list_services(db_session)

    assert [service.id for service in services] == [cleaning.id]
    assert all(service.is_active for service in services)


def test_empty_catalog_lists_nothing(db_session) -> None:
    assert catalog.list_dentists(db_session) == []
    assert catalog.list_services(db_session) == []


def test_get_dentist_unknown_id(db_session) -> None:
    with pytest.raises(NotFoundError) as exception_info:
        catalog.get_dentist(db_session, 'nope')

    assert exception_info.value.field == 'dentist_id'


def test_read_is_retried_once_after_a_store_failure(db_session, cleaning, monkeypatch) -> None:
    original_query = db_session.query
    calls = {'count': 0}

    def flaky_query(*args, **kwargs):
        calls['count'] += 1
        if calls['count'] == 1:
            raise OperationalError('SELECT', {}, Exception('timeout'))
        return original_query(*args, **kwargs)

    monkeypatch.setattr(db_session, 'query', flaky_query)

    services = catalog.list_services(db_session)

    assert [service.id for service in services] == [cleaning.id]
    assert calls['count'] == 2


def test_read_failing_twice_is_transient(db_session, monkeypatch) -> None:
    def failing_query(*args, **kwargs):
        raise OperationalError('SELECT', {}, Exception('timeout'))

    monkeypatch.setattr(db_session, 'query', failing_query)

    with pytest.raises(TransientStoreError):
        catalog.list_dentists(db_session)


def test_admin_creates_dentist(db_session, admin) -> None:
    dentist = catalog.create_dentist(
        db_session,
        admin,
        {'name': '  Dr. New ', 'specialization': 'Orthodontics', 'experience': '3 years'},
    )

    assert dentist.name == 'Dr. New'
    assert dentist.is_active is True
    assert [listed.id for listed in catalog.list_dentists(db_session)] == [dentist.id]


def test_patient_cannot_create_service_and_nothing_is_stored(db_session, patient) -> None:
    with pytest.raises(PermissionDenied):
        catalog.create_service(
            db_session,
            patient,
            {'name': 'Sealant', 'price': 50, 'duration': 30, 'category': 'Preventive'},
        )

    assert db_session.query(Service).count() == 0


def test_patient_cannot_update_dentist(db_session, patient, dr_x) -> None:
    with pytest.raises(PermissionDenied):
        catalog.update_dentist(db_session, patient, dr_x.id, {'is_active': False})

    db_session.refresh(dr_x)
    assert dr_x.is_active is True


@pytest.mark.parametrize(
    ('data', 'field'),
    [
        ({'name': '', 'price': 50, 'duration': 30, 'category': 'Preventive'}, 'name'),
        ({'name': 'Sealant', 'price': -1, 'duration': 30, 'category': 'Preventive'}, 'price'),
        ({'name': 'Sealant', 'price': 'free', 'duration': 30, 'category': 'Preventive'}, 'price'),
        ({'name': 'Sealant', 'price': 50, 'duration': 0, 'category': 'Preventive'}, 'duration'),
        ({'name': 'Sealant', 'price': 50, 'duration': 30, 'category': ' '}, 'category'),
        ({'name': 'Sealant', 'price': 50, 'duration': 30, 'category': 'Preventive', 'color': 'blue'}, 'color'),
    ],
)
def test_create_service_validation(db_session, admin, data, field) -> None:
    with pytest.raises(ValidationError) as exception_info:
        catalog.create_service(db_session, admin, data)

    assert exception_info.value.field == field


def test_create_service_stores_decimal_price(db_session, admin) -> None:
    service = catalog.create_service(
        db_session,
        admin,
        {'name': 'Sealant', 'price': '49.50', 'duration': 30, 'category': 'Preventive'},
    )

    assert service.price == Decimal('49.50')


def test_disabled_dentist_drops_out_of_listing(db_session, admin, dr_x) -> None:
    catalog.update_dentist(db_session, admin, dr_x.id, {'is_active': False})

    assert catalog.list_dentists(db_session) == []
    assert catalog.get_dentist(db_session, dr_x.id).is_active is False


def test_update_service_changes_price(db_session, admin, cleaning) -> None:
    updated = catalog.update_service(db_session, admin, cleaning.id, {'price': 135})

    assert updated.price == Decimal('135')
    assert updated.name == 'Cleaning'


def test_seed_sample_catalog_only_fills_empty_tables(db_session) -> None:
    assert catalog.seed_sample_catalog(db_session) == (4, 3)
    assert catalog.seed_sample_catalog(db_session) == (0, 0)

    assert [service.name for service in catalog.list_services(db_session)] == [
        'Dental Filling',
        'Regular Cleaning',
        'Root Canal',
        'Teeth Whitening',
    ]


def test_patient_cannot_create_dentist_and_nothing_is_stored(db_session, patient) -> None:
    with pytest.raises(PermissionDenied):
        catalog.create_dentist(db_session, patient, {'name': 'Dr. Self', 'specialization': 'General Dentistry'})

    assert db_session.query(Dentist).count() == 0


def test_update_service_rejects_null_active_flag(db_session, admin, cleaning) -> None:
    with pytest.raises(ValidationError) as exception_info:
        catalog.update_service(db_session, admin, cleaning.id, {'is_active': None})

    assert exception_info.value.field == 'is_active'
    db_session.refresh(cleaning)
    assert cleaning.is_active is True
