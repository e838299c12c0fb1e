from dental_booking.models.dentist import Dentist


def test_root_reports_running(client) -> None:
    response = client.get('/')

    assert response.status_code == 200
    assert response.json() == {'status': 'Dental Booking API Running'}


def test_dentists_listing_is_public_and_active_only(client, db_session, dr_x) -> None:
    db_session.add(Dentist(name='Dr. Away', specialization='Orthodontics', is_active=False))
    db_session.commit()

    response = client.get('/dentists')

    assert response.status_code == 200
    assert [row['name'] for row in response.json()] == ['Dr. X']


def test_services_listing(client, cleaning) -> None:
    response = client.get('/services')

    assert response.status_code == 200
    body = response.json()
    assert [row['id'] for row in body] == [cleaning.id]
    assert body[0]['duration'] == 60


def test_unknown_service_is_404(client) -> None:
    response = client.get('/services/nope')

    assert response.status_code == 404
    assert response.json()['field'] == 'service_id'


def test_admin_creates_service(client, admin, auth_headers) -> None:
    response = client.post(
        '/services',
        json={'name': 'Sealant', 'price': '45.00', 'duration': 20, 'category': 'Preventive'},
        headers=auth_headers(admin),
    )

    assert response.status_code == 201
    assert response.json()['name'] == 'Sealant'
    assert [row['name'] for row in client.get('/services').json()] == ['Sealant']


def test_patient_cannot_create_dentist(client, patient, auth_headers) -> None:
    response = client.post(
        '/dentists',
        json={'name': 'Dr. Self', 'specialization': 'General Dentistry'},
        headers=auth_headers(patient),
    )

    assert response.status_code == 403
    assert client.get('/dentists').json() == []


def test_negative_price_is_rejected(client, admin, cleaning, auth_headers) -> None:
    response = client.patch(f'/services/{cleaning.id}', json={'price': -5}, headers=auth_headers(admin))

    assert response.status_code == 400
    assert response.json()['field'] == 'price'


def test_admin_disables_dentist(client, admin, dr_x, auth_headers) -> None:
    response = client.patch(f'/dentists/{dr_x.id}', json={'is_active': False}, headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json()['is_active'] is False
    assert client.get('/dentists').json() == []


def test_null_active_flag_is_rejected_and_dentist_unchanged(client, admin, dr_x, auth_headers, db_session) -> None:
    response = client.patch(f'/dentists/{dr_x.id}', json={'is_active': None}, headers=auth_headers(admin))

    assert response.status_code == 400
    assert response.json()['field'] == 'is_active'
    db_session.refresh(dr_x)
    assert dr_x.is_active is True
    assert client.get(f'/dentists/{dr_x.id}').status_code == 200


def test_null_availability_flag_is_rejected(client, admin, dr_x, auth_headers) -> None:
    response = client.patch(f'/dentists/{dr_x.id}', json={'is_available': None}, headers=auth_headers(admin))

    assert response.status_code == 400
    assert response.json()['field'] == 'is_available'


def test_null_service_active_flag_is_rejected(client, admin, cleaning, auth_headers, db_session) -> None:
    response = client.patch(f'/services/{cleaning.id}', json={'is_active': None}, headers=auth_headers(admin))

    assert response.status_code == 400
    db_session.refresh(cleaning)
    assert cleaning.is_active is True
    assert [row['id'] for row in client.get('/services').json()] == [cleaning.id]
