"""
Tests for the JSON API
Status codes and envelopes for the main flows and their failure cases
"""

DAY = '2030-07-01'

CENTER = {
    'center_name': 'Hillcrest District Hospital',
    'email': 'hillcrest@example.org',
    'phone': '+15550808080',
    'district': 'Hillcrest',
    'address': '400 Summit Avenue',
    'daily_capacity': 1,
}

CITIZEN = {
    'full_name': 'Maya Lindqvist',
    'date_of_birth': '1992-08-30',
    'id_type': 'nid',
    'id_number': 'NID-55501',
    'contact': 'maya@example.org',
}


def create_verified_center(client, **overrides):
    response = client.post('/api/centers', json=dict(CENTER, **overrides))
    assert response.status_code == 201, response.get_json()
    center_id = response.get_json()['value']['id']
    assert client.post(f'/api/centers/{center_id}/verify').status_code == 200
    return center_id


def stock_center(client, center_id, vaccine='Moderna', quantity=20):
    response = client.post('/api/movements', json={
        'to_center_id': center_id,
        'vaccine_name': vaccine,
        'quantity': quantity,
        'movement_type': 'hub_to_center',
        'moved_by': 'Hub Dispatcher',
    })
    assert response.status_code == 201, response.get_json()
    return response


def register_citizen(client, **overrides):
    response = client.post('/api/citizens', json=dict(CITIZEN, **overrides))
    assert response.status_code == 201, response.get_json()
    return response.get_json()['value']


def test_security_headers(client):
    response = client.get('/api/centers')
    assert response.status_code == 200
    assert response.headers['X-Frame-Options'] == 'DENY'
    assert response.headers['X-Content-Type-Options'] == 'nosniff'


def test_booking_lifecycle_over_http(client):
    center_id = create_verified_center(client)
    stock_center(client, center_id)
    citizen_id = register_citizen(client)

    booked = client.post('/api/appointments', json={
        'center_id': center_id,
        'citizen_id': citizen_id,
        'vaccine_type': 'Moderna',
        'appointment_date': DAY,
        'dose_number': 1,
    })
    appointment_id = booked.get_json()['value']

    assert booked.status_code == 201
    assert booked.get_json()['message'] == 'Appointment booked successfully.'
    assert client.post(f'/api/appointments/{appointment_id}/confirm').get_json()['value']['status'] == 'Scheduled'

    administered = client.post(f'/api/appointments/{appointment_id}/administer', json={'vaccine_name': 'Moderna'})
    assert administered.status_code == 200
    assert administered.get_json()['value']['status'] == 'Administered'

    capacity = client.get(f'/api/centers/{center_id}/capacity?date={DAY}')
    assert capacity.get_json()['value'] == 0


def test_booking_conflicts(client):
    center_id = create_verified_center(client)
    stock_center(client, center_id)
    first = register_citizen(client)
    second = register_citizen(client, id_number='NID-55502', contact='other@example.org')
    booking = {'center_id': center_id, 'vaccine_type': 'Moderna', 'appointment_date': DAY, 'dose_number': 1}

    assert client.post('/api/appointments', json=dict(booking, citizen_id=first)).status_code == 201
    full = client.post('/api/appointments', json=dict(booking, citizen_id=second))

    assert full.status_code == 409
    assert full.get_json()['error_code'] == 'capacity_exceeded'
    assert full.get_json()['success'] is False


def test_pending_cannot_be_administered(client):
    center_id = create_verified_center(client)
    stock_center(client, center_id)
    citizen_id = register_citizen(client)
    appointment_id = client.post('/api/appointments', json={
        'center_id': center_id, 'citizen_id': citizen_id, 'vaccine_type': 'Moderna',
        'appointment_date': DAY, 'dose_number': 1,
    }).get_json()['value']

    response = client.post(f'/api/appointments/{appointment_id}/administer')

    assert response.status_code == 409
    assert response.get_json()['error_code'] == 'invalid_transition'


def test_invalid_and_missing_inputs(client):
    not_json = client.post('/api/appointments', data='center_id=1', content_type='text/plain')
    missing = client.post('/api/appointments/9999/confirm')
    bad_date = client.get('/api/centers/1/capacity?date=yesterday')
    unknown_route = client.get('/api/nowhere')

    assert not_json.status_code == 400
    assert not_json.get_json()['message'] == 'Request body must be a JSON object'
    assert missing.status_code == 404
    assert bad_date.status_code == 400
    assert unknown_route.status_code == 404
    assert unknown_route.get_json()['error_code'] == 'not_found'


def test_duplicate_center_registration(client):
    create_verified_center(client)
    response = client.post('/api/centers', json=CENTER)
    assert response.status_code == 409
    assert response.get_json()['error_code'] == 'already_exists'


def test_movement_failures(client):
    center_id = create_verified_center(client)
    other_id = create_verified_center(client, center_name='Second Site', email='second@example.org',
                                      phone='+15550909090')
    stock_center(client, center_id, quantity=3)

    overdraw = client.post('/api/movements', json={
        'from_center_id': center_id, 'to_center_id': other_id, 'vaccine_name': 'Moderna',
        'quantity': 5, 'movement_type': 'center_to_center', 'moved_by': 'Courier',
    })
    from_hub_with_source = client.post('/api/movements', json={
        'from_center_id': center_id, 'to_center_id': other_id, 'vaccine_name': 'Moderna',
        'quantity': 1, 'movement_type': 'hub_to_center', 'moved_by': 'Courier',
    })

    assert overdraw.status_code == 409
    assert overdraw.get_json()['details'] == {'available': 3, 'requested': 5}
    assert from_hub_with_source.get_json()['error_code'] == 'invalid_movement'
    history = client.get(f'/api/movements?center_id={center_id}').get_json()['value']
    assert len(history) == 1


def test_stock_endpoints(client):
    center_id = create_verified_center(client)

    added = client.post('/api/stock', json={'center_id': center_id, 'vaccine_name': 'Pfizer', 'initial_quantity': 40})
    entry_id = added.get_json()['value']['entry_id']
    wasted = client.post('/api/stock/wastage', json={'center_id': center_id, 'vaccine_name': 'Pfizer', 'quantity': 4})
    adjusted = client.put(f'/api/stock/{entry_id}', json={
        'remaining_stock': 30, 'used_doses': 0, 'wasted_doses': 4,
        'adjusted_by': 'Store Manager', 'reason': 'Recount',
    })

    assert added.status_code == 201
    assert wasted.get_json()['value']['wasted_doses'] == 4
    assert adjusted.get_json()['value']['total_stock'] == 34
    assert client.get(f'/api/centers/{center_id}/vaccines').get_json()['value'] == ['Pfizer']
    assert client.delete(f'/api/stock/{entry_id}').status_code == 200
    assert client.delete(f'/api/stock/{entry_id}').status_code == 404


def test_wastage_report_endpoint(client):
    center_id = create_verified_center(client)
    stock_center(client, center_id, quantity=100)
    client.post('/api/stock/wastage', json={'center_id': center_id, 'vaccine_name': 'Moderna', 'quantity': 10})

    everything = client.get('/api/reports/wastage').get_json()['value']
    scoped = client.get(f'/api/reports/wastage?center_id={center_id}').get_json()['value']
    unknown = client.get(f'/api/reports/wastage?center_id={center_id}&center_id=9999')

    assert everything['wastage_percent'] == 10.0
    assert everything['high_risk_centers'][0]['center_id'] == center_id
    assert scoped['scope'] == [center_id]
    assert unknown.status_code == 404


def test_citizen_endpoints_do_not_leak_audit_fields(client):
    citizen_id = register_citizen(client)

    found = client.get('/api/citizens/lookup?id_number=NID-55501').get_json()['value']
    appointments = client.get('/api/citizens/appointments?contact=maya@example.org').get_json()['value']

    assert found['id'] == citizen_id
    assert 'created_at' not in found
    assert appointments['appointments'] == []


def test_staff_endpoints(client):
    center_id = create_verified_center(client)

    created = client.post('/api/staff', json={
        'center_id': center_id, 'name': 'Omar Haddad', 'role': 'Nurse', 'contact': '+15551010101',
    })
    staff_id = created.get_json()['value']['id']
    updated = client.put(f'/api/staff/{staff_id}', json={
        'name': 'Omar Haddad', 'role': 'Administrator', 'contact': '+15551010101',
    })

    assert created.status_code == 201
    assert updated.get_json()['value']['role'] == 'Administrator'
    assert [s['name'] for s in client.get(f'/api/centers/{center_id}/staff').get_json()['value']] == ['Omar Haddad']
    assert client.delete(f'/api/staff/{staff_id}').status_code == 200
