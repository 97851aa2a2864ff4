"""
Tests for center, citizen and staff registration
"""

from datetime import date, timedelta

import pytest

from vaxcenter.business.core.errors import (
    AlreadyExists,
    CenterInUse,
    CenterNotFound,
    CitizenNotFound,
    StaffNotFound,
    ValidationError,
)
from vaxcenter.business.registry.center_registry import CenterRegistry
from vaxcenter.business.registry.citizen_registry import CitizenRegistry
from vaxcenter.business.registry.staff_roster import StaffRoster
from vaxcenter.data.core.center import Center
from vaxcenter.data.core.staff import Staff

CENTER = {
    'center_name': 'Riverside Community Health Center',
    'email': 'Riverside@Example.org',
    'phone': '+15550101010',
    'district': 'Riverside',
    'address': '12 Water Lane',
}


# Centers

def test_register_center_starts_unverified(app):
    center = CenterRegistry().register(**CENTER)

    assert center.verified is False
    assert center.email == 'riverside@example.org', "Email should be normalized"
    assert center.daily_capacity == app.config['DEFAULT_DAILY_CAPACITY']


def test_register_center_duplicate(app):
    CenterRegistry().register(**CENTER)
    with pytest.raises(AlreadyExists):
        CenterRegistry().register(**dict(CENTER, email='other@example.org', phone='+15550202020'))
    with pytest.raises(AlreadyExists):
        CenterRegistry().register(**dict(CENTER, center_name='Another Center', phone='+15550202020'))


@pytest.mark.parametrize('field, value', [
    ('center_name', 'R'),
    ('email', 'not-an-email'),
    ('phone', '12345'),
    ('address', 'Lane'),
    ('daily_capacity', 0),
])
def test_register_center_validation(app, field, value):
    with pytest.raises(ValidationError):
        CenterRegistry().register(**dict(CENTER, **{field: value}))
    assert Center.query.count() == 0


def test_verify_and_list_centers(make_center):
    pending = make_center(verified=False)
    registry = CenterRegistry()

    registry.verify(pending)

    assert registry.get(pending).is_operational
    assert [c.id for c in registry.list_centers(verified=False)] == []
    assert [c.id for c in registry.list_centers(verified=True)] == [pending]


def test_reject_unverified_center_removes_it_and_its_staff(make_center):
    center_id = make_center(verified=False)
    StaffRoster().add(center_id, 'Amina Yusuf', 'Nurse', '+15550303030')

    CenterRegistry().reject(center_id)

    with pytest.raises(CenterNotFound):
        CenterRegistry().get(center_id)
    assert Staff.query.filter_by(center_id=center_id).count() == 0


def test_reject_verified_center(make_center):
    center_id = make_center(verified=True)
    with pytest.raises(CenterInUse):
        CenterRegistry().reject(center_id)


def test_reject_center_with_stock(make_center, ledger):
    center_id = make_center(verified=False)
    ledger.receive(center_id, 'Moderna', 5)
    with pytest.raises(CenterInUse):
        CenterRegistry().reject(center_id)
    assert CenterRegistry().get(center_id) is not None


def test_set_daily_capacity(make_center):
    center_id = make_center(daily_capacity=10)

    center = CenterRegistry().set_daily_capacity(center_id, 25)

    assert center.daily_capacity == 25
    with pytest.raises(ValidationError):
        CenterRegistry().set_daily_capacity(center_id, -1)
    with pytest.raises(CenterNotFound):
        CenterRegistry().set_daily_capacity(9999, 5)


# Citizens

def test_register_and_find_citizen(app):
    registry = CitizenRegistry()
    citizen = registry.register('Grace Okafor', '1985-11-02', 'passport', 'P1234567', 'grace@example.org')

    assert citizen.date_of_birth == date(1985, 11, 2)
    assert registry.find_by_id_number('P1234567').id == citizen.id
    assert registry.find_by_id_number('P1234567', 'passport').id == citizen.id
    assert registry.find_by_contact('grace@example.org').id == citizen.id
    with pytest.raises(CitizenNotFound):
        registry.find_by_id_number('P1234567', 'nid')


def test_register_citizen_duplicate_identity(make_citizen):
    make_citizen(id_number='NID-42')
    with pytest.raises(AlreadyExists):
        CitizenRegistry().register('Someone Else', '1970-01-01', 'nid', 'NID-42', 'someone@example.org')


def test_register_citizen_validation(app):
    registry = CitizenRegistry()
    tomorrow = (date.today() + timedelta(days=1)).isoformat()
    with pytest.raises(ValidationError):
        registry.register('Future Child', tomorrow, 'nid', 'NID-1', 'x@example.org')
    with pytest.raises(ValidationError):
        registry.register('Bad Document', '1990-01-01', 'library_card', 'LC-1', 'x@example.org')


def test_unknown_contact(app):
    with pytest.raises(CitizenNotFound) as excinfo:
        CitizenRegistry().find_by_contact('nobody@example.org')
    assert 'register first' in excinfo.value.message


# Staff

def test_staff_roster_lifecycle(make_center):
    center_id = make_center()
    roster = StaffRoster()
    nurse_id = roster.add(center_id, 'Zoe Park', 'Nurse', '+15550404040').id
    roster.add(center_id, 'Adam Reyes', 'Administrator', '+15550505050')

    roster.update(nurse_id, 'Zoe Park', 'Support Staff', '+15550404041')

    members = roster.list_for_center(center_id)
    assert [m.name for m in members] == ['Adam Reyes', 'Zoe Park']
    assert members[1].role == 'Support Staff'

    roster.delete(nurse_id)
    assert [m.name for m in roster.list_for_center(center_id)] == ['Adam Reyes']
    with pytest.raises(StaffNotFound):
        roster.delete(nurse_id)


def test_staff_validation(make_center):
    center_id = make_center()
    roster = StaffRoster()
    with pytest.raises(ValidationError):
        roster.add(center_id, 'Zoe Park', 'Surgeon', '+15550404040')
    with pytest.raises(ValidationError):
        roster.add(center_id, 'Z', 'Nurse', '+15550404040')
    with pytest.raises(CenterNotFound):
        roster.add(9999, 'Zoe Park', 'Nurse', '+15550404040')
