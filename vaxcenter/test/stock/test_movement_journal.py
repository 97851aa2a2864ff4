"""
Tests for the movement journal
Movements apply to both sides of the ledger in one transaction, or not at all
"""

from datetime import date

import pytest

from vaxcenter import db
from vaxcenter.business.core.errors import InsufficientStock, InvalidMovement, ValidationError
from vaxcenter.business.stock.movement_journal import MovementJournal, MovementMeta
from vaxcenter.data.stock.vaccine_movement import MovementType, VaccineMovement

META = {'moved_by': 'Dispatch Officer', 'reason': 'Weekly allocation', 'batch_number': 'MOD-2401'}


def counters(snapshot):
    return (snapshot.total_stock, snapshot.remaining_stock, snapshot.used_doses, snapshot.wasted_doses)


def test_hub_to_center_receives_at_destination(journal, ledger, make_center):
    center_id = make_center()

    movement = journal.record_movement(None, center_id, 'Moderna', 50, 'hub_to_center', META)

    assert counters(ledger.get_entry(center_id, 'Moderna')) == (50, 50, 0, 0)
    assert movement.id is not None
    assert movement.from_center_id is None
    assert movement.to_center_id == center_id
    assert movement.movement_type == 'hub_to_center'
    assert movement.moved_by == 'Dispatch Officer'
    assert VaccineMovement.query.count() == 1


def test_center_to_center_moves_doses(journal, ledger, make_center):
    source = make_center()
    destination = make_center()
    journal.record_movement(None, source, 'Pfizer', 30, MovementType.HUB_TO_CENTER, META)

    journal.record_movement(source, destination, 'Pfizer', 10, 'center_to_center', META)

    assert counters(ledger.get_entry(source, 'Pfizer')) == (20, 20, 0, 0)
    assert counters(ledger.get_entry(destination, 'Pfizer')) == (10, 10, 0, 0)


def test_center_to_hub_returns_doses(journal, ledger, make_center):
    center_id = make_center()
    ledger.receive(center_id, 'Moderna', 20)

    movement = journal.record_movement(center_id, None, 'Moderna', 5, 'center_to_hub', META)

    assert movement.is_to_hub
    assert counters(ledger.get_entry(center_id, 'Moderna')) == (15, 15, 0, 0)


def test_center_to_hub_records_named_destination_without_crediting_it(journal, ledger, make_center):
    """Doses returned to the hub leave the source; the named center only appears on the journal entry"""
    center_id = make_center()
    other_id = make_center()
    ledger.receive(center_id, 'Moderna', 20)

    movement = journal.record_movement(center_id, other_id, 'Moderna', 5, 'center_to_hub', META)

    assert movement.is_to_hub
    assert movement.to_center_id == other_id
    assert counters(ledger.get_entry(center_id, 'Moderna')) == (15, 15, 0, 0)
    assert ledger.get_entry(other_id, 'Moderna') is None, "The hub keeps no stock, nothing is credited"


def test_center_to_hub_with_unknown_destination(journal, ledger, make_center):
    center_id = make_center()
    ledger.receive(center_id, 'Moderna', 20)

    with pytest.raises(InvalidMovement):
        journal.record_movement(center_id, 9999, 'Moderna', 5, 'center_to_hub', META)

    assert counters(ledger.get_entry(center_id, 'Moderna')) == (20, 20, 0, 0)
    assert VaccineMovement.query.count() == 0


def test_failed_withdrawal_commits_nothing(journal, ledger, make_center):
    """Insufficient source stock leaves both sides and the journal untouched"""
    source = make_center()
    destination = make_center()
    ledger.receive(source, 'Moderna', 5)

    with pytest.raises(InsufficientStock):
        journal.record_movement(source, destination, 'Moderna', 8, 'center_to_center', META)

    assert counters(ledger.get_entry(source, 'Moderna')) == (5, 5, 0, 0)
    assert ledger.get_entry(destination, 'Moderna') is None, "Destination must not be credited"
    assert VaccineMovement.query.count() == 0


@pytest.mark.parametrize('movement_type, from_side, to_side', [
    ('hub_to_center', 'a', 'b'),
    ('hub_to_center', None, None),
    ('center_to_center', None, 'b'),
    ('center_to_center', 'a', None),
    ('center_to_center', 'a', 'a'),
    ('center_to_hub', 'a', 'a'),
    ('center_to_hub', None, None),
])
def test_invalid_movement_shapes(journal, ledger, make_center, movement_type, from_side, to_side):
    centers = {'a': make_center(), 'b': make_center(), None: None}
    ledger.receive(centers['a'], 'Moderna', 10)

    with pytest.raises(InvalidMovement):
        journal.record_movement(centers[from_side], centers[to_side], 'Moderna', 1, movement_type, META)

    assert counters(ledger.get_entry(centers['a'], 'Moderna')) == (10, 10, 0, 0)
    assert VaccineMovement.query.count() == 0


def test_unknown_destination_center(journal):
    with pytest.raises(InvalidMovement):
        journal.record_movement(None, 9999, 'Moderna', 5, 'hub_to_center', META)
    assert VaccineMovement.query.count() == 0


def test_unknown_movement_type(journal, make_center):
    center_id = make_center()
    with pytest.raises(ValidationError):
        journal.record_movement(None, center_id, 'Moderna', 5, 'airdrop', META)


def test_moved_by_is_required(journal, make_center):
    center_id = make_center()
    with pytest.raises(ValidationError):
        journal.record_movement(None, center_id, 'Moderna', 5, 'hub_to_center', {'reason': 'No signature'})


def test_meta_from_mapping():
    meta = MovementMeta.from_mapping({
        'moved_by': ' Courier ',
        'temperature_maintained': False,
        'expiry_date': '2031-03-01',
    })

    assert meta.moved_by == 'Courier'
    assert meta.temperature_maintained is False
    assert meta.expiry_date == date(2031, 3, 1)
    with pytest.raises(ValidationError):
        MovementMeta.from_mapping({'moved_by': 'Courier', 'temperature_maintained': 'no'})


def test_cold_chain_breach_is_recorded(journal, make_center):
    center_id = make_center()
    meta = dict(META, temperature_maintained=False)

    movement = journal.record_movement(None, center_id, 'Moderna', 5, 'hub_to_center', meta)

    stored = db.session.get(VaccineMovement, movement.id)
    assert stored.temperature_maintained is False


def test_history_newest_first_with_filters(journal, make_center):
    first = make_center()
    second = make_center()
    journal.record_movement(None, first, 'Moderna', 10, 'hub_to_center', META)
    journal.record_movement(None, second, 'Pfizer', 10, 'hub_to_center', META)
    journal.record_movement(first, second, 'Moderna', 4, 'center_to_center', META)

    everything = MovementJournal.history()
    touching_second = MovementJournal.history(center_id=second)
    moderna_transfers = MovementJournal.history(vaccine_name='Moderna', movement_type='center_to_center')

    assert [m.quantity for m in everything] == [4, 10, 10]
    assert len(touching_second) == 2
    assert [m.from_center_id for m in moderna_transfers] == [first]
    assert len(MovementJournal.history(limit=1)) == 1


def test_concurrent_transfers_never_overdraw_source(ledger, make_center, run_concurrently):
    """Simultaneous withdrawals from one source succeed only while doses remain"""
    source = make_center()
    destination = make_center()
    ledger.receive(source, 'Moderna', 10)

    def transfer(_):
        try:
            MovementJournal().record_movement(source, destination, 'Moderna', 3, 'center_to_center', META)
            return True
        except InsufficientStock:
            return False

    outcomes = run_concurrently(transfer, 6)

    assert outcomes.count(True) == 3
    assert counters(ledger.get_entry(source, 'Moderna')) == (1, 1, 0, 0)
    assert counters(ledger.get_entry(destination, 'Moderna')) == (9, 9, 0, 0)
    assert VaccineMovement.query.count() == 3


def test_opposite_transfers_between_two_centers_both_complete(ledger, make_center, run_concurrently):
    """A->B and B->A at the same time lock the same pair of keys in one order and never deadlock"""
    first = make_center()
    second = make_center()
    ledger.receive(first, 'Moderna', 40)
    ledger.receive(second, 'Moderna', 40)

    def transfer(index):
        source, destination = (first, second) if index % 2 == 0 else (second, first)
        MovementJournal().record_movement(source, destination, 'Moderna', 2, 'center_to_center', META)
        return index

    outcomes = run_concurrently(transfer, 8)

    assert sorted(outcomes) == list(range(8))
    assert VaccineMovement.query.count() == 8
    assert counters(ledger.get_entry(first, 'Moderna')) == (40, 40, 0, 0)
    assert counters(ledger.get_entry(second, 'Moderna')) == (40, 40, 0, 0)
