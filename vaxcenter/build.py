#!/usr/bin/env python3
"""
Build orchestrator for the vaccination center system
Creates the tables and optionally inserts demo data
"""

from pathlib import Path
import json
from vaxcenter import create_app, db
from vaxcenter.logger import get_logger

logger = get_logger("vaxcenter.build")

DEMO_DATA_FILE = Path(__file__).parent / 'demo' / 'demo_data.json'


def build_models():
    """Create every table registered on the models"""
    db.create_all()
    logger.info("All database tables created")


def load_demo_data(path=DEMO_DATA_FILE):
    if not path.exists():
        logger.info(f"No demo data file at {path}, skipping")
        return None
    with open(path, 'r', encoding='utf-8') as handle:
        return json.load(handle)


def _center_ids_by_name():
    from vaxcenter.data.core.center import Center
    return {center.center_name: center.id for center in Center.query.all()}


def insert_demo_data(data):
    """
    Insert demo centers, citizens, staff and stock.

    Registry rows are find-or-create on their natural keys. Stock is only
    seeded into an empty journal, through the same movement and ledger
    operations the API uses.

    Returns:
        dict: Count of inserted rows per section
    """
    from vaxcenter.data.core.center import Center
    from vaxcenter.data.core.citizen import Citizen
    from vaxcenter.data.core.staff import Staff
    from vaxcenter.data.stock.vaccine_movement import VaccineMovement
    from vaxcenter.business.core.validation import calendar_date
    from vaxcenter.business.stock.movement_journal import MovementJournal
    from vaxcenter.business.stock.stock_ledger import StockLedger

    summary = {'centers': 0, 'citizens': 0, 'staff': 0, 'movements': 0, 'wastage': 0}

    for center_data in data.get('centers', []):
        _, created = Center.find_or_create_from_dict(center_data, lookup_fields=['center_name'])
        summary['centers'] += int(created)

    for citizen_data in data.get('citizens', []):
        citizen_data = dict(citizen_data, date_of_birth=calendar_date(citizen_data['date_of_birth'], 'date_of_birth'))
        _, created = Citizen.find_or_create_from_dict(citizen_data, lookup_fields=['id_type', 'id_number'])
        summary['citizens'] += int(created)

    center_ids = _center_ids_by_name()

    for staff_data in data.get('staff', []):
        staff_data = dict(staff_data)
        staff_data['center_id'] = center_ids[staff_data.pop('center_name')]
        _, created = Staff.find_or_create_from_dict(staff_data, lookup_fields=['center_id', 'name'])
        summary['staff'] += int(created)

    if VaccineMovement.query.first() is not None:
        logger.info("Movement journal already has entries, skipping demo stock")
        return summary

    ledger = StockLedger()
    journal = MovementJournal(ledger)
    for movement in data.get('movements', []):
        meta = {key: movement[key] for key in ('moved_by', 'reason', 'batch_number') if key in movement}
        journal.record_movement(
            center_ids.get(movement.get('from_center_name')),
            center_ids.get(movement.get('to_center_name')),
            movement['vaccine_name'],
            movement['quantity'],
            movement['movement_type'],
            meta,
        )
        summary['movements'] += 1

    for waste in data.get('wastage', []):
        ledger.record_waste(center_ids[waste['center_name']], waste['vaccine_name'], waste['quantity'])
        summary['wastage'] += 1

    return summary


def build_database(enable_demo_data=True, app=None):
    """
    Build the database

    Args:
        enable_demo_data (bool): Whether to insert demo data (default: True)
        app: Application to build against; a new one is created when omitted
    """
    app = app or create_app()

    with app.app_context():
        logger.info(f"Starting database build (demo data: {enable_demo_data})")
        build_models()

        if enable_demo_data:
            data = load_demo_data()
            if data:
                logger.info("Inserting demo data...")
                summary = insert_demo_data(data)
                logger.info(f"Demo data inserted: {summary}")

        logger.info("Database build completed successfully")


if __name__ == '__main__':
    build_database()
