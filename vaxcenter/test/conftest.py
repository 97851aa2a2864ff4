"""
Pytest configuration and fixtures for the vaccination center tests
"""
import os
import tempfile
import threading
from concurrent.futures import ThreadPoolExecutor
from itertools import count

_TEST_DIR = tempfile.mkdtemp(prefix="vaxcenter-test-")

# The logger and create_app read these at import / build time
os.environ.setdefault('SECRET_KEY', 'test_secret_key_for_vaxcenter_testing')
os.environ['VAXCENTER_LOG_DIR'] = ''
os.environ['LOG_LEVEL'] = 'WARNING'
# File database: worker threads open their own connections to it
os.environ['DATABASE_URL'] = f"sqlite:///{os.path.join(_TEST_DIR, 'vaxcenter_test.db')}"

import pytest

from vaxcenter import create_app
from vaxcenter import db as _db
from vaxcenter.business.registry.center_registry import CenterRegistry
from vaxcenter.business.registry.citizen_registry import CitizenRegistry
from vaxcenter.business.scheduling.capacity_scheduler import CapacityScheduler
from vaxcenter.business.stock.movement_journal import MovementJournal
from vaxcenter.business.stock.stock_ledger import StockLedger
from vaxcenter.services.vaccination_service import VaccinationService

_sequence = count(1)


@pytest.fixture(scope='session')
def app():
    """Create Flask application for testing"""
    app = create_app({
        'TESTING': True,
        'ENABLE_HTTPS': False,
        'FORCE_HTTPS_REDIRECT': False,
        'RATELIMIT_ENABLED': False,
        'LOCK_TIMEOUT_SECONDS': 10,
        'DEFAULT_DAILY_CAPACITY': 100,
        'SQLALCHEMY_ENGINE_OPTIONS': {'connect_args': {'timeout': 30}},
    })

    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


def _clear_tables():
    _db.session.rollback()
    for table in reversed(_db.metadata.sorted_tables):
        _db.session.execute(table.delete())
    _db.session.commit()
    _db.session.expunge_all()


@pytest.fixture(autouse=True)
def clean_database(app):
    """Every test starts from empty tables"""
    _clear_tables()
    yield
    _clear_tables()


@pytest.fixture(scope='function')
def client(app):
    """Create Flask test client"""
    return app.test_client()


@pytest.fixture
def ledger(app):
    return StockLedger()


@pytest.fixture
def journal(ledger):
    return MovementJournal(ledger)


@pytest.fixture
def scheduler(ledger):
    return CapacityScheduler(ledger)


@pytest.fixture
def service(app):
    return VaccinationService()


@pytest.fixture
def make_center(app):
    """Factory registering a center and returning its id (verified unless told otherwise)"""
    def _make_center(verified=True, daily_capacity=10, name=None):
        n = next(_sequence)
        registry = CenterRegistry()
        center = registry.register(
            name or f"Test Center {n}",
            f"center{n}@example.org",
            f"+1555000{n:04d}",
            "Central",
            f"{n} Main Street",
            daily_capacity,
        )
        center_id = center.id
        if verified:
            registry.verify(center_id)
        return center_id
    return _make_center


@pytest.fixture
def make_citizen(app):
    """Factory registering a citizen and returning its id"""
    def _make_citizen(contact=None, id_number=None):
        n = next(_sequence)
        citizen = CitizenRegistry().register(
            f"Citizen {n}",
            "1990-05-17",
            "nid",
            id_number or f"NID-{n:06d}",
            contact or f"citizen{n}@example.org",
        )
        return citizen.id
    return _make_citizen


@pytest.fixture
def run_concurrently(app):
    """
    Run ``func(index)`` on ``workers`` threads released at the same moment.

    Each worker pushes its own application context, so it gets its own
    database session, the way concurrent requests do.

    Returns:
        list: Return values in index order
    """
    def _run(func, workers):
        barrier = threading.Barrier(workers)

        def worker(index):
            with app.app_context():
                barrier.wait()
                return func(index)

        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(worker, range(workers)))
    return _run
