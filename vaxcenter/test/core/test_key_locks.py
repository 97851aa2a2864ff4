"""
Tests for the keyed lock registry
"""

import threading
from datetime import date

import pytest

from vaxcenter import locks
from vaxcenter.business.core.errors import Unavailable
from vaxcenter.business.core.key_locks import (
    KeyedLockRegistry,
    appointment_key,
    booking_key,
    stock_key,
)


def test_key_formats():
    assert stock_key(3, 'Moderna') == 'stock:3:Moderna'
    assert booking_key(3, date(2030, 1, 9)) == 'booking:3:2030-01-09'
    assert appointment_key(12) == 'appointment:12'


def test_keys_acquired_in_sorted_order_without_duplicates():
    registry = KeyedLockRegistry(timeout=1)
    with registry.hold('stock:2:Moderna', 'stock:1:Moderna', 'stock:2:Moderna') as keys:
        assert keys == ['stock:1:Moderna', 'stock:2:Moderna']
        assert len(registry) == 2
    assert len(registry) == 0, "Released keys are dropped from the registry"


def test_locks_are_reentrant():
    registry = KeyedLockRegistry(timeout=1)
    with registry.hold('stock:1:Moderna'):
        with registry.hold('stock:1:Moderna', 'appointment:1'):
            pass
        assert len(registry) == 1, "The outer hold keeps its key"
    assert len(registry) == 0


def test_timeout_raises_unavailable():
    """A key held by another thread past the timeout means 'retry later'"""
    registry = KeyedLockRegistry(timeout=0.1)
    held = threading.Event()
    release = threading.Event()

    def holder():
        with registry.hold('stock:1:Moderna'):
            held.set()
            release.wait(5)

    thread = threading.Thread(target=holder)
    thread.start()
    held.wait(5)
    try:
        with pytest.raises(Unavailable) as excinfo:
            with registry.hold('stock:0:Moderna', 'stock:1:Moderna'):
                pass
        assert excinfo.value.details == {'lock_key': 'stock:1:Moderna'}
    finally:
        release.set()
        thread.join()

    # The first key was released when the second timed out
    with registry.hold('stock:0:Moderna', timeout=0.1):
        pass
    assert len(registry) == 0


def test_app_registry_uses_configured_timeout(app):
    assert app.extensions["vaxcenter_locks"] is locks
    assert locks.timeout == app.config["LOCK_TIMEOUT_SECONDS"]
