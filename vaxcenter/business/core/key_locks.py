from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from datetime import date

from vaxcenter.business.core.errors import Unavailable


def stock_key(center_id: int, vaccine_name: str) -> str:
    return f"stock:{center_id}:{vaccine_name}"


def booking_key(center_id: int, appointment_date: date) -> str:
    return f"booking:{center_id}:{appointment_date.isoformat()}"


def appointment_key(appointment_id: int) -> str:
    return f"appointment:{appointment_id}"


class _KeyLock:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.RLock()
        self.users = 0


class KeyedLockRegistry:
    """
    Process-wide map of re-entrant locks keyed by string.

    Registered as a Flask extension so the acquisition timeout follows
    ``LOCK_TIMEOUT_SECONDS``. Multi-key acquisition always happens in sorted
    key order, which keeps two operations touching the same pair of keys from
    deadlocking regardless of the order their callers named them in.

    A key stays in the map only while some thread holds or waits for it.
    """

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout
        self._guard = threading.Lock()
        self._locks: dict[str, _KeyLock] = {}

    def init_app(self, app) -> None:
        self.timeout = float(app.config.get("LOCK_TIMEOUT_SECONDS", self.timeout))
        app.extensions["vaxcenter_locks"] = self

    def _check_out(self, key: str) -> threading.RLock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _KeyLock()
            entry.users += 1
            return entry.lock

    def _check_in(self, key: str) -> None:
        with self._guard:
            entry = self._locks[key]
            entry.users -= 1
            if entry.users == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, *keys: str, timeout: float | None = None):
        """Acquire every key (deduplicated, canonical order) for the duration of the block."""
        ordered = sorted(set(keys))
        wait = self.timeout if timeout is None else timeout
        deadline = time.monotonic() + wait
        checked_out: list[str] = []
        acquired: list[threading.RLock] = []
        try:
            for key in ordered:
                lock = self._check_out(key)
                checked_out.append(key)
                remaining = max(0.0, deadline - time.monotonic())
                if not lock.acquire(timeout=remaining):
                    raise Unavailable(
                        "The resource is busy, please retry",
                        lock_key=key,
                    )
                acquired.append(lock)
            yield ordered
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in checked_out:
                self._check_in(key)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
