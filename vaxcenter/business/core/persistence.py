from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, OperationalError

from vaxcenter import db
from vaxcenter.business.core.errors import InternalInconsistency, Unavailable, VaccinationError
from vaxcenter.logger import get_logger

logger = get_logger("vaxcenter.business.core.persistence")


@contextmanager
def unit_of_work(conflict: VaccinationError | None = None):
    """
    Commit the session when the block succeeds, roll it back otherwise.

    Callers hold their key locks around this block so the commit happens before
    any other thread can observe the keys. Persistence timeouts surface as
    ``Unavailable``; constraint violations as ``InternalInconsistency`` unless
    the caller names the conflict a duplicate row stands for.
    """
    try:
        yield db.session
        db.session.commit()
    except VaccinationError:
        db.session.rollback()
        raise
    except IntegrityError as exc:
        db.session.rollback()
        if conflict is not None:
            raise conflict from exc
        logger.critical(
            f"Database constraint rejected a ledger write: {exc.orig}",
            extra={"alert": True, "event": "integrity_violation"},
        )
        raise InternalInconsistency("An internal error occurred.") from exc
    except OperationalError as exc:
        db.session.rollback()
        logger.error(f"Persistence layer unavailable: {exc.orig}")
        raise Unavailable("The database is temporarily unavailable, please retry") from exc
    except Exception:
        db.session.rollback()
        raise


@contextmanager
def read_guard():
    """Map persistence timeouts on read paths to ``Unavailable``."""
    try:
        yield db.session
    except OperationalError as exc:
        db.session.rollback()
        logger.error(f"Persistence layer unavailable: {exc.orig}")
        raise Unavailable("The database is temporarily unavailable, please retry") from exc
