from datetime import datetime, timezone
from vaxcenter import db
from vaxcenter.business.core.data_insertion_mixin import DataInsertionMixin


def utcnow():
    """Naive UTC timestamp, the form stored in every DateTime column"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TimestampedBase(db.Model, DataInsertionMixin):
    """Abstract base class for all persisted entities with creation/update timestamps"""

    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)
