"""
Row <-> dict conversion shared by every model.
Read views serialize through to_dict; the demo-data build inserts through
find_or_create_from_dict so a second run leaves existing rows alone.
"""

from datetime import date, datetime
from sqlalchemy import inspect
from vaxcenter import db
from vaxcenter.logger import get_logger

logger = get_logger("vaxcenter.business.core.data_insertion")

AUDIT_FIELDS = ('created_at', 'updated_at')


class DataInsertionMixin:

    @classmethod
    def column_keys(cls):
        return [column.key for column in inspect(cls).columns]

    @classmethod
    def from_dict(cls, data_dict, skip_fields=()):
        """
        Build an unsaved instance, ignoring keys that are not columns.

        Audit timestamps given as None fall back to the column defaults.
        """
        columns = cls.column_keys()
        values = {
            key: value for key, value in data_dict.items()
            if key in columns and key not in skip_fields
            and not (key in AUDIT_FIELDS and value is None)
        }
        return cls(**values)

    def to_dict(self, include_audit_fields=True):
        """Column values keyed by name, dates as ISO strings"""
        result = {}
        for key in self.column_keys():
            if not include_audit_fields and key in AUDIT_FIELDS:
                continue
            value = getattr(self, key)
            result[key] = value.isoformat() if isinstance(value, (datetime, date)) else value
        return result

    @classmethod
    def find_or_create_from_dict(cls, data_dict, lookup_fields, skip_fields=()):
        """
        Return ``(row, created)``. The row is looked up on ``lookup_fields``
        and inserted and committed only when missing.
        """
        from vaxcenter.business.core.persistence import unit_of_work

        lookup = {field: data_dict[field] for field in lookup_fields if field in data_dict}
        existing = cls.query.filter_by(**lookup).first() if lookup else None
        if existing is not None:
            logger.debug(f"{cls.__name__} already present for {sorted(lookup)}")
            return existing, False

        with unit_of_work():
            instance = cls.from_dict(data_dict, skip_fields)
            db.session.add(instance)
        logger.info(f"Created {cls.__name__} {instance.id}")
        return instance, True
