from __future__ import annotations

from typing import List

from vaxcenter import db
from vaxcenter.business.core import validation
from vaxcenter.business.core.errors import CenterNotFound, StaffNotFound
from vaxcenter.business.core.persistence import read_guard, unit_of_work
from vaxcenter.data.core.center import Center
from vaxcenter.data.core.staff import Staff, STAFF_ROLES
from vaxcenter.logger import get_logger

logger = get_logger("vaxcenter.business.registry.staff")


class StaffRoster:
    """Staff members assigned to a center"""

    @staticmethod
    def _fields(name, role, contact):
        return (
            validation.required_text(name, "name", min_length=2),
            validation.choice(role, "role", STAFF_ROLES),
            validation.required_text(contact, "contact", min_length=10),
        )

    @staticmethod
    def _require_center(center_id: int) -> None:
        if db.session.get(Center, center_id) is None:
            raise CenterNotFound("Center not found.", center_id=center_id)

    @staticmethod
    def _load(staff_id: int) -> Staff:
        member = db.session.get(Staff, staff_id)
        if member is None:
            raise StaffNotFound("Staff member not found.", staff_id=staff_id)
        return member

    def add(self, center_id, name, role, contact) -> Staff:
        center_id = validation.entity_id(center_id, "center_id")
        name, role, contact = self._fields(name, role, contact)
        with unit_of_work():
            self._require_center(center_id)
            member = Staff(center_id=center_id, name=name, role=role, contact=contact)
            db.session.add(member)
            db.session.flush()
            staff_id = member.id
        logger.info(f"Added staff member {staff_id} ({role}) to center {center_id}")
        return member

    def update(self, staff_id, name, role, contact) -> Staff:
        staff_id = validation.entity_id(staff_id, "staff_id")
        name, role, contact = self._fields(name, role, contact)
        with unit_of_work():
            member = self._load(staff_id)
            member.name = name
            member.role = role
            member.contact = contact
        logger.info(f"Updated staff member {staff_id}")
        return member

    def delete(self, staff_id) -> None:
        staff_id = validation.entity_id(staff_id, "staff_id")
        with unit_of_work():
            member = self._load(staff_id)
            center_id = member.center_id
            db.session.delete(member)
        logger.info(f"Removed staff member {staff_id} from center {center_id}")

    def list_for_center(self, center_id) -> List[Staff]:
        center_id = validation.entity_id(center_id, "center_id")
        with read_guard():
            self._require_center(center_id)
            return Staff.query.filter_by(center_id=center_id).order_by(Staff.name).all()
