"""
Citizen Registry

Citizens are identified by an identity document (type + number); appointments
reference them by id.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from vaxcenter import db
from vaxcenter.business.core import validation
from vaxcenter.business.core.errors import AlreadyExists, CitizenNotFound, ValidationError
from vaxcenter.business.core.persistence import read_guard, unit_of_work
from vaxcenter.data.core.citizen import Citizen, ID_TYPES
from vaxcenter.logger import get_logger

logger = get_logger("vaxcenter.business.registry.citizens")


class CitizenRegistry:

    def register(self, full_name, date_of_birth, id_type, id_number, contact) -> Citizen:
        full_name = validation.required_text(full_name, "full_name")
        date_of_birth = validation.calendar_date(date_of_birth, "date_of_birth")
        if date_of_birth > date.today():
            raise ValidationError("date_of_birth cannot be in the future", field="date_of_birth")
        id_type = validation.choice(id_type, "id_type", ID_TYPES)
        id_number = validation.required_text(id_number, "id_number")
        contact = validation.required_text(contact, "contact")

        duplicate = AlreadyExists("A citizen with this identification number is already registered.")
        with unit_of_work(conflict=duplicate):
            if Citizen.query.filter_by(id_type=id_type, id_number=id_number).first() is not None:
                raise duplicate
            citizen = Citizen(
                full_name=full_name,
                date_of_birth=date_of_birth,
                id_type=id_type,
                id_number=id_number,
                contact=contact,
            )
            db.session.add(citizen)
            db.session.flush()
            citizen_id = citizen.id

        # Identity numbers and contacts stay out of the log
        logger.info(f"Registered citizen {citizen_id} ({id_type})")
        return citizen

    def get(self, citizen_id) -> Citizen:
        citizen_id = validation.entity_id(citizen_id, "citizen_id")
        with read_guard():
            citizen = db.session.get(Citizen, citizen_id)
        if citizen is None:
            raise CitizenNotFound("Citizen not found.", citizen_id=citizen_id)
        return citizen

    def find_by_id_number(self, id_number, id_type: Optional[str] = None) -> Citizen:
        id_number = validation.required_text(id_number, "id_number")
        with read_guard():
            query = Citizen.query.filter_by(id_number=id_number)
            if id_type is not None:
                query = query.filter_by(id_type=validation.choice(id_type, "id_type", ID_TYPES))
            citizen = query.order_by(Citizen.id).first()
        if citizen is None:
            raise CitizenNotFound("Citizen not found.")
        return citizen

    def find_by_contact(self, contact) -> Citizen:
        contact = validation.required_text(contact, "contact")
        with read_guard():
            citizen = Citizen.query.filter_by(contact=contact).order_by(Citizen.id).first()
        if citizen is None:
            raise CitizenNotFound("Citizen not found. Please register first.")
        return citizen
