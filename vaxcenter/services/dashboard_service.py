"""
Dashboard Service
Read-only data for center dashboards, the authority's center overview and
citizens' appointment lists.
"""

from datetime import date
from typing import Any, Dict, Optional

from vaxcenter import db
from vaxcenter.business.core import validation
from vaxcenter.business.core.errors import CenterNotFound, CitizenNotFound
from vaxcenter.business.core.persistence import read_guard
from vaxcenter.business.scheduling.capacity_scheduler import CapacityScheduler
from vaxcenter.business.stock.movement_journal import MovementJournal
from vaxcenter.business.stock.stock_ledger import StockLedger
from vaxcenter.data.core.center import Center
from vaxcenter.data.core.citizen import Citizen
from vaxcenter.data.core.staff import Staff
from vaxcenter.data.stock.vaccine_movement import VaccineMovement


class DashboardService:
    """
    Service for dashboard presentation data.

    Provides methods for:
    - A center's dashboard (upcoming appointments, stock, today's capacity)
    - The management overview of every verified center
    - A citizen's appointments, looked up by contact
    - Vaccines a center can currently book and the movement history
    """

    def __init__(self, ledger: Optional[StockLedger] = None, scheduler: Optional[CapacityScheduler] = None):
        self.ledger = ledger or StockLedger()
        self.scheduler = scheduler or CapacityScheduler(self.ledger)

    @staticmethod
    def _appointment_row(appointment) -> Dict[str, Any]:
        citizen = appointment.citizen
        return {
            'id': appointment.id,
            'citizen_id': appointment.citizen_id,
            'citizen_name': citizen.full_name if citizen else 'Citizen Not Found',
            'appointment_date': appointment.appointment_date.isoformat(),
            'vaccine_type': appointment.vaccine_type,
            'dose_number': appointment.dose_number,
            'status': appointment.status,
        }

    def center_dashboard(self, center_id, today: Optional[date] = None) -> Dict[str, Any]:
        center_id = validation.entity_id(center_id, "center_id")
        today = today or date.today()

        with read_guard():
            center = db.session.get(Center, center_id)
            if center is None:
                raise CenterNotFound("Center not found.", center_id=center_id)
            appointments = self.scheduler.upcoming_for_center(center_id, today)
            appointment_rows = [self._appointment_row(appointment) for appointment in appointments]
            total_citizens = Citizen.query.count()
            booked_today = self.scheduler.booked_count(center_id, today)

        return {
            'center': {
                'id': center.id,
                'center_name': center.center_name,
                'email': center.email,
                'daily_capacity': center.daily_capacity,
                'verified': center.verified,
            },
            'appointments': appointment_rows,
            'total_citizens': total_citizens,
            'today': {
                'date': today.isoformat(),
                'booked': booked_today,
                'remaining_capacity': max(0, center.daily_capacity - booked_today),
            },
            'stock': [snapshot.to_dict() for snapshot in self.ledger.snapshots([center_id])],
        }

    def center_management_data(self, movement_limit: int = 100) -> Dict[str, Any]:
        """Verified centers with their stock and staff, plus the latest movements"""
        with read_guard():
            centers = Center.query.filter_by(verified=True).order_by(Center.center_name).all()
            center_ids = [center.id for center in centers]
            staff = (
                Staff.query.filter(Staff.center_id.in_(center_ids)).order_by(Staff.center_id, Staff.name).all()
                if center_ids else []
            )
            movements = (
                VaccineMovement.query
                .order_by(VaccineMovement.movement_date.desc(), VaccineMovement.id.desc())
                .limit(movement_limit)
                .all()
            )
            center_rows = [
                {**center.to_summary(), 'email': center.email, 'verified': center.verified,
                 'daily_capacity': center.daily_capacity}
                for center in centers
            ]

        stock = self.ledger.snapshots(center_ids) if center_ids else []
        return {
            'centers': center_rows,
            'vaccines': [snapshot.to_dict() for snapshot in stock],
            'staff': [member.to_dict(include_audit_fields=False) for member in staff],
            'movements': [movement.to_dict() for movement in movements],
        }

    def _citizen_payload(self, citizen) -> Dict[str, Any]:
        rows = []
        for appointment in self.scheduler.appointments_for_citizen(citizen.id):
            row = appointment.to_dict(include_audit_fields=False)
            row['center'] = appointment.center.to_summary() if appointment.center else None
            rows.append(row)
        return {
            'citizen': {'id': citizen.id, 'full_name': citizen.full_name, 'id_type': citizen.id_type},
            'appointments': rows,
        }

    def citizen_appointments(self, contact) -> Dict[str, Any]:
        """
        A citizen's appointments, earliest first.

        An unknown contact is not an error here: the person simply has not
        registered as a citizen yet.
        """
        contact = validation.required_text(contact, "contact")
        with read_guard():
            citizen = Citizen.query.filter_by(contact=contact).order_by(Citizen.id).first()
            if citizen is None:
                return {'citizen': None, 'appointments': []}
            return self._citizen_payload(citizen)

    def citizen_appointments_by_id(self, citizen_id) -> Dict[str, Any]:
        citizen_id = validation.entity_id(citizen_id, "citizen_id")
        with read_guard():
            citizen = db.session.get(Citizen, citizen_id)
            if citizen is None:
                raise CitizenNotFound("Citizen not found.", citizen_id=citizen_id)
            return self._citizen_payload(citizen)

    def available_vaccines(self, center_id) -> list:
        center_id = validation.entity_id(center_id, "center_id")
        return self.ledger.available_vaccines(center_id)

    @staticmethod
    def movement_history(center_id=None, vaccine_name=None, movement_type=None, limit=100) -> list:
        if center_id is not None:
            center_id = validation.entity_id(center_id, "center_id")
        limit = validation.positive_int(limit, "limit")
        return [
            movement.to_dict()
            for movement in MovementJournal.history(center_id, vaccine_name, movement_type, limit)
        ]
