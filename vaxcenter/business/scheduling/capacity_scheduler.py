from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from sqlalchemy import func

from vaxcenter import db, locks as default_locks
from vaxcenter.business.core import validation
from vaxcenter.business.core.errors import (
    AppointmentNotFound,
    CapacityExceeded,
    CenterNotFound,
    CenterUnverified,
    CitizenNotFound,
    ValidationError,
    VaccineUnavailable,
)
from vaxcenter.business.core.key_locks import (
    KeyedLockRegistry,
    appointment_key,
    booking_key,
    stock_key,
)
from vaxcenter.business.core.persistence import read_guard, unit_of_work
from vaxcenter.business.scheduling.state_machine import AppointmentStateMachine
from vaxcenter.business.stock.stock_ledger import StockLedger
from vaxcenter.data.core.center import Center
from vaxcenter.data.core.citizen import Citizen
from vaxcenter.data.core.timestamped_base import utcnow
from vaxcenter.data.scheduling.appointment import Appointment, CANCELLED
from vaxcenter.data.scheduling.appointment_status_change import AppointmentStatusChange
from vaxcenter.logger import get_logger

logger = get_logger("vaxcenter.business.scheduling.capacity_scheduler")


@dataclass(frozen=True)
class StatusChange:
    appointment_id: int
    from_status: str | None
    to_status: str

    @property
    def changed(self) -> bool:
        return self.from_status != self.to_status


class CapacityScheduler:
    """
    Admission control for appointments and owner of the appointment lifecycle.

    Bookings for one (center, day) are serialized so the capacity count and
    the insert happen as one step. Status changes for one appointment are
    serialized, and administration additionally holds the stock key so the
    dose is consumed in the same transaction as the status change.
    """

    def __init__(self, ledger: StockLedger | None = None, lock_registry: KeyedLockRegistry | None = None):
        self.locks = lock_registry or default_locks
        self.ledger = ledger or StockLedger(self.locks)

    # Helpers

    @staticmethod
    def _active_count(center_id: int, appointment_date: date) -> int:
        return (
            db.session.query(func.count(Appointment.id))
            .filter(
                Appointment.center_id == center_id,
                Appointment.appointment_date == appointment_date,
                Appointment.status != CANCELLED,
            )
            .scalar()
        ) or 0

    @staticmethod
    def _fresh_center(center_id: int) -> Center:
        center = Center.query.filter_by(id=center_id).populate_existing().first()
        if center is None:
            raise CenterNotFound("Center not found.", center_id=center_id)
        return center

    @staticmethod
    def _locked_appointment(appointment_id: int) -> Appointment:
        appointment = (
            Appointment.query
            .filter_by(id=appointment_id)
            .populate_existing()
            .with_for_update()
            .first()
        )
        if appointment is None:
            raise AppointmentNotFound("Appointment not found.", appointment_id=appointment_id)
        return appointment

    @staticmethod
    def _find_appointment(appointment_id: int) -> Appointment:
        with read_guard():
            appointment = db.session.get(Appointment, appointment_id)
        if appointment is None:
            raise AppointmentNotFound("Appointment not found.", appointment_id=appointment_id)
        return appointment

    @staticmethod
    def _set_status(appointment: Appointment, new_status: str) -> StatusChange:
        old = appointment.status
        AppointmentStateMachine.validate_transition(old, new_status)
        if old == new_status:
            return StatusChange(appointment.id, old, new_status)
        appointment.status = new_status
        appointment.status_changed_at = utcnow()
        db.session.add(AppointmentStatusChange(
            appointment_id=appointment.id,
            from_status=old,
            to_status=new_status,
        ))
        return StatusChange(appointment.id, old, new_status)

    # Booking

    def try_book(self, center_id, citizen_id, appointment_date, vaccine_type, dose_number) -> Appointment:
        """
        Admit a booking or reject it.

        Raises:
            ValidationError, CenterNotFound, CenterUnverified, CitizenNotFound,
            CapacityExceeded, VaccineUnavailable, Unavailable
        """
        center_id = validation.entity_id(center_id, "center_id")
        citizen_id = validation.entity_id(citizen_id, "citizen_id")
        appointment_date = validation.calendar_date(appointment_date, "appointment_date")
        vaccine_type = validation.required_text(vaccine_type, "vaccine_type")
        dose_number = validation.positive_int(dose_number, "dose_number")

        with self.locks.hold(booking_key(center_id, appointment_date)):
            with unit_of_work():
                center = self._fresh_center(center_id)
                if not center.is_operational:
                    raise CenterUnverified(
                        "This center is not yet verified and cannot accept bookings.",
                        center_id=center_id,
                    )
                if db.session.get(Citizen, citizen_id) is None:
                    raise CitizenNotFound("Citizen not found.", citizen_id=citizen_id)

                daily_capacity = center.daily_capacity
                booked = self._active_count(center_id, appointment_date)
                if booked >= daily_capacity:
                    raise CapacityExceeded(
                        "This center is fully booked for the selected date. Please choose another day.",
                        center_id=center_id,
                        appointment_date=appointment_date.isoformat(),
                        daily_capacity=daily_capacity,
                        booked=booked,
                    )

                if self.ledger.remaining(center_id, vaccine_type) <= 0:
                    raise VaccineUnavailable(
                        "The selected vaccine is out of stock at this center.",
                        center_id=center_id,
                        vaccine_type=vaccine_type,
                    )

                appointment = Appointment(
                    citizen_id=citizen_id,
                    center_id=center_id,
                    vaccine_type=vaccine_type,
                    appointment_date=appointment_date,
                    dose_number=dose_number,
                    status=AppointmentStateMachine.INITIAL_STATE,
                )
                db.session.add(appointment)
                db.session.flush()
                db.session.add(AppointmentStatusChange(
                    appointment_id=appointment.id,
                    from_status=None,
                    to_status=appointment.status,
                ))
                appointment_id = appointment.id

        logger.info(f"Booked appointment {appointment_id}: center {center_id} on {appointment_date} "
                    f"({booked + 1}/{daily_capacity}), {vaccine_type} dose {dose_number}")
        return appointment

    # Lifecycle

    def confirm(self, appointment_id) -> StatusChange:
        """Pending -> Scheduled. Confirming an already scheduled appointment is acknowledged as-is."""
        appointment_id = validation.entity_id(appointment_id, "appointment_id")
        with self.locks.hold(appointment_key(appointment_id)):
            with unit_of_work():
                appointment = self._locked_appointment(appointment_id)
                change = self._set_status(appointment, AppointmentStateMachine.SCHEDULED)
        if change.changed:
            logger.info(f"Appointment {appointment_id} confirmed")
        return change

    def cancel(self, appointment_id) -> StatusChange:
        """Pending | Scheduled -> Cancelled; frees the slot for the day."""
        appointment_id = validation.entity_id(appointment_id, "appointment_id")
        with self.locks.hold(appointment_key(appointment_id)):
            with unit_of_work():
                appointment = self._locked_appointment(appointment_id)
                change = self._set_status(appointment, AppointmentStateMachine.CANCELLED)
        logger.info(f"Appointment {appointment_id} cancelled (was {change.from_status})")
        return change

    def administer(self, appointment_id, vaccine_name=None) -> StatusChange:
        """
        Scheduled -> Administered, coupled with consuming one dose.

        If the dose cannot be consumed the whole transaction rolls back and the
        appointment keeps its status.

        Raises:
            AppointmentNotFound, ValidationError, InvalidTransition, OutOfStock, Unavailable
        """
        appointment_id = validation.entity_id(appointment_id, "appointment_id")
        vaccine_name = validation.optional_text(vaccine_name, "vaccine_name")

        target = self._find_appointment(appointment_id)
        vaccine_name = vaccine_name or target.vaccine_type
        if vaccine_name != target.vaccine_type:
            raise ValidationError(
                f"Appointment {appointment_id} is for {target.vaccine_type}, not {vaccine_name}.",
                field="vaccine_name",
            )
        center_id = target.center_id

        with self.locks.hold(appointment_key(appointment_id), stock_key(center_id, vaccine_name)):
            with unit_of_work():
                appointment = self._locked_appointment(appointment_id)
                AppointmentStateMachine.validate_transition(
                    appointment.status, AppointmentStateMachine.ADMINISTERED
                )
                self.ledger.apply_consume_one(center_id, vaccine_name)
                change = self._set_status(appointment, AppointmentStateMachine.ADMINISTERED)

        logger.info(f"Administered {vaccine_name} for appointment {appointment_id} at center {center_id}")
        return change

    # Reads

    def booked_count(self, center_id: int, appointment_date) -> int:
        appointment_date = validation.calendar_date(appointment_date, "appointment_date")
        with read_guard():
            return self._active_count(center_id, appointment_date)

    def remaining_capacity(self, center_id, appointment_date) -> int:
        center_id = validation.entity_id(center_id, "center_id")
        appointment_date = validation.calendar_date(appointment_date, "appointment_date")
        with read_guard():
            center = self._fresh_center(center_id)
            booked = self._active_count(center_id, appointment_date)
        return max(0, center.daily_capacity - booked)

    @staticmethod
    def appointments_for_citizen(citizen_id: int) -> list[Appointment]:
        with read_guard():
            return (
                Appointment.query
                .filter_by(citizen_id=citizen_id)
                .order_by(Appointment.appointment_date, Appointment.id)
                .all()
            )

    @staticmethod
    def upcoming_for_center(center_id: int, from_date: date) -> list[Appointment]:
        with read_guard():
            return (
                Appointment.query
                .filter(Appointment.center_id == center_id, Appointment.appointment_date >= from_date)
                .order_by(Appointment.appointment_date, Appointment.id)
                .all()
            )
