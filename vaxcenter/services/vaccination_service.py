"""
Vaccination Service
The facade collaborators call. Every operation returns an ActionResult instead
of raising; business exceptions become an error code and a message.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from flask import current_app, has_app_context

from vaxcenter.business.analytics.wastage_analyzer import DEFAULT_RISK_THRESHOLD, WastageAnalyzer
from vaxcenter.business.analytics.wastage_estimator import FixedRatioEstimator, WastageEstimator
from vaxcenter.business.core.errors import (
    InternalInconsistency,
    NotFound,
    Unavailable,
    VaccinationError,
    ValidationError,
)
from vaxcenter.business.registry.center_registry import CenterRegistry
from vaxcenter.business.registry.citizen_registry import CitizenRegistry
from vaxcenter.business.registry.staff_roster import StaffRoster
from vaxcenter.business.scheduling.capacity_scheduler import CapacityScheduler
from vaxcenter.business.stock.movement_journal import MovementJournal
from vaxcenter.business.stock.stock_ledger import StockLedger
from vaxcenter.logger import get_logger
from vaxcenter.services.dashboard_service import DashboardService

logger = get_logger("vaxcenter.services.vaccination")

OPAQUE_INTERNAL_MESSAGE = "An internal error occurred. The operation was not applied."


@dataclass
class ActionResult:
    """Outcome of one facade call"""
    success: bool
    value: Any = None
    error_code: Optional[str] = None
    message: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    http_status: int = 200

    @classmethod
    def ok(cls, value=None, message: Optional[str] = None, http_status: int = 200) -> "ActionResult":
        return cls(success=True, value=value, message=message, http_status=http_status)

    @classmethod
    def failure(cls, error: VaccinationError) -> "ActionResult":
        if isinstance(error, InternalInconsistency):
            return cls(success=False, error_code=error.code, message=OPAQUE_INTERNAL_MESSAGE,
                       http_status=error.http_status)
        return cls(success=False, error_code=error.code, message=error.message,
                   details=dict(error.details), http_status=error.http_status)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": self.success}
        if self.success:
            value = self.value
            payload["value"] = value.to_dict() if hasattr(value, "to_dict") else value
        else:
            payload["error_code"] = self.error_code
            if self.details:
                payload["details"] = self.details
        if self.message:
            payload["message"] = self.message
        return payload


class VaccinationService:
    """
    Typed-result facade over the ledger, journal, scheduler, analyzer and registries.

    Construct inside an application context to pick up WASTAGE_RISK_THRESHOLD
    and WASTAGE_PREDICTION_RATIO; explicit arguments win.
    """

    def __init__(self, ledger: Optional[StockLedger] = None, estimator: Optional[WastageEstimator] = None,
                 risk_threshold: Optional[float] = None):
        config = current_app.config if has_app_context() else {}
        if risk_threshold is None:
            risk_threshold = float(config.get('WASTAGE_RISK_THRESHOLD', DEFAULT_RISK_THRESHOLD))
        if estimator is None:
            estimator = FixedRatioEstimator(float(config.get('WASTAGE_PREDICTION_RATIO', 0.10)))

        self.ledger = ledger or StockLedger()
        self.journal = MovementJournal(self.ledger)
        self.scheduler = CapacityScheduler(self.ledger)
        self.analyzer = WastageAnalyzer(self.ledger, estimator, risk_threshold)
        self.centers = CenterRegistry()
        self.citizens = CitizenRegistry()
        self.staff = StaffRoster()
        self.dashboards = DashboardService(self.ledger, self.scheduler)

    def _run(self, operation: str, action: Callable[[], Any], http_status: int = 200,
             message: Optional[str] = None) -> ActionResult:
        try:
            value = action()
        except InternalInconsistency as exc:
            logger.critical(
                f"{operation} aborted on an internal inconsistency: {exc.details}",
                extra={"alert": True, "event": "internal_inconsistency"},
            )
            return ActionResult.failure(exc)
        except Unavailable as exc:
            logger.warning(f"{operation} unavailable: {exc.message}")
            return ActionResult.failure(exc)
        except (ValidationError, NotFound) as exc:
            logger.info(f"{operation} rejected ({exc.code}): {exc.message}")
            return ActionResult.failure(exc)
        except VaccinationError as exc:
            logger.info(f"{operation} refused ({exc.code}): {exc.message}")
            return ActionResult.failure(exc)
        return ActionResult.ok(value, message=message, http_status=http_status)

    # Appointments

    def book_appointment(self, center_id, citizen_id, vaccine_type, appointment_date, dose_number) -> ActionResult:
        """Returns the new appointment id"""
        return self._run(
            "book_appointment",
            lambda: self.scheduler.try_book(center_id, citizen_id, appointment_date, vaccine_type, dose_number).id,
            http_status=201,
            message="Appointment booked successfully.",
        )

    def confirm_appointment(self, appointment_id) -> ActionResult:
        def confirm():
            change = self.scheduler.confirm(appointment_id)
            return {"appointment_id": change.appointment_id, "status": change.to_status,
                    "changed": change.changed}
        return self._run("confirm_appointment", confirm)

    def administer_dose(self, appointment_id, vaccine_name=None) -> ActionResult:
        def administer():
            change = self.scheduler.administer(appointment_id, vaccine_name)
            return {"appointment_id": change.appointment_id, "status": change.to_status}
        return self._run("administer_dose", administer, message="Dose marked as administered.")

    def cancel_appointment(self, appointment_id) -> ActionResult:
        def cancel():
            change = self.scheduler.cancel(appointment_id)
            return {"appointment_id": change.appointment_id, "status": change.to_status}
        return self._run("cancel_appointment", cancel)

    def remaining_capacity(self, center_id, appointment_date) -> ActionResult:
        return self._run("remaining_capacity",
                         lambda: self.scheduler.remaining_capacity(center_id, appointment_date))

    # Stock

    def record_movement(self, from_center_id, to_center_id, vaccine_name, quantity,
                        movement_type, meta=None) -> ActionResult:
        """Returns the new movement id"""
        return self._run(
            "record_movement",
            lambda: self.journal.record_movement(
                from_center_id, to_center_id, vaccine_name, quantity, movement_type, meta
            ).id,
            http_status=201,
            message="Vaccine movement recorded successfully.",
        )

    def add_vaccine_type(self, center_id, vaccine_name, initial_quantity=0) -> ActionResult:
        return self._run(
            "add_vaccine_type",
            lambda: self.ledger.add_vaccine_type(center_id, vaccine_name, initial_quantity),
            http_status=201,
        )

    def adjust_stock(self, entry_id, remaining, used, wasted, adjusted_by=None, reason=None) -> ActionResult:
        return self._run(
            "adjust_stock",
            lambda: self.ledger.adjust_absolute(entry_id, remaining, used, wasted, adjusted_by, reason),
        )

    def remove_vaccine_type(self, entry_id) -> ActionResult:
        return self._run("remove_vaccine_type", lambda: self.ledger.remove_vaccine_type(entry_id))

    def record_wastage(self, center_id, vaccine_name, quantity) -> ActionResult:
        return self._run("record_wastage", lambda: self.ledger.record_waste(center_id, vaccine_name, quantity))

    def get_wastage_report(self, scope=None) -> ActionResult:
        """scope: None (all centers), a center id or a list of center ids"""
        return self._run("get_wastage_report", lambda: self.analyzer.compute_wastage(scope))

    # Centers

    def register_center(self, center_name, email, phone, district, address, daily_capacity=None) -> ActionResult:
        return self._run(
            "register_center",
            lambda: self.centers.register(center_name, email, phone, district, address, daily_capacity).to_dict(),
            http_status=201,
        )

    def verify_center(self, center_id) -> ActionResult:
        return self._run("verify_center", lambda: self.centers.verify(center_id).to_dict())

    def reject_center(self, center_id) -> ActionResult:
        return self._run("reject_center", lambda: self.centers.reject(center_id))

    def set_daily_capacity(self, center_id, daily_capacity) -> ActionResult:
        return self._run("set_daily_capacity",
                         lambda: self.centers.set_daily_capacity(center_id, daily_capacity).to_dict())

    def list_centers(self, verified=None) -> ActionResult:
        return self._run("list_centers",
                         lambda: [center.to_dict() for center in self.centers.list_centers(verified)])

    # Citizens

    def register_citizen(self, full_name, date_of_birth, id_type, id_number, contact) -> ActionResult:
        return self._run(
            "register_citizen",
            lambda: self.citizens.register(full_name, date_of_birth, id_type, id_number, contact).id,
            http_status=201,
        )

    def find_citizen(self, id_number=None, contact=None, id_type=None) -> ActionResult:
        def find():
            if id_number:
                citizen = self.citizens.find_by_id_number(id_number, id_type)
            elif contact:
                citizen = self.citizens.find_by_contact(contact)
            else:
                raise ValidationError("id_number or contact is required")
            return citizen.to_dict(include_audit_fields=False)
        return self._run("find_citizen", find)

    # Staff

    def add_staff(self, center_id, name, role, contact) -> ActionResult:
        return self._run("add_staff",
                         lambda: self.staff.add(center_id, name, role, contact).to_dict(), http_status=201)

    def update_staff(self, staff_id, name, role, contact) -> ActionResult:
        return self._run("update_staff", lambda: self.staff.update(staff_id, name, role, contact).to_dict())

    def delete_staff(self, staff_id) -> ActionResult:
        return self._run("delete_staff", lambda: self.staff.delete(staff_id))

    def list_staff(self, center_id) -> ActionResult:
        return self._run("list_staff",
                         lambda: [member.to_dict() for member in self.staff.list_for_center(center_id)])

    # Read views

    def center_dashboard(self, center_id) -> ActionResult:
        return self._run("center_dashboard", lambda: self.dashboards.center_dashboard(center_id))

    def center_management_data(self) -> ActionResult:
        return self._run("center_management_data", self.dashboards.center_management_data)

    def citizen_appointments(self, contact) -> ActionResult:
        return self._run("citizen_appointments", lambda: self.dashboards.citizen_appointments(contact))

    def available_vaccines(self, center_id) -> ActionResult:
        return self._run("available_vaccines", lambda: self.dashboards.available_vaccines(center_id))

    def movement_history(self, center_id=None, vaccine_name=None, movement_type=None, limit=100) -> ActionResult:
        return self._run(
            "movement_history",
            lambda: self.dashboards.movement_history(center_id, vaccine_name, movement_type, limit),
        )
