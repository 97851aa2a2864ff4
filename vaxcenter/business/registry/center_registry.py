"""
Center Registry

Registration, verification and rejection of vaccination centers, and changes
to their daily appointment capacity.
"""

from __future__ import annotations

from typing import List, Optional

from flask import current_app
from sqlalchemy import or_

from vaxcenter import db
from vaxcenter.business.core import validation
from vaxcenter.business.core.errors import AlreadyExists, CenterInUse, CenterNotFound
from vaxcenter.business.core.persistence import read_guard, unit_of_work
from vaxcenter.data.core.center import Center
from vaxcenter.data.core.staff import Staff
from vaxcenter.data.scheduling.appointment import Appointment
from vaxcenter.data.stock.vaccine_movement import VaccineMovement
from vaxcenter.data.stock.vaccine_stock import VaccineStock
from vaxcenter.logger import get_logger

logger = get_logger("vaxcenter.business.registry.centers")


class CenterRegistry:
    """
    Lifecycle of a center record.

    New centers start unverified and cannot accept bookings until verified.
    Rejection deletes an unverified registration that nothing references yet.
    """

    @staticmethod
    def _load(center_id: int) -> Center:
        center = db.session.get(Center, center_id)
        if center is None:
            raise CenterNotFound("Center not found.", center_id=center_id)
        return center

    @staticmethod
    def _default_capacity() -> int:
        return int(current_app.config.get('DEFAULT_DAILY_CAPACITY', 100))

    def register(self, center_name, email, phone, district, address, daily_capacity=None) -> Center:
        """
        Register a new, unverified center.

        Raises:
            ValidationError: Malformed fields
            AlreadyExists: Name, email or phone already registered
        """
        center_name = validation.required_text(center_name, "center_name", min_length=2)
        email = validation.email_address(email)
        phone = validation.required_text(phone, "phone", min_length=10)
        district = validation.required_text(district, "district", min_length=2)
        address = validation.required_text(address, "address", min_length=5)
        if daily_capacity is None:
            daily_capacity = self._default_capacity()
        daily_capacity = validation.positive_int(daily_capacity, "daily_capacity")

        duplicate = AlreadyExists("A center with this name, email, or phone number already exists.")
        with unit_of_work(conflict=duplicate):
            existing = Center.query.filter(or_(
                Center.center_name == center_name,
                Center.email == email,
                Center.phone == phone,
            )).first()
            if existing is not None:
                raise duplicate
            center = Center(
                center_name=center_name,
                email=email,
                phone=phone,
                district=district,
                address=address,
                daily_capacity=daily_capacity,
                verified=False,
            )
            db.session.add(center)
            db.session.flush()
            center_id = center.id

        logger.info(f"Registered center {center_id}: {center_name} ({district})")
        return center

    def verify(self, center_id) -> Center:
        center_id = validation.entity_id(center_id, "center_id")
        with unit_of_work():
            center = self._load(center_id)
            already = center.verified
            center.verified = True
        if not already:
            logger.info(f"Center {center_id} verified")
        return center

    def reject(self, center_id) -> None:
        """
        Delete an unverified registration.

        Raises:
            CenterNotFound
            CenterInUse: The center is verified or already has stock,
                movements or appointments
        """
        center_id = validation.entity_id(center_id, "center_id")
        with unit_of_work():
            center = self._load(center_id)
            if center.verified:
                raise CenterInUse("A verified center cannot be rejected.", center_id=center_id)
            referenced = (
                VaccineStock.query.filter_by(center_id=center_id).first() is not None
                or Appointment.query.filter_by(center_id=center_id).first() is not None
                or VaccineMovement.query.filter(or_(
                    VaccineMovement.from_center_id == center_id,
                    VaccineMovement.to_center_id == center_id,
                )).first() is not None
            )
            if referenced:
                raise CenterInUse(
                    "This center already has stock, movements or appointments and cannot be rejected.",
                    center_id=center_id,
                )
            center_name = center.center_name
            Staff.query.filter_by(center_id=center_id).delete(synchronize_session="fetch")
            db.session.delete(center)
        logger.warning(f"Rejected and removed center registration {center_id}: {center_name}")

    def set_daily_capacity(self, center_id, daily_capacity) -> Center:
        """
        Change the number of appointment slots per day.

        Appointments already admitted are kept even if the new capacity is
        lower; only new bookings are checked against it.
        """
        center_id = validation.entity_id(center_id, "center_id")
        daily_capacity = validation.positive_int(daily_capacity, "daily_capacity")
        with unit_of_work():
            center = self._load(center_id)
            previous = center.daily_capacity
            center.daily_capacity = daily_capacity
        logger.info(f"Center {center_id} daily capacity {previous} -> {daily_capacity}")
        return center

    def get(self, center_id) -> Center:
        center_id = validation.entity_id(center_id, "center_id")
        with read_guard():
            return self._load(center_id)

    @staticmethod
    def list_centers(verified: Optional[bool] = None) -> List[Center]:
        with read_guard():
            query = Center.query
            if verified is not None:
                query = query.filter_by(verified=verified)
            return query.order_by(Center.center_name).all()
