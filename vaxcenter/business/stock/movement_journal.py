"""
MovementJournal - append-only record of dose transfers

Responsibilities:
- Validate the shape of a movement (who may be the hub on which side)
- Withdraw at the source and receive at the destination as one transaction
- Append an immutable VaccineMovement only when both sides succeeded
- Read-only movement history
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from vaxcenter import db, locks as default_locks
from vaxcenter.business.core import validation
from vaxcenter.business.core.errors import InvalidMovement, ValidationError
from vaxcenter.business.core.key_locks import KeyedLockRegistry, stock_key
from vaxcenter.business.core.persistence import read_guard, unit_of_work
from vaxcenter.business.stock.stock_ledger import StockLedger
from vaxcenter.data.core.center import Center
from vaxcenter.data.stock.vaccine_movement import MovementType, VaccineMovement
from vaxcenter.logger import get_logger

logger = get_logger("vaxcenter.business.stock.movement_journal")

MOVEMENT_TYPES = tuple(member.value for member in MovementType)


@dataclass(frozen=True)
class MovementMeta:
    """Handling details recorded alongside a movement"""
    moved_by: str
    reason: str | None = None
    temperature_maintained: bool = True
    batch_number: str | None = None
    expiry_date: date | None = None

    @classmethod
    def from_mapping(cls, data) -> "MovementMeta":
        data = dict(data or {})
        temperature_maintained = data.get("temperature_maintained", True)
        if not isinstance(temperature_maintained, bool):
            raise ValidationError("temperature_maintained must be true or false", field="temperature_maintained")
        return cls(
            moved_by=validation.required_text(data.get("moved_by"), "moved_by"),
            reason=validation.optional_text(data.get("reason"), "reason"),
            temperature_maintained=temperature_maintained,
            batch_number=validation.optional_text(data.get("batch_number"), "batch_number"),
            expiry_date=validation.optional_date(data.get("expiry_date"), "expiry_date"),
        )


@dataclass(frozen=True)
class MovementRequest:
    from_center_id: int | None
    to_center_id: int | None
    vaccine_name: str
    quantity: int
    movement_type: MovementType
    meta: MovementMeta = field(compare=False)

    @property
    def credited_center_id(self) -> int | None:
        """Center whose ledger row receives the doses, None when they go back to the hub"""
        if self.movement_type is MovementType.CENTER_TO_HUB:
            return None
        return self.to_center_id

    @property
    def stock_keys(self) -> list[str]:
        return [
            stock_key(center_id, self.vaccine_name)
            for center_id in (self.from_center_id, self.credited_center_id)
            if center_id is not None
        ]


class MovementJournal:
    """Records transfers between the hub and centers against the stock ledger"""

    def __init__(self, ledger: StockLedger | None = None, lock_registry: KeyedLockRegistry | None = None):
        self.locks = lock_registry or default_locks
        self.ledger = ledger or StockLedger(self.locks)

    @staticmethod
    def _optional_center_id(value, field_name: str) -> int | None:
        if value in (None, ""):
            return None
        return validation.entity_id(value, field_name)

    def build_request(self, from_center_id, to_center_id, vaccine_name, quantity,
                      movement_type, meta=None) -> MovementRequest:
        """
        Validate a movement without touching state.

        - hub_to_center: source is the hub (null), destination is a center
        - center_to_center: both sides are centers, and not the same one
        - center_to_hub: source is a center; a named destination center is
          recorded on the journal entry but never credited, the hub keeps no stock
        """
        movement_type = validation.choice(
            movement_type.value if isinstance(movement_type, MovementType) else movement_type,
            "movement_type",
            MOVEMENT_TYPES,
        )
        movement_type = MovementType(movement_type)
        from_center_id = self._optional_center_id(from_center_id, "from_center_id")
        to_center_id = self._optional_center_id(to_center_id, "to_center_id")
        vaccine_name = validation.required_text(vaccine_name, "vaccine_name")
        quantity = validation.positive_int(quantity, "quantity")
        meta = meta if isinstance(meta, MovementMeta) else MovementMeta.from_mapping(meta)

        if movement_type is MovementType.HUB_TO_CENTER:
            if from_center_id is not None:
                raise InvalidMovement("A hub_to_center movement must not name a source center.")
            if to_center_id is None:
                raise InvalidMovement("Destination center is required.")
        elif movement_type is MovementType.CENTER_TO_CENTER:
            if from_center_id is None:
                raise InvalidMovement("Only hub_to_center movements may come from the hub.")
            if to_center_id is None:
                raise InvalidMovement("Destination center is required.")
            if from_center_id == to_center_id:
                raise InvalidMovement("Source and destination centers must differ.")
        else:
            if from_center_id is None:
                raise InvalidMovement("Only hub_to_center movements may come from the hub.")
            if to_center_id == from_center_id:
                raise InvalidMovement("Source and destination centers must differ.")

        return MovementRequest(
            from_center_id=from_center_id,
            to_center_id=to_center_id,
            vaccine_name=vaccine_name,
            quantity=quantity,
            movement_type=movement_type,
            meta=meta,
        )

    @staticmethod
    def _require_centers(request: MovementRequest) -> None:
        if request.to_center_id is not None and db.session.get(Center, request.to_center_id) is None:
            raise InvalidMovement("Destination center not found.", to_center_id=request.to_center_id)
        if request.from_center_id is not None and db.session.get(Center, request.from_center_id) is None:
            raise InvalidMovement("Source center not found.", from_center_id=request.from_center_id)

    def record_movement(self, from_center_id, to_center_id, vaccine_name, quantity,
                        movement_type, meta=None) -> VaccineMovement:
        """
        Apply and journal a movement.

        Both stock keys are locked (canonical order) for the whole
        check-then-commit, so no concurrent consume can invalidate the source
        check, and a failed withdrawal commits nothing on either side.

        Returns:
            The committed VaccineMovement

        Raises:
            ValidationError, InvalidMovement, InsufficientStock, Unavailable
        """
        request = self.build_request(from_center_id, to_center_id, vaccine_name, quantity, movement_type, meta)

        with self.locks.hold(*request.stock_keys):
            with unit_of_work():
                self._require_centers(request)
                if request.from_center_id is not None:
                    self.ledger.apply_transfer_out(request.from_center_id, request.vaccine_name, request.quantity)
                if request.credited_center_id is not None:
                    self.ledger.apply_receive(request.credited_center_id, request.vaccine_name, request.quantity)

                movement = VaccineMovement(
                    from_center_id=request.from_center_id,
                    to_center_id=request.to_center_id,
                    vaccine_name=request.vaccine_name,
                    quantity=request.quantity,
                    movement_type=request.movement_type.value,
                    reason=request.meta.reason,
                    moved_by=request.meta.moved_by,
                    temperature_maintained=request.meta.temperature_maintained,
                    batch_number=request.meta.batch_number,
                    expiry_date=request.meta.expiry_date,
                )
                db.session.add(movement)
                db.session.flush()
                movement_id = movement.id

        logger.info(
            f"Movement {movement_id} recorded: {request.movement_type.value} "
            f"{request.quantity} x {request.vaccine_name} "
            f"from {request.from_center_id or 'hub'} to {request.credited_center_id or 'hub'} "
            f"by {request.meta.moved_by}"
        )
        if not request.meta.temperature_maintained:
            logger.warning(
                f"Movement {movement_id} reported a cold-chain breach "
                f"({request.quantity} x {request.vaccine_name}, batch {request.meta.batch_number or 'unknown'})",
                extra={"event": "cold_chain_breach"},
            )
        return movement

    @staticmethod
    def history(center_id: int | None = None, vaccine_name: str | None = None,
                movement_type: str | None = None, limit: int | None = 100) -> list[VaccineMovement]:
        """
        Movements newest first, optionally touching one center, one vaccine or one type.
        """
        with read_guard():
            query = VaccineMovement.query
            if center_id is not None:
                query = query.filter(
                    (VaccineMovement.from_center_id == center_id) | (VaccineMovement.to_center_id == center_id)
                )
            if vaccine_name:
                query = query.filter_by(vaccine_name=vaccine_name)
            if movement_type:
                query = query.filter_by(movement_type=validation.choice(movement_type, "movement_type", MOVEMENT_TYPES))
            query = query.order_by(VaccineMovement.movement_date.desc(), VaccineMovement.id.desc())
            if limit:
                query = query.limit(limit)
            return query.all()
