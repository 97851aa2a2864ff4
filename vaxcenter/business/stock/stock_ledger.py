from __future__ import annotations

from vaxcenter import db, locks as default_locks
from vaxcenter.business.core import validation
from vaxcenter.business.core.errors import (
    AlreadyExists,
    CenterNotFound,
    InsufficientStock,
    OutOfStock,
    StockEntryNotFound,
)
from vaxcenter.business.core.key_locks import KeyedLockRegistry, stock_key
from vaxcenter.business.core.persistence import read_guard, unit_of_work
from vaxcenter.business.stock.ledger_balance import LedgerBalancePolicy
from vaxcenter.business.stock.snapshot import StockSnapshot
from vaxcenter.data.core.center import Center
from vaxcenter.data.stock.stock_reconciliation import StockReconciliation
from vaxcenter.data.stock.vaccine_stock import VaccineStock
from vaxcenter.logger import get_logger

logger = get_logger("vaxcenter.business.stock.ledger")


class StockLedger:
    """
    Dose counters per (center, vaccine).

    Public mutators take the key's lock, run one unit of work and return a
    ``StockSnapshot`` of the committed row. The ``apply_*`` methods are the
    same mutations without locking or committing; they exist for composite
    operations (movements, administration) that already hold every lock they
    need and commit once for the whole operation.
    """

    def __init__(self, lock_registry: KeyedLockRegistry | None = None):
        self.locks = lock_registry or default_locks

    # Loading

    def _locked_entry(self, center_id: int, vaccine_name: str) -> VaccineStock | None:
        # Re-read inside the lock: the identity map may hold counters from before another thread's commit
        return (
            VaccineStock.query
            .filter_by(center_id=center_id, vaccine_name=vaccine_name)
            .populate_existing()
            .with_for_update()
            .first()
        )

    def _locked_entry_by_id(self, entry_id: int) -> VaccineStock | None:
        return (
            VaccineStock.query
            .filter_by(id=entry_id)
            .populate_existing()
            .with_for_update()
            .first()
        )

    @staticmethod
    def _require_center(center_id: int) -> Center:
        center = db.session.get(Center, center_id)
        if center is None:
            raise CenterNotFound(f"Center {center_id} not found.", center_id=center_id)
        return center

    # Mutations for callers already holding the key lock

    def apply_receive(self, center_id: int, vaccine_name: str, quantity: int) -> VaccineStock:
        entry = self._locked_entry(center_id, vaccine_name)
        if entry is None:
            entry = VaccineStock(
                center_id=center_id,
                vaccine_name=vaccine_name,
                total_stock=quantity,
                remaining_stock=quantity,
                used_doses=0,
                wasted_doses=0,
            )
            db.session.add(entry)
        else:
            entry.total_stock += quantity
            entry.remaining_stock += quantity
        LedgerBalancePolicy.check(entry, "receive")
        db.session.flush()
        return entry

    def apply_consume_one(self, center_id: int, vaccine_name: str) -> VaccineStock:
        entry = self._locked_entry(center_id, vaccine_name)
        if entry is None:
            raise OutOfStock(
                f"Vaccine stock for {vaccine_name} not found at this center.",
                center_id=center_id,
                vaccine_name=vaccine_name,
            )
        if entry.remaining_stock <= 0:
            raise OutOfStock(
                f"No stock available for {vaccine_name}.",
                center_id=center_id,
                vaccine_name=vaccine_name,
            )
        entry.remaining_stock -= 1
        entry.used_doses += 1
        LedgerBalancePolicy.check(entry, "consume_one")
        db.session.flush()
        return entry

    def apply_transfer_out(self, center_id: int, vaccine_name: str, quantity: int) -> VaccineStock:
        entry = self._locked_entry(center_id, vaccine_name)
        available = entry.remaining_stock if entry is not None else 0
        if available < quantity:
            if entry is None:
                message = f"Vaccine '{vaccine_name}' not found at source center."
            else:
                message = (f"Insufficient stock of {vaccine_name}: only {available} doses remain, "
                           f"{quantity} requested.")
            raise InsufficientStock(message, available=available, requested=quantity)
        # The doses leave this center: its total shrinks with its remaining so the
        # counters still balance; the receiving side's total grows by the same amount.
        entry.remaining_stock -= quantity
        entry.total_stock -= quantity
        LedgerBalancePolicy.check(entry, "transfer_out")
        db.session.flush()
        return entry

    def apply_waste(self, center_id: int, vaccine_name: str, quantity: int) -> VaccineStock:
        entry = self._locked_entry(center_id, vaccine_name)
        available = entry.remaining_stock if entry is not None else 0
        if available < quantity:
            raise InsufficientStock(
                f"Cannot record {quantity} wasted doses of {vaccine_name}: only {available} doses remain.",
                available=available,
                requested=quantity,
            )
        entry.remaining_stock -= quantity
        entry.wasted_doses += quantity
        LedgerBalancePolicy.check(entry, "record_waste")
        db.session.flush()
        return entry

    # Public operations

    def receive(self, center_id, vaccine_name, quantity) -> StockSnapshot:
        center_id = validation.entity_id(center_id, "center_id")
        vaccine_name = validation.required_text(vaccine_name, "vaccine_name")
        quantity = validation.positive_int(quantity, "quantity")

        with self.locks.hold(stock_key(center_id, vaccine_name)):
            with unit_of_work():
                self._require_center(center_id)
                entry = self.apply_receive(center_id, vaccine_name, quantity)
                snapshot = StockSnapshot.from_entry(entry)
        logger.info(f"Received {quantity} x {vaccine_name} at center {center_id} "
                    f"(remaining now {snapshot.remaining_stock})")
        return snapshot

    def consume_one(self, center_id, vaccine_name) -> StockSnapshot:
        center_id = validation.entity_id(center_id, "center_id")
        vaccine_name = validation.required_text(vaccine_name, "vaccine_name")

        with self.locks.hold(stock_key(center_id, vaccine_name)):
            with unit_of_work():
                entry = self.apply_consume_one(center_id, vaccine_name)
                snapshot = StockSnapshot.from_entry(entry)
        logger.debug(f"Consumed one dose of {vaccine_name} at center {center_id}")
        return snapshot

    def transfer_out(self, center_id, vaccine_name, quantity) -> StockSnapshot:
        center_id = validation.entity_id(center_id, "center_id")
        vaccine_name = validation.required_text(vaccine_name, "vaccine_name")
        quantity = validation.positive_int(quantity, "quantity")

        with self.locks.hold(stock_key(center_id, vaccine_name)):
            with unit_of_work():
                entry = self.apply_transfer_out(center_id, vaccine_name, quantity)
                snapshot = StockSnapshot.from_entry(entry)
        logger.info(f"Withdrew {quantity} x {vaccine_name} from center {center_id}")
        return snapshot

    def record_waste(self, center_id, vaccine_name, quantity) -> StockSnapshot:
        center_id = validation.entity_id(center_id, "center_id")
        vaccine_name = validation.required_text(vaccine_name, "vaccine_name")
        quantity = validation.positive_int(quantity, "quantity")

        with self.locks.hold(stock_key(center_id, vaccine_name)):
            with unit_of_work():
                entry = self.apply_waste(center_id, vaccine_name, quantity)
                snapshot = StockSnapshot.from_entry(entry)
        logger.warning(f"Recorded {quantity} wasted doses of {vaccine_name} at center {center_id}")
        return snapshot

    def add_vaccine_type(self, center_id, vaccine_name, initial_quantity=0) -> StockSnapshot:
        """Register a vaccine type at a center with an opening balance."""
        center_id = validation.entity_id(center_id, "center_id")
        vaccine_name = validation.required_text(vaccine_name, "vaccine_name")
        initial_quantity = validation.non_negative_int(initial_quantity, "initial_quantity")

        duplicate = AlreadyExists(
            f"A vaccine named '{vaccine_name}' already exists in this center's inventory.",
            center_id=center_id,
            vaccine_name=vaccine_name,
        )
        with self.locks.hold(stock_key(center_id, vaccine_name)):
            with unit_of_work(conflict=duplicate):
                self._require_center(center_id)
                if self._locked_entry(center_id, vaccine_name) is not None:
                    raise duplicate
                entry = VaccineStock(
                    center_id=center_id,
                    vaccine_name=vaccine_name,
                    total_stock=initial_quantity,
                    remaining_stock=initial_quantity,
                    used_doses=0,
                    wasted_doses=0,
                )
                db.session.add(entry)
                LedgerBalancePolicy.check(entry, "add_vaccine_type")
                db.session.flush()
                snapshot = StockSnapshot.from_entry(entry)
        logger.info(f"Added vaccine type {vaccine_name} at center {center_id} with {initial_quantity} doses")
        return snapshot

    def adjust_absolute(self, entry_id, remaining, used, wasted,
                        adjusted_by: str | None = None, reason: str | None = None) -> StockSnapshot:
        """
        Operator override of all three counters; total is recomputed as their sum.

        This bypasses the movement journal, so every call leaves a
        StockReconciliation row and a reconciliation log record behind.
        """
        entry_id = validation.entity_id(entry_id, "vaccine_entry_id")
        remaining = validation.non_negative_int(remaining, "remaining_stock")
        used = validation.non_negative_int(used, "used_doses")
        wasted = validation.non_negative_int(wasted, "wasted_doses")
        adjusted_by = validation.optional_text(adjusted_by, "adjusted_by")
        reason = validation.optional_text(reason, "reason")

        key_entry = self._find_entry(entry_id)
        with self.locks.hold(stock_key(key_entry.center_id, key_entry.vaccine_name)):
            with unit_of_work():
                entry = self._locked_entry_by_id(entry_id)
                if entry is None:
                    raise StockEntryNotFound("Vaccine not found.", entry_id=entry_id)
                record = StockReconciliation(
                    stock_entry_id=entry.id,
                    center_id=entry.center_id,
                    vaccine_name=entry.vaccine_name,
                    previous_total=entry.total_stock,
                    previous_remaining=entry.remaining_stock,
                    previous_used=entry.used_doses,
                    previous_wasted=entry.wasted_doses,
                    new_total=remaining + used + wasted,
                    new_remaining=remaining,
                    new_used=used,
                    new_wasted=wasted,
                    adjusted_by=adjusted_by,
                    reason=reason,
                )
                entry.remaining_stock = remaining
                entry.used_doses = used
                entry.wasted_doses = wasted
                entry.total_stock = remaining + used + wasted
                LedgerBalancePolicy.check(entry, "adjust_absolute")
                db.session.add(record)
                db.session.flush()
                previous_total = record.previous_total
                snapshot = StockSnapshot.from_entry(entry)
        logger.warning(
            f"Stock reconciliation on entry {entry_id} ({snapshot.vaccine_name} @ center {snapshot.center_id}) "
            f"by {adjusted_by or 'unknown operator'}: total {previous_total} -> {snapshot.total_stock}",
            extra={"event": "stock_reconciliation"},
        )
        return snapshot

    def remove_vaccine_type(self, entry_id) -> StockSnapshot:
        """Explicitly delete a stock entry; the center can no longer administer that type."""
        entry_id = validation.entity_id(entry_id, "vaccine_entry_id")
        key_entry = self._find_entry(entry_id)
        with self.locks.hold(stock_key(key_entry.center_id, key_entry.vaccine_name)):
            with unit_of_work():
                entry = self._locked_entry_by_id(entry_id)
                if entry is None:
                    raise StockEntryNotFound("Vaccine not found.", entry_id=entry_id)
                snapshot = StockSnapshot.from_entry(entry)
                db.session.delete(entry)
        logger.warning(f"Removed vaccine type {snapshot.vaccine_name} from center {snapshot.center_id} "
                       f"with {snapshot.remaining_stock} doses remaining")
        return snapshot

    # Reads (unlocked)

    def _find_entry(self, entry_id: int) -> VaccineStock:
        with read_guard():
            entry = db.session.get(VaccineStock, entry_id)
        if entry is None:
            raise StockEntryNotFound("Vaccine not found.", entry_id=entry_id)
        return entry

    def get_entry(self, center_id: int, vaccine_name: str) -> StockSnapshot | None:
        with read_guard():
            entry = (
                VaccineStock.query
                .filter_by(center_id=center_id, vaccine_name=vaccine_name)
                .populate_existing()
                .first()
            )
        return StockSnapshot.from_entry(entry) if entry else None

    def remaining(self, center_id: int, vaccine_name: str) -> int:
        snapshot = self.get_entry(center_id, vaccine_name)
        return snapshot.remaining_stock if snapshot else 0

    def available_vaccines(self, center_id: int) -> list[str]:
        """Names of vaccine types with at least one dose remaining at the center"""
        with read_guard():
            rows = (
                VaccineStock.query
                .filter(VaccineStock.center_id == center_id, VaccineStock.remaining_stock > 0)
                .order_by(VaccineStock.vaccine_name)
                .all()
            )
        return [row.vaccine_name for row in rows]

    def snapshots(self, center_ids=None) -> list[StockSnapshot]:
        """
        Point-in-time copies of stock entries, optionally restricted to some centers.

        Taken without the key locks: a concurrent mutation may or may not be
        reflected, which is acceptable for reporting.
        """
        with read_guard():
            query = VaccineStock.query.populate_existing()
            if center_ids is not None:
                query = query.filter(VaccineStock.center_id.in_(list(center_ids)))
            rows = query.order_by(VaccineStock.center_id, VaccineStock.vaccine_name).all()
        return [StockSnapshot.from_entry(row) for row in rows]
