"""
Ledger Balance Policy

Validates the counter invariant of a stock entry after a mutation.
"""

from typing import TYPE_CHECKING
from vaxcenter.business.core.errors import InternalInconsistency
from vaxcenter.logger import get_logger

if TYPE_CHECKING:
    from vaxcenter.data.stock.vaccine_stock import VaccineStock

logger = get_logger("vaxcenter.business.stock.ledger_balance")


class LedgerBalancePolicy:
    """
    Enforces stock entry invariants.

    Invariants:
    1. remaining, used and wasted are never negative
    2. total == remaining + used + wasted
    """

    @classmethod
    def check(cls, entry: 'VaccineStock', operation: str) -> None:
        """
        Validate counter consistency.

        Args:
            entry: The stock entry just mutated (not yet committed)
            operation: Name of the mutation, for the alert record

        Raises:
            InternalInconsistency: If an invariant is violated. The caller's
                unit of work rolls the mutation back.
        """
        if entry.is_balanced:
            return

        logger.critical(
            f"Stock ledger invariant violated by {operation} on entry {entry.id} "
            f"(center {entry.center_id}, {entry.vaccine_name}): "
            f"total={entry.total_stock} remaining={entry.remaining_stock} "
            f"used={entry.used_doses} wasted={entry.wasted_doses}",
            extra={"alert": True, "event": "ledger_invariant_violation"},
        )
        raise InternalInconsistency(
            "An internal error occurred.",
            operation=operation,
            stock_entry_id=entry.id,
        )
