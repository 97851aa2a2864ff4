"""
Stock data models: per-center dose counters, the movement journal and
operator reconciliations.
"""

from .vaccine_stock import VaccineStock
from .vaccine_movement import MovementType, VaccineMovement
from .stock_reconciliation import StockReconciliation

__all__ = [
    'VaccineStock',
    'MovementType',
    'VaccineMovement',
    'StockReconciliation',
]
