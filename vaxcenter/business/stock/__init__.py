"""
Stock business layer.

All mutations of dose counters go through StockLedger; transfers go through
MovementJournal so that both sides and the journal row commit together.
"""

from vaxcenter.business.stock.snapshot import StockSnapshot
from vaxcenter.business.stock.stock_ledger import StockLedger
from vaxcenter.business.stock.movement_journal import MovementJournal, MovementMeta

__all__ = [
    'StockSnapshot',
    'StockLedger',
    'MovementJournal',
    'MovementMeta',
]
