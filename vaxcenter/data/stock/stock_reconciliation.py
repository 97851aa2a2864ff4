from vaxcenter import db
from vaxcenter.data.core.timestamped_base import TimestampedBase


class StockReconciliation(TimestampedBase):
    """Operator override of a stock entry's counters, kept apart from the movement journal"""
    __tablename__ = 'stock_reconciliations'

    # Not a foreign key: the record outlives a deleted stock entry
    stock_entry_id = db.Column(db.Integer, nullable=False, index=True)
    center_id = db.Column(db.Integer, db.ForeignKey('centers.id'), nullable=False)
    vaccine_name = db.Column(db.String(100), nullable=False)

    previous_total = db.Column(db.Integer, nullable=False)
    previous_remaining = db.Column(db.Integer, nullable=False)
    previous_used = db.Column(db.Integer, nullable=False)
    previous_wasted = db.Column(db.Integer, nullable=False)

    new_total = db.Column(db.Integer, nullable=False)
    new_remaining = db.Column(db.Integer, nullable=False)
    new_used = db.Column(db.Integer, nullable=False)
    new_wasted = db.Column(db.Integer, nullable=False)

    adjusted_by = db.Column(db.String(200), nullable=True)
    reason = db.Column(db.Text, nullable=True)

    def __repr__(self):
        return (f'<StockReconciliation entry {self.stock_entry_id}: '
                f'total {self.previous_total} -> {self.new_total}>')

    @property
    def total_delta(self):
        return self.new_total - self.previous_total
