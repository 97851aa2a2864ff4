from vaxcenter import db
from vaxcenter.data.core.timestamped_base import TimestampedBase


class VaccineStock(TimestampedBase):
    """Dose counters for one vaccine type held at one center"""
    __tablename__ = 'vaccine_stock'

    center_id = db.Column(db.Integer, db.ForeignKey('centers.id'), nullable=False, index=True)
    vaccine_name = db.Column(db.String(100), nullable=False)

    # Counters
    total_stock = db.Column(db.Integer, nullable=False, default=0)
    remaining_stock = db.Column(db.Integer, nullable=False, default=0)
    used_doses = db.Column(db.Integer, nullable=False, default=0)
    wasted_doses = db.Column(db.Integer, nullable=False, default=0)

    __table_args__ = (
        db.UniqueConstraint('center_id', 'vaccine_name', name='uix_center_vaccine'),
        db.CheckConstraint('remaining_stock >= 0', name='ck_stock_remaining_non_negative'),
        db.CheckConstraint('used_doses >= 0', name='ck_stock_used_non_negative'),
        db.CheckConstraint('wasted_doses >= 0', name='ck_stock_wasted_non_negative'),
        db.CheckConstraint(
            'total_stock = remaining_stock + used_doses + wasted_doses',
            name='ck_stock_counters_balance',
        ),
    )

    center = db.relationship('Center', back_populates='stock_entries')

    def __repr__(self):
        return (f'<VaccineStock {self.vaccine_name} @ center {self.center_id}: '
                f'total={self.total_stock} remaining={self.remaining_stock} '
                f'used={self.used_doses} wasted={self.wasted_doses}>')

    @property
    def is_balanced(self):
        """total == remaining + used + wasted, with no negative counter"""
        counters = (self.remaining_stock, self.used_doses, self.wasted_doses)
        if any(value is None or value < 0 for value in counters):
            return False
        return self.total_stock == sum(counters)

    @property
    def is_available(self):
        return (self.remaining_stock or 0) > 0
