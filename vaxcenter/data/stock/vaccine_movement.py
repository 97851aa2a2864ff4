import enum

from vaxcenter import db
from vaxcenter.data.core.timestamped_base import TimestampedBase, utcnow


class MovementType(str, enum.Enum):
    HUB_TO_CENTER = 'hub_to_center'
    CENTER_TO_CENTER = 'center_to_center'
    CENTER_TO_HUB = 'center_to_hub'


class VaccineMovement(TimestampedBase):
    """Immutable journal entry for doses relocated between the hub and centers"""
    __tablename__ = 'vaccine_movements'

    # A null source is the hub. center_to_hub may still name a destination
    # center, which is recorded but never credited
    from_center_id = db.Column(db.Integer, db.ForeignKey('centers.id'), nullable=True, index=True)
    to_center_id = db.Column(db.Integer, db.ForeignKey('centers.id'), nullable=True, index=True)

    vaccine_name = db.Column(db.String(100), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    movement_type = db.Column(db.String(20), nullable=False)
    movement_date = db.Column(db.DateTime, nullable=False, default=utcnow)

    # Handling metadata
    reason = db.Column(db.Text, nullable=True)
    moved_by = db.Column(db.String(200), nullable=False)
    temperature_maintained = db.Column(db.Boolean, nullable=False, default=True)
    batch_number = db.Column(db.String(100), nullable=True)
    expiry_date = db.Column(db.Date, nullable=True)

    __table_args__ = (
        db.CheckConstraint('quantity > 0', name='ck_movement_quantity_positive'),
        db.CheckConstraint(
            "movement_type IN ('hub_to_center', 'center_to_center', 'center_to_hub')",
            name='ck_movement_type_known',
        ),
    )

    from_center = db.relationship('Center', foreign_keys=[from_center_id])
    to_center = db.relationship('Center', foreign_keys=[to_center_id])

    def __repr__(self):
        return f'<VaccineMovement {self.movement_type}: {self.vaccine_name} x{self.quantity}>'

    @property
    def is_from_hub(self):
        return self.movement_type == MovementType.HUB_TO_CENTER.value

    @property
    def is_to_hub(self):
        return self.movement_type == MovementType.CENTER_TO_HUB.value
