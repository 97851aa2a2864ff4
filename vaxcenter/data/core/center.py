from vaxcenter import db
from vaxcenter.data.core.timestamped_base import TimestampedBase


class Center(TimestampedBase):
    """Vaccination center with a fixed number of appointment slots per day"""
    __tablename__ = 'centers'

    center_name = db.Column(db.String(200), nullable=False, unique=True)
    email = db.Column(db.String(200), nullable=False, unique=True)
    phone = db.Column(db.String(40), nullable=False, unique=True)

    # Location
    district = db.Column(db.String(100), nullable=False)
    address = db.Column(db.String(300), nullable=False)

    # Operational eligibility
    daily_capacity = db.Column(db.Integer, nullable=False, default=100)
    verified = db.Column(db.Boolean, nullable=False, default=False)

    __table_args__ = (
        db.CheckConstraint('daily_capacity > 0', name='ck_center_daily_capacity_positive'),
    )

    # Relationships
    stock_entries = db.relationship('VaccineStock', back_populates='center', lazy='dynamic')
    staff_members = db.relationship('Staff', back_populates='center', lazy='dynamic',
                                    cascade='all, delete-orphan')

    def __repr__(self):
        return f'<Center {self.id}: {self.center_name} cap={self.daily_capacity} verified={self.verified}>'

    @property
    def registered_on(self):
        return self.created_at

    @property
    def updated_on(self):
        return self.updated_at

    @property
    def is_operational(self):
        """Only verified centers accept bookings"""
        return bool(self.verified)

    def to_summary(self):
        return {
            'id': self.id,
            'center_name': self.center_name,
            'district': self.district,
            'address': self.address,
        }
