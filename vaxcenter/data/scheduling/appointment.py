from vaxcenter import db
from vaxcenter.data.core.timestamped_base import TimestampedBase, utcnow

PENDING = 'Pending'
SCHEDULED = 'Scheduled'
ADMINISTERED = 'Administered'
CANCELLED = 'Cancelled'

APPOINTMENT_STATUSES = (PENDING, SCHEDULED, ADMINISTERED, CANCELLED)


class Appointment(TimestampedBase):
    """A citizen's booked slot at a center on a given day"""
    __tablename__ = 'appointments'

    citizen_id = db.Column(db.Integer, db.ForeignKey('citizens.id'), nullable=False, index=True)
    center_id = db.Column(db.Integer, db.ForeignKey('centers.id'), nullable=False)
    vaccine_type = db.Column(db.String(100), nullable=False)
    appointment_date = db.Column(db.Date, nullable=False)
    dose_number = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(20), nullable=False, default=PENDING)
    status_changed_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        db.Index('ix_appointment_center_day', 'center_id', 'appointment_date'),
        db.CheckConstraint('dose_number >= 1', name='ck_appointment_dose_positive'),
        db.CheckConstraint(
            "status IN ('Pending', 'Scheduled', 'Administered', 'Cancelled')",
            name='ck_appointment_status_known',
        ),
    )

    citizen = db.relationship('Citizen', back_populates='appointments')
    center = db.relationship('Center')
    status_history = db.relationship(
        'AppointmentStatusChange',
        back_populates='appointment',
        order_by='AppointmentStatusChange.id',
        cascade='all, delete-orphan',
    )

    def __repr__(self):
        return (f'<Appointment {self.id}: citizen {self.citizen_id} @ center {self.center_id} '
                f'{self.appointment_date} {self.vaccine_type} dose {self.dose_number} [{self.status}]>')

    @property
    def is_active(self):
        """Counts against the center's capacity for the day"""
        return self.status != CANCELLED
