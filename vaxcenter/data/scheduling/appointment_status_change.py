from vaxcenter import db
from vaxcenter.data.core.timestamped_base import TimestampedBase, utcnow


class AppointmentStatusChange(TimestampedBase):
    """One row per appointment status transition, oldest first"""
    __tablename__ = 'appointment_status_changes'

    appointment_id = db.Column(db.Integer, db.ForeignKey('appointments.id'), nullable=False, index=True)
    from_status = db.Column(db.String(20), nullable=True)  # null for the creating transition
    to_status = db.Column(db.String(20), nullable=False)
    changed_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    appointment = db.relationship('Appointment', back_populates='status_history')

    def __repr__(self):
        return f'<AppointmentStatusChange {self.appointment_id}: {self.from_status} -> {self.to_status}>'
