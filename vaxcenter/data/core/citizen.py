from vaxcenter import db
from vaxcenter.data.core.timestamped_base import TimestampedBase

ID_TYPES = ('nid', 'passport', 'birth_certificate')


class Citizen(TimestampedBase):
    """Person who books appointments; identified by an identity document"""
    __tablename__ = 'citizens'

    full_name = db.Column(db.String(200), nullable=False)
    date_of_birth = db.Column(db.Date, nullable=False)
    id_type = db.Column(db.String(30), nullable=False)
    id_number = db.Column(db.String(100), nullable=False)
    contact = db.Column(db.String(200), nullable=False, index=True)  # email or phone

    __table_args__ = (
        db.UniqueConstraint('id_type', 'id_number', name='uix_citizen_identity'),
    )

    appointments = db.relationship('Appointment', back_populates='citizen', lazy='dynamic')

    def __repr__(self):
        return f'<Citizen {self.id}: {self.full_name}>'
