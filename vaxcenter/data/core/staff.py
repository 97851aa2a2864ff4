from vaxcenter import db
from vaxcenter.data.core.timestamped_base import TimestampedBase

STAFF_ROLES = ('Nurse', 'Administrator', 'Support Staff')


class Staff(TimestampedBase):
    """Member of a center's staff roster"""
    __tablename__ = 'staff'

    center_id = db.Column(db.Integer, db.ForeignKey('centers.id'), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    role = db.Column(db.String(30), nullable=False)
    contact = db.Column(db.String(100), nullable=False)

    center = db.relationship('Center', back_populates='staff_members')

    def __repr__(self):
        return f'<Staff {self.id}: {self.name} ({self.role}) @ center {self.center_id}>'

    @property
    def assigned_on(self):
        return self.created_at
