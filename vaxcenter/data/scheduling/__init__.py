from .appointment import Appointment, APPOINTMENT_STATUSES
from .appointment_status_change import AppointmentStatusChange

__all__ = [
    'Appointment',
    'APPOINTMENT_STATUSES',
    'AppointmentStatusChange',
]
