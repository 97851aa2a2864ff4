"""
Scheduling business layer: daily capacity admission and the appointment state machine.
"""

from vaxcenter.business.scheduling.state_machine import AppointmentStateMachine
from vaxcenter.business.scheduling.capacity_scheduler import CapacityScheduler, StatusChange

__all__ = [
    'AppointmentStateMachine',
    'CapacityScheduler',
    'StatusChange',
]
