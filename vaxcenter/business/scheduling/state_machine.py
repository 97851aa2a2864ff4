"""
State machine for the appointment lifecycle

Encodes valid transitions in one table and rejects everything else.
Keeps "what is allowed" separate from "how persistence occurs".
"""

from typing import Dict, Set
from vaxcenter.business.core.errors import InvalidTransition, ValidationError
from vaxcenter.data.scheduling.appointment import (
    PENDING,
    SCHEDULED,
    ADMINISTERED,
    CANCELLED,
    APPOINTMENT_STATUSES,
)


class AppointmentStateMachine:
    """
    State machine for Appointment.status transitions.

    Pending -> Scheduled (center confirms)
    Scheduled -> Administered (dose given, stock consumed in the same transaction)
    Pending | Scheduled -> Cancelled
    Administered and Cancelled are terminal.
    """

    PENDING = PENDING
    SCHEDULED = SCHEDULED
    ADMINISTERED = ADMINISTERED
    CANCELLED = CANCELLED

    INITIAL_STATE = PENDING
    TERMINAL_STATES = {ADMINISTERED, CANCELLED}

    TRANSITIONS: Dict[str, Set[str]] = {
        PENDING: {SCHEDULED, CANCELLED},
        SCHEDULED: {ADMINISTERED, CANCELLED},
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """
        Check if transition is valid.

        Staying in the same non-terminal state is allowed (idempotent confirm).
        """
        if from_status in cls.TERMINAL_STATES:
            return False
        if from_status == to_status:
            return True
        return to_status in cls.TRANSITIONS.get(from_status, set())

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """
        Validate transition and raise exception if invalid.

        Raises:
            ValidationError: If either status is not a known appointment status
            InvalidTransition: If the table does not allow the move
        """
        for status in (from_status, to_status):
            if status not in APPOINTMENT_STATUSES:
                raise ValidationError(f"Unknown appointment status: {status!r}")
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransition(
                cls._describe_rejection(from_status, to_status),
                from_status=from_status,
                to_status=to_status,
            )

    @classmethod
    def get_allowed_transitions(cls, from_status: str) -> Set[str]:
        """Get set of allowed target statuses from current status"""
        if from_status in cls.TERMINAL_STATES:
            return set()
        return set(cls.TRANSITIONS.get(from_status, set()))

    @staticmethod
    def _describe_rejection(from_status: str, to_status: str) -> str:
        if from_status == PENDING and to_status == ADMINISTERED:
            return "Cannot mark a pending appointment as administered. Please confirm it first."
        if from_status in (ADMINISTERED, CANCELLED):
            return f"Appointment is already {from_status.lower()} and cannot change to {to_status}."
        return f"Invalid appointment status transition: {from_status} -> {to_status}"
