"""Appointment status state machine."""

from app.schemas.appointments import AppointmentStatus
from app.schemas.events import EventType

# Allowed transitions: current status -> reachable statuses.
# Statuses missing from the table (or mapping to nothing) are terminal.
TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset(
        {
            AppointmentStatus.APPROVED,
            AppointmentStatus.REJECTED,
            AppointmentStatus.CANCELLED,
        }
    ),
    AppointmentStatus.APPROVED: frozenset({AppointmentStatus.COMPLETED}),
    AppointmentStatus.REJECTED: frozenset(),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}

# Statuses a doctor may set; cancellation belongs to the patient
DOCTOR_DECISIONS: frozenset[AppointmentStatus] = frozenset(
    {
        AppointmentStatus.APPROVED,
        AppointmentStatus.REJECTED,
        AppointmentStatus.COMPLETED,
    }
)

EVENT_TYPES: dict[AppointmentStatus, EventType] = {
    AppointmentStatus.PENDING: EventType.CREATED,
    AppointmentStatus.APPROVED: EventType.APPROVED,
    AppointmentStatus.REJECTED: EventType.REJECTED,
    AppointmentStatus.COMPLETED: EventType.COMPLETED,
    AppointmentStatus.CANCELLED: EventType.CANCELLED,
}


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    """Check whether ``current -> target`` appears in the transition table."""
    return target in TRANSITIONS.get(current, frozenset())


def is_terminal(status: AppointmentStatus) -> bool:
    """Terminal statuses accept no further transition."""
    return not TRANSITIONS.get(status)


def source_statuses(target: AppointmentStatus) -> list[str]:
    """
    Statuses from which ``target`` can be reached.

    Used as the expected-status predicate of the conditional update, so the
    legality check and the write happen in one statement.
    """
    return sorted(current.value for current in TRANSITIONS if can_transition(current, target))


def event_type_for(status: AppointmentStatus) -> EventType:
    """Event tag emitted when an appointment reaches ``status``."""
    return EVENT_TYPES[status]
