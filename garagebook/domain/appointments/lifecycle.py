"""
Appointment lifecycle

REQUESTED → CONFIRMED → IN_PROGRESS → COMPLETED
    │           │  ▲          │
    │           ▼  │          │
    │       RESCHEDULED       │
    ▼           ▼             ▼
 CANCELED    CANCELED / NOSHOW   CANCELED

RESCHEDULED is only passed through while a confirmed appointment moves to a
new window; the appointment is stored as CONFIRMED again.
"""

from ...models import AppointmentStatus
from ...shared.errors import InvalidTransitionError

TERMINAL_STATUSES = frozenset(
    {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELED, AppointmentStatus.NOSHOW}
)

ALLOWED_TRANSITIONS = {
    AppointmentStatus.REQUESTED: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELED}
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {
            AppointmentStatus.RESCHEDULED,
            AppointmentStatus.IN_PROGRESS,
            AppointmentStatus.CANCELED,
            AppointmentStatus.NOSHOW,
        }
    ),
    AppointmentStatus.RESCHEDULED: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELED}
    ),
    # Cancelling a started job is allowed for operational corrections
    AppointmentStatus.IN_PROGRESS: frozenset(
        {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELED}
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELED: frozenset(),
    AppointmentStatus.NOSHOW: frozenset(),
}


def is_terminal(status: AppointmentStatus) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: AppointmentStatus, target: AppointmentStatus) -> None:
    """Raise InvalidTransitionError unless current → target is in the table"""
    if is_terminal(current):
        raise InvalidTransitionError(
            f"Appointment is not modifiable (status: {current.value})", current, target
        )
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Cannot move appointment from {current.value} to {target.value}", current, target
        )


def ensure_modifiable(current: AppointmentStatus) -> None:
    if is_terminal(current):
        raise InvalidTransitionError(
            f"Appointment is not modifiable (status: {current.value})", current
        )
