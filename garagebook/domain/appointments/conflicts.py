"""Overlap detection for a staff member's calendar"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from ...models import Appointment, AppointmentStatus
from ...shared.errors import ConflictError
from ...shared.validators import validate_window
from ...unit_of_work import UnitOfWork
from .repository import AppointmentRepository

logger = logging.getLogger(__name__)

# Statuses that occupy a staff member's calendar
BLOCKING_STATUSES = (AppointmentStatus.CONFIRMED, AppointmentStatus.IN_PROGRESS)


@dataclass(frozen=True)
class OverlapCandidate:
    staff_id: Optional[int]
    start_time: datetime
    end_time: datetime
    exclude_appointment_id: Optional[int] = None


@dataclass(frozen=True)
class Conflict:
    appointment_id: int
    start_time: datetime


def overlaps(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Half-open interval test: [start_a, end_a) intersects [start_b, end_b)"""
    return start_a < end_b and end_a > start_b


def check_no_overlap(
    candidate: OverlapCandidate, existing: Iterable[Appointment]
) -> Optional[Conflict]:
    """
    Decide whether candidate collides with any blocking appointment of the same staff.

    Returns None when the slot is free, otherwise the earliest-starting conflict.
    Unassigned candidates never conflict.
    """
    if candidate.staff_id is None:
        return None

    validate_window(candidate.start_time, candidate.end_time)

    conflicts = [
        appt
        for appt in existing
        if appt.assigned_staff_id == candidate.staff_id
        and appt.status in BLOCKING_STATUSES
        and appt.id != candidate.exclude_appointment_id
        and overlaps(appt.start_time, appt.end_time, candidate.start_time, candidate.end_time)
    ]
    if not conflicts:
        return None

    first = min(conflicts, key=lambda appt: (appt.start_time, appt.id))
    return Conflict(appointment_id=first.id, start_time=first.start_time)


class ConflictChecker:
    """Runs check_no_overlap against the staff calendar read under the write lock"""

    def __init__(self, repository: Optional[AppointmentRepository] = None):
        self.repo = repository or AppointmentRepository()

    def ensure_no_conflict(self, uow: UnitOfWork, candidate: OverlapCandidate) -> None:
        if candidate.staff_id is None:
            return

        validate_window(candidate.start_time, candidate.end_time)

        existing = self.repo.find_conflicting(
            uow,
            candidate.staff_id,
            BLOCKING_STATUSES,
            candidate.start_time,
            candidate.end_time,
            candidate.exclude_appointment_id,
        )
        conflict = check_no_overlap(candidate, existing)
        if conflict:
            logger.info(
                f"⛔ Overlap for staff {candidate.staff_id}: "
                f"[{candidate.start_time.isoformat()}, {candidate.end_time.isoformat()}) "
                f"hits appointment {conflict.appointment_id}"
            )
            raise ConflictError(conflict.appointment_id, conflict.start_time)
