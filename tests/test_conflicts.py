"""
Tests for overlap detection.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.dialects import postgresql

from garagebook.domain.appointments.conflicts import (
    Conflict,
    OverlapCandidate,
    check_no_overlap,
    overlaps,
)
from garagebook.domain.appointments.repository import AppointmentRepository
from garagebook.models import Appointment, AppointmentStatus
from garagebook.shared.errors import ConflictError, ValidationError

from conftest import at

T0 = datetime(2030, 3, 5, 10, 0, tzinfo=timezone.utc)


def appt(id, start, minutes=60, staff_id=1, status=AppointmentStatus.CONFIRMED):
    return Appointment(
        id=id,
        assigned_staff_id=staff_id,
        start_time=start,
        end_time=start + timedelta(minutes=minutes),
        status=status,
    )


def candidate(start, minutes=60, staff_id=1, exclude=None):
    return OverlapCandidate(staff_id, start, start + timedelta(minutes=minutes), exclude)


def test_half_open_intervals():
    t1 = T0 + timedelta(hours=1)
    assert overlaps(T0, t1, T0 + timedelta(minutes=30), t1 + timedelta(minutes=30))
    assert not overlaps(T0, t1, t1, t1 + timedelta(hours=1))
    assert not overlaps(t1, t1 + timedelta(hours=1), T0, t1)


def test_free_slot_returns_none():
    existing = [appt(1, T0 - timedelta(hours=2)), appt(2, T0 + timedelta(hours=2))]
    assert check_no_overlap(candidate(T0), existing) is None


def test_adjacent_appointments_do_not_conflict():
    existing = [appt(1, T0 - timedelta(hours=1)), appt(2, T0 + timedelta(hours=1))]
    assert check_no_overlap(candidate(T0), existing) is None


def test_earliest_conflict_is_reported():
    existing = [
        appt(7, T0 + timedelta(minutes=45)),
        appt(3, T0 - timedelta(minutes=30)),
    ]
    assert check_no_overlap(candidate(T0), existing) == Conflict(3, T0 - timedelta(minutes=30))


def test_tie_on_start_breaks_by_lowest_id():
    existing = [appt(9, T0), appt(4, T0)]
    assert check_no_overlap(candidate(T0), existing).appointment_id == 4


def test_only_blocking_statuses_count():
    existing = [
        appt(1, T0, status=AppointmentStatus.REQUESTED),
        appt(2, T0, status=AppointmentStatus.CANCELED),
        appt(3, T0, status=AppointmentStatus.COMPLETED),
        appt(4, T0, status=AppointmentStatus.NOSHOW),
    ]
    assert check_no_overlap(candidate(T0), existing) is None

    existing.append(appt(5, T0, status=AppointmentStatus.IN_PROGRESS))
    assert check_no_overlap(candidate(T0), existing).appointment_id == 5


def test_other_staff_is_ignored():
    assert check_no_overlap(candidate(T0, staff_id=1), [appt(1, T0, staff_id=2)]) is None


def test_excluded_appointment_is_ignored():
    assert check_no_overlap(candidate(T0, exclude=1), [appt(1, T0)]) is None


def test_unassigned_candidate_never_conflicts():
    assert check_no_overlap(candidate(T0, staff_id=None), [appt(1, T0)]) is None


def test_empty_window_is_rejected():
    with pytest.raises(ValidationError):
        check_no_overlap(OverlapCandidate(1, T0, T0), [])


def test_checker_raises_with_conflicting_appointment(svc, staff_id):
    first = svc.create_confirmed(
        phone="0612345678", staff_id=staff_id, car_brand="BMW",
        start_time=at(10), duration_minutes=60,
    )

    with pytest.raises(ConflictError) as exc_info:
        svc.create_confirmed(
            phone="0698765432", staff_id=staff_id, car_brand="Audi",
            start_time=at(10, 30), duration_minutes=60,
        )

    assert exc_info.value.appointment_id == first.id
    assert exc_info.value.start_time == at(10)
    assert exc_info.value.details["conflictingAppointmentId"] == first.id


def test_overlap_read_takes_no_row_locks(make_uow, staff_id):
    uow = make_uow()
    with uow:
        query = AppointmentRepository.overlap_query(
            uow.session, staff_id, [AppointmentStatus.CONFIRMED], T0, T0 + timedelta(hours=1)
        )
        sql = str(query.statement.compile(dialect=postgresql.dialect()))

    assert "FOR UPDATE" not in sql.upper()
