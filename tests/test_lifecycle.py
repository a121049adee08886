"""
Tests for the appointment lifecycle table.
"""

import pytest

from garagebook.domain.appointments.lifecycle import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    can_transition,
    ensure_modifiable,
    ensure_transition,
    is_terminal,
)
from garagebook.models import AppointmentStatus as S
from garagebook.shared.errors import InvalidTransitionError

EXPECTED = {
    (S.REQUESTED, S.CONFIRMED),
    (S.REQUESTED, S.CANCELED),
    (S.CONFIRMED, S.RESCHEDULED),
    (S.CONFIRMED, S.IN_PROGRESS),
    (S.CONFIRMED, S.CANCELED),
    (S.CONFIRMED, S.NOSHOW),
    (S.RESCHEDULED, S.CONFIRMED),
    (S.RESCHEDULED, S.CANCELED),
    (S.IN_PROGRESS, S.COMPLETED),
    (S.IN_PROGRESS, S.CANCELED),
}


def test_every_status_has_an_entry():
    assert set(ALLOWED_TRANSITIONS) == set(S)


@pytest.mark.parametrize("current", list(S))
@pytest.mark.parametrize("target", list(S))
def test_transition_table(current, target):
    assert can_transition(current, target) == ((current, target) in EXPECTED)


def test_terminal_statuses():
    assert TERMINAL_STATUSES == {S.COMPLETED, S.CANCELED, S.NOSHOW}
    for status in TERMINAL_STATUSES:
        assert is_terminal(status)
        assert not ALLOWED_TRANSITIONS[status]


def test_terminal_status_is_not_modifiable():
    with pytest.raises(InvalidTransitionError, match="not modifiable"):
        ensure_transition(S.COMPLETED, S.CANCELED)
    with pytest.raises(InvalidTransitionError, match="not modifiable"):
        ensure_modifiable(S.NOSHOW)


def test_disallowed_transition_carries_both_statuses():
    with pytest.raises(InvalidTransitionError) as exc_info:
        ensure_transition(S.REQUESTED, S.IN_PROGRESS)

    assert exc_info.value.current_status == S.REQUESTED
    assert exc_info.value.target_status == S.IN_PROGRESS
    assert exc_info.value.details == {"currentStatus": "REQUESTED", "targetStatus": "IN_PROGRESS"}


def test_allowed_transition_passes():
    ensure_transition(S.CONFIRMED, S.IN_PROGRESS)
    ensure_modifiable(S.CONFIRMED)
