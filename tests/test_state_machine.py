import pytest

from parking_booking.domain.common import BookingStatus, SlotStatus
from parking_booking.domain.exceptions import InvalidStateError
from parking_booking.domain.state_machine import (
    BOOKING_TRANSITIONS,
    SLOT_BOUND_STATUSES,
    SLOT_HOLDING_STATUSES,
    TERMINAL_STATUSES,
    assert_transition,
    can_transition,
    expected_slot_status,
)

VALID_PATHS = [
    [BookingStatus.PENDING_APPROVAL, BookingStatus.CONFIRMED, BookingStatus.ACTIVE_PARKING, BookingStatus.PAID],
    [BookingStatus.PENDING_APPROVAL, BookingStatus.CONFIRMED, BookingStatus.ACTIVE_PARKING, BookingStatus.COMPLETED],
    [BookingStatus.PENDING_APPROVAL, BookingStatus.CONFIRMED, BookingStatus.CANCELLED_BY_USER],
    [BookingStatus.PENDING_APPROVAL, BookingStatus.CONFIRMED, BookingStatus.CANCELLED_BY_ADMIN],
    [BookingStatus.PENDING_APPROVAL, BookingStatus.REJECTED],
    [BookingStatus.PENDING_APPROVAL, BookingStatus.CANCELLED_BY_USER],
    [BookingStatus.PENDING_APPROVAL, BookingStatus.CANCELLED_BY_ADMIN],
]


def test_every_status_has_a_transition_entry():
    assert set(BOOKING_TRANSITIONS) == set(BookingStatus)


def test_terminal_statuses():
    assert TERMINAL_STATUSES == {
        BookingStatus.REJECTED,
        BookingStatus.CANCELLED_BY_USER,
        BookingStatus.CANCELLED_BY_ADMIN,
        BookingStatus.COMPLETED,
        BookingStatus.PAID,
    }


@pytest.mark.parametrize("path", VALID_PATHS)
def test_valid_paths_are_allowed(path):
    for current, target in zip(path, path[1:]):
        assert can_transition(current, target)


@pytest.mark.parametrize(
    "current, target",
    [
        (BookingStatus.PENDING_APPROVAL, BookingStatus.ACTIVE_PARKING),
        (BookingStatus.PENDING_APPROVAL, BookingStatus.PAID),
        (BookingStatus.CONFIRMED, BookingStatus.CONFIRMED),
        (BookingStatus.CONFIRMED, BookingStatus.PENDING_APPROVAL),
        (BookingStatus.ACTIVE_PARKING, BookingStatus.CONFIRMED),
        (BookingStatus.ACTIVE_PARKING, BookingStatus.CANCELLED_BY_USER),
        (BookingStatus.PAID, BookingStatus.ACTIVE_PARKING),
        (BookingStatus.COMPLETED, BookingStatus.PAID),
    ],
)
def test_skipping_or_backward_transitions_are_refused(current, target):
    assert not can_transition(current, target)
    with pytest.raises(InvalidStateError) as exc_info:
        assert_transition(current, target, booking_id="b-1")
    assert exc_info.value.detail == {"booking_id": "b-1", "status": current.value, "requested": target.value}


def test_plain_strings_are_accepted():
    assert can_transition("pending_approval", "confirmed")


def test_slot_holding_statuses_are_bound():
    assert SLOT_HOLDING_STATUSES <= SLOT_BOUND_STATUSES
    assert BookingStatus.PENDING_APPROVAL not in SLOT_BOUND_STATUSES


def test_expected_slot_status():
    assert expected_slot_status(BookingStatus.CONFIRMED) == SlotStatus.RESERVED
    assert expected_slot_status(BookingStatus.ACTIVE_PARKING) == SlotStatus.OCCUPIED
    for status in TERMINAL_STATUSES | {BookingStatus.PENDING_APPROVAL}:
        assert expected_slot_status(status) is None
