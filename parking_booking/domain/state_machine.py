"""Booking lifecycle rules shared by the service and the persistence layer."""
from typing import Dict, FrozenSet, Optional

from parking_booking.domain.common import BookingStatus, SlotStatus
from parking_booking.domain.exceptions import InvalidStateError

BOOKING_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING_APPROVAL: frozenset({
        BookingStatus.CONFIRMED,
        BookingStatus.REJECTED,
        BookingStatus.CANCELLED_BY_USER,
        BookingStatus.CANCELLED_BY_ADMIN,
    }),
    BookingStatus.CONFIRMED: frozenset({
        BookingStatus.ACTIVE_PARKING,
        BookingStatus.CANCELLED_BY_USER,
        BookingStatus.CANCELLED_BY_ADMIN,
    }),
    BookingStatus.ACTIVE_PARKING: frozenset({
        BookingStatus.COMPLETED,
        BookingStatus.PAID,
    }),
    BookingStatus.REJECTED: frozenset(),
    BookingStatus.CANCELLED_BY_USER: frozenset(),
    BookingStatus.CANCELLED_BY_ADMIN: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.PAID: frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in BOOKING_TRANSITIONS.items() if not targets)

# Statuses in which the booking holds its slot.
SLOT_HOLDING_STATUSES = frozenset({BookingStatus.CONFIRMED, BookingStatus.ACTIVE_PARKING})

# Statuses in which slot_id must be set.
SLOT_BOUND_STATUSES = frozenset({
    BookingStatus.CONFIRMED,
    BookingStatus.ACTIVE_PARKING,
    BookingStatus.COMPLETED,
    BookingStatus.PAID,
})


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return BookingStatus(target) in BOOKING_TRANSITIONS.get(BookingStatus(current), frozenset())


def assert_transition(current: BookingStatus, target: BookingStatus, booking_id: Optional[str] = None) -> None:
    if not can_transition(current, target):
        raise InvalidStateError(
            f"Booking cannot move from {BookingStatus(current).value} to {BookingStatus(target).value}",
            booking_id=booking_id,
            status=BookingStatus(current).value,
            requested=BookingStatus(target).value,
        )


def expected_slot_status(status: BookingStatus) -> Optional[SlotStatus]:
    """Occupancy a bound slot must show while the booking is in ``status``.

    ``None`` means the booking no longer holds the slot.
    """
    if status == BookingStatus.CONFIRMED:
        return SlotStatus.RESERVED
    if status == BookingStatus.ACTIVE_PARKING:
        return SlotStatus.OCCUPIED
    return None
