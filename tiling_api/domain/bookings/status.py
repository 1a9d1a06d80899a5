"""Booking status state machine"""

from ...errors import InvalidTransitionError
from ...shared.enums import BookingStatus

# Terminal states map to an empty list
VALID_TRANSITIONS = {
    BookingStatus.PENDING: [BookingStatus.CONFIRMED, BookingStatus.CANCELLED],
    BookingStatus.CONFIRMED: [
        BookingStatus.IN_PROGRESS,
        BookingStatus.COMPLETED,
        BookingStatus.CANCELLED,
    ],
    BookingStatus.IN_PROGRESS: [BookingStatus.COMPLETED, BookingStatus.CANCELLED],
    BookingStatus.COMPLETED: [],
    BookingStatus.CANCELLED: [],
}


def can_transition(current_status: BookingStatus, new_status: BookingStatus) -> bool:
    """Whether a booking may move from current_status to new_status; same-status moves are not allowed"""
    return new_status in VALID_TRANSITIONS.get(current_status, [])


def validate_status_transition(current_status: BookingStatus, new_status: BookingStatus) -> None:
    """
    Raise InvalidTransitionError unless the move is in VALID_TRANSITIONS.

    Booking statuses: pending → confirmed → in_progress → completed, with
    cancelled reachable from every non-terminal state.
    """
    if not can_transition(current_status, new_status):
        raise InvalidTransitionError(current_status.value, new_status.value)


def is_terminal(status: BookingStatus) -> bool:
    return not VALID_TRANSITIONS.get(status)
