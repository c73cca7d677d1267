"""Booking lifecycle state machine."""
import logging
from datetime import datetime
from typing import Dict, FrozenSet, Optional

from stadium_booking.core.clock import utcnow
from stadium_booking.core.exceptions import InvalidTransitionError
from stadium_booking.models.booking import Booking, BookingStatus

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def transition(
    booking: Booking, target: BookingStatus, now: Optional[datetime] = None
) -> Booking:
    """
    Move a booking to a new status.

    This is the only place a booking status changes after creation.

    Args:
        booking: Booking to update (not committed)
        target: Desired status
        now: Timestamp recorded on cancellation, defaults to current UTC time

    Returns:
        The same booking instance

    Raises:
        InvalidTransitionError: If the lifecycle does not allow the move
    """
    current = booking.status
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Cannot change booking status from {current.value} to {target.value}"
        )

    booking.status = target
    if target == BookingStatus.CANCELLED:
        booking.cancelled_at = now or utcnow()

    logger.info(f"Booking {booking.id}: {current.value} -> {target.value}")
    return booking
