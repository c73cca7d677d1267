"""Database models."""
from stadium_booking.models.user import User, UserRole
from stadium_booking.models.stadium import Stadium
from stadium_booking.models.availability_slot import AvailabilitySlot
from stadium_booking.models.booking import Booking, BookingStatus, PaymentStatus
from stadium_booking.models.review import Review

__all__ = [
    "User",
    "UserRole",
    "Stadium",
    "AvailabilitySlot",
    "Booking",
    "BookingStatus",
    "PaymentStatus",
    "Review",
]
