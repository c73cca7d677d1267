"""API schemas."""
from stadium_booking.schemas.user import (
    UserCreate,
    UserLogin,
    UserInDB,
    ProfileUpdate,
    SessionResponse,
    IdentityResponse,
)
from stadium_booking.schemas.availability import (
    SlotWindow,
    TimeSlot,
    RecurringSlotIn,
    SpecificSlotIn,
    AvailabilityUpdate,
    AvailabilitySlotInDB,
    AvailabilityResponse,
)
from stadium_booking.schemas.stadium import (
    StadiumCreate,
    StadiumUpdate,
    StadiumInDB,
    StadiumDetail,
    StadiumListResponse,
    Pagination,
)
from stadium_booking.schemas.booking import (
    BookingCreate,
    BookingStatusUpdate,
    BookingInDB,
    BookingDetail,
)
from stadium_booking.schemas.review import ReviewCreate, ReviewInDB

__all__ = [
    "UserCreate",
    "UserLogin",
    "UserInDB",
    "ProfileUpdate",
    "SessionResponse",
    "IdentityResponse",
    "SlotWindow",
    "TimeSlot",
    "RecurringSlotIn",
    "SpecificSlotIn",
    "AvailabilityUpdate",
    "AvailabilitySlotInDB",
    "AvailabilityResponse",
    "StadiumCreate",
    "StadiumUpdate",
    "StadiumInDB",
    "StadiumDetail",
    "StadiumListResponse",
    "Pagination",
    "BookingCreate",
    "BookingStatusUpdate",
    "BookingInDB",
    "BookingDetail",
    "ReviewCreate",
    "ReviewInDB",
]
