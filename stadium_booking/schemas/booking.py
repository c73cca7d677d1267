"""Booking schemas."""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

from stadium_booking.models.booking import BookingStatus, PaymentStatus


class BookingCreate(BaseModel):
    """Schema for requesting a booking."""

    stadium_id: int
    start_time: datetime
    end_time: datetime
    special_requests: Optional[str] = Field(default=None, max_length=1000)


class BookingStatusUpdate(BaseModel):
    """Owner decision on a pending booking."""

    status: BookingStatus


class BookingStadiumSummary(BaseModel):
    """Stadium fields embedded in booking responses."""

    id: int
    name: str
    address: str
    city: str
    postal_code: str

    model_config = ConfigDict(from_attributes=True)


class BookingInDB(BaseModel):
    """Schema for booking from database."""

    id: int
    stadium_id: int
    user_id: int
    start_time: datetime
    end_time: datetime
    status: BookingStatus
    payment_status: PaymentStatus
    total_price: float
    special_requests: str
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BookingDetail(BookingInDB):
    """Booking with its stadium summary."""

    stadium: BookingStadiumSummary
