"""Booking model."""
import enum

from sqlalchemy import Column, Integer, ForeignKey, DateTime, Numeric, Enum, Text, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from stadium_booking.core.database import Base


class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    REFUNDED = "REFUNDED"


class Booking(Base):
    """A reservation of a stadium for an absolute time range."""

    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    stadium_id = Column(Integer, ForeignKey("stadiums.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    start_time = Column(DateTime(timezone=True), nullable=False)  # UTC
    end_time = Column(DateTime(timezone=True), nullable=False)    # UTC
    status = Column(
        Enum(BookingStatus, name="booking_status"), nullable=False, default=BookingStatus.PENDING
    )
    payment_status = Column(
        Enum(PaymentStatus, name="payment_status"), nullable=False, default=PaymentStatus.PENDING
    )
    total_price = Column(Numeric(10, 2), nullable=False)
    special_requests = Column(Text, nullable=False, default="")
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    stadium = relationship("Stadium", back_populates="bookings")
    user = relationship("User", back_populates="bookings")

    # Indexes for overlap and day-window lookups
    __table_args__ = (
        Index("ix_bookings_stadium_status_start", "stadium_id", "status", "start_time"),
        Index("ix_bookings_user_start", "user_id", "start_time"),
    )
