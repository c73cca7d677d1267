"""Availability slot model."""
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Date, Index, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from stadium_booking.core.database import Base


class AvailabilitySlot(Base):
    """A recurring weekly or date-specific window in which a stadium can be booked."""

    __tablename__ = "availability_slots"

    id = Column(Integer, primary_key=True, index=True)
    stadium_id = Column(Integer, ForeignKey("stadiums.id", ondelete="CASCADE"), nullable=False, index=True)
    is_recurring = Column(Boolean, nullable=False, default=True)
    day_of_week = Column(Integer, nullable=True)  # 0 = Sunday ... 6 = Saturday
    specific_date = Column(Date, nullable=True)
    start_time = Column(String(5), nullable=False)  # HH:mm
    end_time = Column(String(5), nullable=False)    # HH:mm
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    stadium = relationship("Stadium", back_populates="availability")

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_availability_start_before_end"),
        Index("ix_availability_stadium_day", "stadium_id", "day_of_week"),
        Index("ix_availability_stadium_date", "stadium_id", "specific_date"),
    )
