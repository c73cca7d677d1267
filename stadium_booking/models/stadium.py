"""Stadium model."""
from sqlalchemy import Column, Integer, String, Float, Boolean, ForeignKey, DateTime, Numeric, JSON, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from stadium_booking.core.database import Base


class Stadium(Base):
    """Represents a bookable sports venue listed by an owner."""

    __tablename__ = "stadiums"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    address = Column(String, nullable=False)
    city = Column(String, nullable=False, index=True)
    state = Column(String, nullable=True)
    postal_code = Column(String, nullable=False)
    country = Column(String, nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    price_per_hour = Column(Numeric(10, 2), nullable=False)
    sport_types = Column(JSON, nullable=False, default=list)  # ["football", "tennis"]
    facilities = Column(JSON, nullable=False, default=list)
    rules = Column(Text, nullable=True)
    capacity = Column(Integer, nullable=True)
    contact_phone = Column(String, nullable=True)
    contact_email = Column(String, nullable=True)
    is_verified = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    owner = relationship("User", back_populates="stadiums")
    availability = relationship(
        "AvailabilitySlot", back_populates="stadium", cascade="all, delete-orphan"
    )
    bookings = relationship("Booking", back_populates="stadium", cascade="all, delete-orphan")
    reviews = relationship("Review", back_populates="stadium", cascade="all, delete-orphan")
