"""Stadium schemas."""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from stadium_booking.schemas.availability import (
    AvailabilitySlotInDB,
    RecurringSlotIn,
    SpecificSlotIn,
)


class StadiumBase(BaseModel):
    """Base stadium schema."""

    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: Optional[str] = None
    postal_code: str = Field(min_length=1)
    country: str = Field(min_length=1)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    sport_types: List[str] = Field(min_length=1)
    facilities: List[str] = Field(default_factory=list)
    rules: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=1)
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None


class StadiumCreate(StadiumBase):
    """Schema for creating a stadium, optionally with its initial availability."""

    price_per_hour: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    recurring_slots: List[RecurringSlotIn] = Field(default_factory=list)
    specific_slots: List[SpecificSlotIn] = Field(default_factory=list)


class StadiumUpdate(BaseModel):
    """Schema for updating a stadium."""

    name: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    price_per_hour: Optional[Decimal] = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    sport_types: Optional[List[str]] = Field(default=None, min_length=1)
    facilities: Optional[List[str]] = None
    rules: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=1)
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None

    @field_validator(
        "name",
        "description",
        "address",
        "city",
        "postal_code",
        "country",
        "price_per_hour",
        "sport_types",
        "facilities",
    )
    @classmethod
    def reject_null(cls, value):
        # Only optional columns may be cleared
        if value is None:
            raise ValueError("field cannot be null")
        return value


class StadiumInDB(StadiumBase):
    """Schema for stadium from database."""

    id: int
    owner_id: int
    price_per_hour: float
    is_verified: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class StadiumDetail(StadiumInDB):
    """Schema for a stadium with its availability slots."""

    availability: List[AvailabilitySlotInDB] = []


class Pagination(BaseModel):
    """Pagination metadata."""

    current_page: int
    total_pages: int
    total_stadiums: int
    page_size: int


class StadiumListResponse(BaseModel):
    """Schema for a page of stadiums."""

    stadiums: List[StadiumInDB]
    pagination: Pagination
