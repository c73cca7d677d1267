"""Availability schemas."""
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List
from datetime import date, datetime

HH_MM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class SlotWindow(BaseModel):
    """A wall-clock window within one day, as HH:mm strings."""

    start_time: str
    end_time: str


class TimeSlot(SlotWindow):
    """A validated wall-clock window within one day."""

    start_time: str = Field(pattern=HH_MM_PATTERN)
    end_time: str = Field(pattern=HH_MM_PATTERN)

    @model_validator(mode="after")
    def check_order(self):
        # Zero-padded HH:mm compares correctly as strings
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class RecurringSlotIn(TimeSlot):
    """Weekly slot; day_of_week 0 is Sunday."""

    day_of_week: int = Field(ge=0, le=6)


class SpecificSlotIn(TimeSlot):
    """Slot valid on one calendar date."""

    specific_date: date


class AvailabilityUpdate(BaseModel):
    """Replacement set of availability slots for a stadium."""

    recurring_slots: List[RecurringSlotIn] = []
    specific_slots: List[SpecificSlotIn] = []


class AvailabilitySlotInDB(BaseModel):
    """Schema for an availability slot from database."""

    id: int
    stadium_id: int
    is_recurring: bool
    day_of_week: Optional[int] = None
    specific_date: Optional[date] = None
    start_time: str
    end_time: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AvailabilityResponse(BaseModel):
    """Available and booked windows of a stadium for one date."""

    date: date
    available_slots: List[SlotWindow]
    booked_slots: List[SlotWindow]
