"""Review schemas."""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime


class ReviewCreate(BaseModel):
    """Schema for posting a review."""

    rating: int = Field(ge=1, le=5)
    content: str = Field(min_length=1, max_length=5000)


class ReviewInDB(BaseModel):
    """Schema for review from database."""

    id: int
    stadium_id: int
    user_id: int
    rating: int
    content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
