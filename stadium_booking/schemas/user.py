"""User and session schemas."""
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional
from datetime import datetime

from stadium_booking.models.user import UserRole


class UserCreate(BaseModel):
    """Schema for registering an account."""

    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)
    role: UserRole = UserRole.USER


class UserLogin(BaseModel):
    """Schema for credential login."""

    email: EmailStr
    password: str


class ProfileUpdate(BaseModel):
    """Schema for updating the caller's profile."""

    name: str = Field(min_length=1, max_length=100)


class UserInDB(BaseModel):
    """Schema for a user from database, without credentials."""

    id: int
    name: str
    email: str
    role: UserRole
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SessionResponse(BaseModel):
    """Schema returned after a successful login."""

    user: UserInDB
    token: str
    expires_in: int


class IdentityResponse(BaseModel):
    """Schema describing the current session identity."""

    user_id: int
    email: str
    name: str
    role: UserRole
