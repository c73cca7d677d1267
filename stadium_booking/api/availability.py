"""Availability endpoints."""
from datetime import date as date_type
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stadium_booking.core.database import get_db
from stadium_booking.core.security import Identity, require_identity
from stadium_booking.schemas.availability import (
    AvailabilityResponse,
    AvailabilitySlotInDB,
    AvailabilityUpdate,
)
from stadium_booking.services.availability_service import availability_service

router = APIRouter(prefix="/api/stadiums/{stadium_id}", tags=["availability"])


@router.get("/availability", response_model=AvailabilityResponse)
async def get_availability(
    stadium_id: int,
    date: Optional[str] = Query(default=None, description="Date as YYYY-MM-DD"),
    db: AsyncSession = Depends(get_db),
):
    """
    Get available and booked time windows for a date.

    Available windows come from the stadium's weekly schedule and from slots
    set for that exact date. Booked windows are confirmed or pending bookings
    falling within the day.

    Args:
        stadium_id: Stadium ID
        date: Calendar date
        db: Database session

    Returns:
        Available and booked windows
    """
    if not date:
        raise HTTPException(status_code=400, detail="Date parameter is required")

    try:
        target_date = date_type.fromisoformat(date)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid date, expected YYYY-MM-DD")

    return await availability_service.get_availability(db, stadium_id, target_date)


@router.put("/availability", response_model=List[AvailabilitySlotInDB])
async def replace_availability(
    stadium_id: int,
    update: AvailabilityUpdate,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    """
    Replace all recurring and date-specific slots of a stadium.

    Args:
        stadium_id: Stadium ID
        update: New slots
        identity: Caller, must own the stadium or be an admin
        db: Database session

    Returns:
        Stored slots
    """
    return await availability_service.replace_availability(db, identity, stadium_id, update)
