"""Booking endpoints."""
from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stadium_booking.core.database import get_db
from stadium_booking.core.security import Identity, require_identity
from stadium_booking.models.booking import BookingStatus
from stadium_booking.schemas.booking import BookingCreate, BookingDetail, BookingStatusUpdate
from stadium_booking.services.booking_service import booking_service
from stadium_booking.services.mailer import BookingConfirmation, notify_booking_confirmed

router = APIRouter(prefix="/api/bookings", tags=["bookings"])


@router.post("", response_model=BookingDetail, status_code=201)
async def create_booking(
    booking_in: BookingCreate,
    background_tasks: BackgroundTasks,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    """
    Book a stadium for a time range.

    Fails with 409 if a confirmed booking of the same stadium overlaps the
    requested range.

    Args:
        booking_in: Stadium, start and end time, special requests
        background_tasks: Used to send the confirmation email
        identity: Caller
        db: Database session

    Returns:
        Created booking
    """
    booking = await booking_service.create_booking(db, identity, booking_in)

    if booking.status == BookingStatus.CONFIRMED:
        background_tasks.add_task(
            notify_booking_confirmed, BookingConfirmation.from_booking(booking)
        )

    return booking


@router.get("", response_model=List[BookingDetail])
async def list_bookings(
    status: Optional[BookingStatus] = Query(default=None),
    stadium_id: Optional[int] = Query(default=None),
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    """
    List the caller's bookings, newest first.

    Args:
        status: Only bookings with this status
        stadium_id: Only bookings of this stadium
        identity: Caller
        db: Database session

    Returns:
        Bookings with stadium summaries
    """
    return await booking_service.list_bookings(db, identity, status=status, stadium_id=stadium_id)


@router.get("/{booking_id}", response_model=BookingDetail)
async def get_booking(
    booking_id: int,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    """Get a booking as its user, the stadium owner, or an admin."""
    return await booking_service.get_booking(db, identity, booking_id)


@router.patch("/{booking_id}/status", response_model=BookingDetail)
async def update_booking_status(
    booking_id: int,
    status_update: BookingStatusUpdate,
    background_tasks: BackgroundTasks,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    """
    Confirm or decline a pending booking.

    Only the stadium owner or an admin may decide, and only while the booking
    is PENDING. A confirmation email is sent after confirming; email failures
    do not affect the response.

    Args:
        booking_id: Booking ID
        status_update: CONFIRMED or CANCELLED
        background_tasks: Used to send the confirmation email
        identity: Caller
        db: Database session

    Returns:
        Updated booking
    """
    booking = await booking_service.update_status(
        db, identity, booking_id, status_update.status
    )

    if booking.status == BookingStatus.CONFIRMED:
        background_tasks.add_task(
            notify_booking_confirmed, BookingConfirmation.from_booking(booking)
        )

    return booking


@router.post("/{booking_id}/cancel", response_model=BookingDetail)
async def cancel_booking(
    booking_id: int,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    """
    Cancel one of the caller's bookings.

    Allowed only while the booking starts at least the configured number of
    hours (8 by default) from now.
    """
    return await booking_service.cancel_booking(db, identity, booking_id)
