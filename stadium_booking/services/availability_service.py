"""Availability service for resolving and managing stadium availability."""
import logging
from typing import Iterable, List
from datetime import date
from sqlalchemy import select, delete, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from stadium_booking.core.clock import local_day_bounds, format_local_hhmm
from stadium_booking.core.exceptions import NotFoundError, PermissionDeniedError
from stadium_booking.core.security import Identity
from stadium_booking.models.stadium import Stadium
from stadium_booking.models.availability_slot import AvailabilitySlot
from stadium_booking.models.booking import Booking, BookingStatus
from stadium_booking.schemas.availability import (
    AvailabilityResponse,
    AvailabilityUpdate,
    SlotWindow,
)

logger = logging.getLogger(__name__)

# Bookings that occupy a window on the calendar
BOOKED_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.PENDING)


def weekday_index(target_date: date) -> int:
    """Day of week with 0 = Sunday, as stored on recurring slots."""
    return (target_date.weekday() + 1) % 7


def select_slots_for_date(
    slots: Iterable[AvailabilitySlot], target_date: date
) -> List[SlotWindow]:
    """
    Pick the slots that apply to a date.

    Recurring slots for the date's weekday come first, then slots pinned to
    the exact date; the result is sorted by start time. Overlapping or
    duplicate windows are kept as they are.
    """
    slots = list(slots)
    day = weekday_index(target_date)

    recurring = [s for s in slots if s.is_recurring and s.day_of_week == day]
    specific = [
        s for s in slots if not s.is_recurring and s.specific_date == target_date
    ]

    windows = [
        SlotWindow(start_time=s.start_time, end_time=s.end_time)
        for s in recurring + specific
    ]
    windows.sort(key=lambda w: w.start_time)
    return windows


def booked_windows(bookings: Iterable[Booking]) -> List[SlotWindow]:
    """Format bookings as local HH:mm windows sorted by start time."""
    windows = [
        SlotWindow(
            start_time=format_local_hhmm(b.start_time),
            end_time=format_local_hhmm(b.end_time),
        )
        for b in bookings
    ]
    windows.sort(key=lambda w: w.start_time)
    return windows


def build_slots(stadium_id: int, update: AvailabilityUpdate) -> List[AvailabilitySlot]:
    """Create (unsaved) slot rows from a replacement payload."""
    slots = [
        AvailabilitySlot(
            stadium_id=stadium_id,
            is_recurring=True,
            day_of_week=slot.day_of_week,
            start_time=slot.start_time,
            end_time=slot.end_time,
        )
        for slot in update.recurring_slots
    ]
    slots.extend(
        AvailabilitySlot(
            stadium_id=stadium_id,
            is_recurring=False,
            specific_date=slot.specific_date,
            start_time=slot.start_time,
            end_time=slot.end_time,
        )
        for slot in update.specific_slots
    )
    return slots


class AvailabilityService:
    """Service for resolving and replacing stadium availability."""

    async def get_availability(
        self,
        db: AsyncSession,
        stadium_id: int,
        target_date: date,
    ) -> AvailabilityResponse:
        """
        Compute available and booked windows of a stadium for one date.

        An empty available list means the stadium is not open that day.

        Args:
            db: Database session
            stadium_id: Stadium ID
            target_date: Calendar date in the configured local timezone

        Returns:
            AvailabilityResponse with both window lists

        Raises:
            NotFoundError: If the stadium does not exist
        """
        result = await db.execute(
            select(Stadium)
            .options(selectinload(Stadium.availability))
            .where(Stadium.id == stadium_id)
        )
        stadium = result.scalar_one_or_none()

        if not stadium:
            raise NotFoundError("Stadium not found")

        available = select_slots_for_date(stadium.availability, target_date)
        logger.info(
            f"Stadium {stadium_id} on {target_date} (day {weekday_index(target_date)}): "
            f"{len(available)} available slots"
        )

        day_start, day_end = local_day_bounds(target_date)
        result = await db.execute(
            select(Booking).where(
                and_(
                    Booking.stadium_id == stadium_id,
                    Booking.status.in_(BOOKED_STATUSES),
                    Booking.start_time >= day_start,
                    Booking.end_time <= day_end,
                )
            )
        )
        bookings = result.scalars().all()
        logger.debug(f"Found {len(bookings)} existing bookings for {target_date}")

        return AvailabilityResponse(
            date=target_date,
            available_slots=available,
            booked_slots=booked_windows(bookings),
        )

    async def replace_availability(
        self,
        db: AsyncSession,
        identity: Identity,
        stadium_id: int,
        update: AvailabilityUpdate,
    ) -> List[AvailabilitySlot]:
        """
        Replace every availability slot of a stadium.

        Args:
            db: Database session
            identity: Caller, must own the stadium or be an admin
            stadium_id: Stadium ID
            update: New recurring and specific slots

        Returns:
            The stored slots
        """
        result = await db.execute(select(Stadium).where(Stadium.id == stadium_id))
        stadium = result.scalar_one_or_none()

        if not stadium:
            raise NotFoundError("Stadium not found")

        if not identity.can_manage(stadium.owner_id):
            raise PermissionDeniedError(
                "You don't have permission to update this stadium's availability"
            )

        await db.execute(
            delete(AvailabilitySlot).where(AvailabilitySlot.stadium_id == stadium_id)
        )
        slots = build_slots(stadium_id, update)
        db.add_all(slots)
        await db.commit()

        for slot in slots:
            await db.refresh(slot)

        logger.info(
            f"Replaced availability for stadium {stadium_id}: "
            f"{len(update.recurring_slots)} recurring, {len(update.specific_slots)} specific"
        )
        return slots


# Singleton instance
availability_service = AvailabilityService()
