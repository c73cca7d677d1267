"""Booking service: overlap guard, creation, decisions and cancellation."""
import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from stadium_booking.core.clock import as_utc, to_utc, utcnow
from stadium_booking.core.config import settings
from stadium_booking.core.exceptions import (
    BookingConflictError,
    CancellationWindowError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from stadium_booking.core.security import Identity
from stadium_booking.models.booking import Booking, BookingStatus
from stadium_booking.models.stadium import Stadium
from stadium_booking.schemas.booking import BookingCreate
from stadium_booking.services.booking_state import transition

logger = logging.getLogger(__name__)

# Targets an owner may choose for a pending booking
DECISION_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.CANCELLED)


def overlaps(
    start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime
) -> bool:
    """Half-open interval intersection: [start_a, end_a) and [start_b, end_b)."""
    return start_a < end_b and end_a > start_b


def hours_until(start: datetime, now: datetime) -> float:
    return (as_utc(start) - as_utc(now)).total_seconds() / 3600


def within_cancellation_window(
    start: datetime, now: datetime, window_hours: Optional[int] = None
) -> bool:
    """True if a booking starting at `start` may still be cancelled at `now`."""
    if window_hours is None:
        window_hours = settings.CANCELLATION_WINDOW_HOURS
    return hours_until(start, now) >= window_hours


def calculate_price(price_per_hour: Decimal, start: datetime, end: datetime) -> Decimal:
    hours = Decimal(str((end - start).total_seconds())) / Decimal(3600)
    return (hours * Decimal(price_per_hour)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def blocking_statuses() -> List[BookingStatus]:
    statuses = [BookingStatus.CONFIRMED]
    if settings.BLOCK_ON_PENDING_BOOKINGS:
        statuses.append(BookingStatus.PENDING)
    return statuses


def booking_query(booking_id: int, lock: bool = False):
    """Select a booking with its stadium and user, optionally locking its row."""
    query = (
        select(Booking)
        .options(selectinload(Booking.stadium), selectinload(Booking.user))
        .where(Booking.id == booking_id)
        .execution_options(populate_existing=True)
    )
    if lock:
        query = query.with_for_update()
    return query


class BookingService:
    """Service for managing bookings."""

    async def _lock_stadium(self, db: AsyncSession, stadium_id: int) -> Stadium:
        """Load a stadium with a row lock so bookings for it are serialized."""
        result = await db.execute(
            select(Stadium).where(Stadium.id == stadium_id).with_for_update()
        )
        stadium = result.scalar_one_or_none()

        if not stadium:
            raise NotFoundError("Stadium not found")

        return stadium

    async def find_conflicts(
        self,
        db: AsyncSession,
        stadium_id: int,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[int] = None,
    ) -> List[Booking]:
        """
        Find bookings of a stadium that block the requested range.

        Args:
            db: Database session
            stadium_id: Stadium ID
            start: Requested start (UTC)
            end: Requested end (UTC)
            exclude_booking_id: Booking to ignore, used when confirming it

        Returns:
            Conflicting bookings, empty if the range is free
        """
        conditions = [
            Booking.stadium_id == stadium_id,
            Booking.status.in_(blocking_statuses()),
            Booking.start_time < end,
            Booking.end_time > start,
        ]
        if exclude_booking_id is not None:
            conditions.append(Booking.id != exclude_booking_id)

        result = await db.execute(select(Booking).where(and_(*conditions)))
        return list(result.scalars().all())

    async def _ensure_free(
        self,
        db: AsyncSession,
        stadium_id: int,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[int] = None,
    ) -> None:
        conflicts = await self.find_conflicts(db, stadium_id, start, end, exclude_booking_id)
        if conflicts:
            logger.info(
                f"Booking conflict on stadium {stadium_id} for {start}-{end}: "
                f"{[b.id for b in conflicts]}"
            )
            raise BookingConflictError("This time slot is already booked")

    async def _load(self, db: AsyncSession, booking_id: int, lock: bool = False) -> Booking:
        result = await db.execute(booking_query(booking_id, lock=lock))
        booking = result.scalar_one_or_none()

        if not booking:
            raise NotFoundError("Booking not found")

        return booking

    async def create_booking(
        self, db: AsyncSession, identity: Identity, data: BookingCreate
    ) -> Booking:
        """
        Create a booking for the caller.

        The overlap check and the insert share one transaction, opened by
        locking the stadium row.

        Args:
            db: Database session
            identity: Caller making the booking
            data: Requested stadium and time range

        Returns:
            The stored booking, CONFIRMED unless AUTO_CONFIRM_BOOKINGS is off

        Raises:
            ValidationError: If the range is empty or inverted
            NotFoundError: If the stadium does not exist
            BookingConflictError: If a confirmed booking overlaps the range
        """
        start = to_utc(data.start_time)
        end = to_utc(data.end_time)
        if end <= start:
            raise ValidationError("end_time must be after start_time")

        stadium = await self._lock_stadium(db, data.stadium_id)
        await self._ensure_free(db, stadium.id, start, end)

        booking = Booking(
            stadium_id=stadium.id,
            user_id=identity.user_id,
            start_time=start,
            end_time=end,
            status=BookingStatus.PENDING,
            total_price=calculate_price(stadium.price_per_hour, start, end),
            special_requests=data.special_requests or "",
        )
        if settings.AUTO_CONFIRM_BOOKINGS:
            transition(booking, BookingStatus.CONFIRMED)

        db.add(booking)
        await db.commit()

        logger.info(
            f"User {identity.user_id} booked stadium {stadium.id} "
            f"{start.isoformat()}-{end.isoformat()} ({booking.status.value})"
        )
        return await self._load(db, booking.id)

    async def list_bookings(
        self,
        db: AsyncSession,
        identity: Identity,
        status: Optional[BookingStatus] = None,
        stadium_id: Optional[int] = None,
    ) -> List[Booking]:
        """List the caller's bookings, newest start first."""
        conditions = [Booking.user_id == identity.user_id]
        if status is not None:
            conditions.append(Booking.status == status)
        if stadium_id is not None:
            conditions.append(Booking.stadium_id == stadium_id)

        result = await db.execute(
            select(Booking)
            .options(selectinload(Booking.stadium))
            .where(and_(*conditions))
            .order_by(Booking.start_time.desc())
        )
        return list(result.scalars().all())

    async def get_booking(
        self, db: AsyncSession, identity: Identity, booking_id: int
    ) -> Booking:
        """Fetch a booking visible to its user, the stadium owner, or an admin."""
        booking = await self._load(db, booking_id)

        if booking.user_id != identity.user_id and not identity.can_manage(
            booking.stadium.owner_id
        ):
            raise PermissionDeniedError("Forbidden")

        return booking

    async def update_status(
        self,
        db: AsyncSession,
        identity: Identity,
        booking_id: int,
        target: BookingStatus,
    ) -> Booking:
        """
        Approve or decline a pending booking.

        The booking row is locked before its status is read, so a concurrent
        cancellation is seen rather than overwritten.

        Args:
            db: Database session
            identity: Stadium owner or admin
            booking_id: Booking ID
            target: CONFIRMED or CANCELLED

        Returns:
            Updated booking

        Raises:
            InvalidTransitionError: If the target is not a decision status or
                the booking is no longer PENDING
            PermissionDeniedError: If the caller does not manage the stadium
            BookingConflictError: If confirming would overlap a confirmed booking
        """
        if target not in DECISION_STATUSES:
            raise InvalidTransitionError("Invalid target status provided")

        booking = await self._load(db, booking_id, lock=True)

        if not identity.can_manage(booking.stadium.owner_id):
            raise PermissionDeniedError("Forbidden")

        if booking.status != BookingStatus.PENDING:
            raise InvalidTransitionError(
                f"Booking status is already {booking.status.value}, cannot change."
            )

        if target == BookingStatus.CONFIRMED:
            await self._lock_stadium(db, booking.stadium_id)
            await self._ensure_free(
                db,
                booking.stadium_id,
                as_utc(booking.start_time),
                as_utc(booking.end_time),
                exclude_booking_id=booking.id,
            )

        transition(booking, target)
        await db.commit()

        logger.info(f"Booking {booking.id} set to {target.value} by user {identity.user_id}")
        return await self._load(db, booking.id)

    async def cancel_booking(
        self,
        db: AsyncSession,
        identity: Identity,
        booking_id: int,
        now: Optional[datetime] = None,
    ) -> Booking:
        """
        Cancel one of the caller's own bookings.

        Args:
            db: Database session
            identity: Caller, must be the booking's user
            booking_id: Booking ID
            now: Reference time, defaults to current UTC time

        Returns:
            Cancelled booking

        Raises:
            CancellationWindowError: If the booking starts too soon
        """
        now = now or utcnow()
        booking = await self._load(db, booking_id, lock=True)

        if booking.user_id != identity.user_id:
            raise PermissionDeniedError("You can only cancel your own bookings")

        if booking.status in (BookingStatus.CANCELLED, BookingStatus.COMPLETED):
            raise InvalidTransitionError(
                f"Booking is already {booking.status.value} and cannot be cancelled"
            )

        if not within_cancellation_window(booking.start_time, now):
            raise CancellationWindowError(
                f"This booking cannot be cancelled as it is less than "
                f"{settings.CANCELLATION_WINDOW_HOURS} hours away."
            )

        transition(booking, BookingStatus.CANCELLED, now=now)
        await db.commit()

        logger.info(f"Booking {booking.id} cancelled by user {identity.user_id}")
        return await self._load(db, booking.id)

    async def complete_finished_bookings(
        self, db: AsyncSession, now: Optional[datetime] = None
    ) -> int:
        """Mark confirmed bookings whose end time has passed as COMPLETED."""
        now = now or utcnow()
        result = await db.execute(
            select(Booking).where(
                and_(
                    Booking.status == BookingStatus.CONFIRMED,
                    Booking.end_time <= now,
                )
            )
        )
        bookings = result.scalars().all()

        for booking in bookings:
            transition(booking, BookingStatus.COMPLETED)

        await db.commit()
        return len(bookings)


# Singleton instance
booking_service = BookingService()
