"""Background scheduler for booking housekeeping."""
import logging
from datetime import datetime
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from stadium_booking.core.clock import utcnow
from stadium_booking.core.config import settings
from stadium_booking.core.database import AsyncSessionLocal
from stadium_booking.services.booking_service import booking_service

logger = logging.getLogger(__name__)


class CompletionScheduler:
    """Periodically moves finished confirmed bookings to COMPLETED."""

    def __init__(self, session_factory=AsyncSessionLocal):
        """Initialize the scheduler."""
        self.scheduler = AsyncIOScheduler()
        self.session_factory = session_factory
        self.running = False
        self.last_run_at: Optional[datetime] = None

    async def start(self):
        """Start the scheduler."""
        if self.running:
            logger.warning("Scheduler is already running")
            return

        logger.info("Starting booking completion scheduler")

        self.scheduler.add_job(
            self.complete_finished_bookings,
            IntervalTrigger(minutes=settings.COMPLETION_CHECK_MINUTES),
            id="completion_job",
            name="Complete finished bookings",
            replace_existing=True,
        )

        self.scheduler.start()
        self.running = True
        logger.info("Booking completion scheduler started")

    async def stop(self):
        """Stop the scheduler."""
        if not self.running:
            return

        logger.info("Stopping booking completion scheduler")
        self.scheduler.shutdown(wait=False)
        self.running = False
        logger.info("Booking completion scheduler stopped")

    async def complete_finished_bookings(self) -> int:
        """
        Run one completion pass.

        Failures are logged and leave the bookings untouched for the next run.

        Returns:
            Number of bookings completed
        """
        now = utcnow()
        async with self.session_factory() as db:
            try:
                count = await booking_service.complete_finished_bookings(db, now=now)
            except Exception as e:
                logger.error(f"Error completing finished bookings: {e}", exc_info=True)
                await db.rollback()
                return 0

        self.last_run_at = now
        if count:
            logger.info(f"Marked {count} bookings as completed")
        else:
            logger.debug("No finished bookings to complete")
        return count


# Singleton instance
completion_scheduler = CompletionScheduler()
