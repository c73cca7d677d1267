"""Transactional email client.

Messages are posted as JSON to an HTTP email API (Resend-compatible:
``{"from", "to", "subject", "text"}`` with a bearer key). When
``MAIL_API_URL`` is not configured, messages are logged and dropped.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional
import httpx

from stadium_booking.core.clock import as_utc, local_tz
from stadium_booking.core.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingConfirmation:
    """Plain data needed to render a confirmation, detached from the session."""

    booking_id: int
    to_email: str
    user_name: str
    stadium_name: str
    start_time: datetime
    end_time: datetime
    total_price: float

    @classmethod
    def from_booking(cls, booking) -> "BookingConfirmation":
        """Build from a booking loaded with its user and stadium."""
        return cls(
            booking_id=booking.id,
            to_email=booking.user.email,
            user_name=booking.user.name,
            stadium_name=booking.stadium.name,
            start_time=booking.start_time,
            end_time=booking.end_time,
            total_price=float(booking.total_price),
        )


class Mailer:
    """Client for sending emails through an HTTP email API."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize the mailer.

        Args:
            transport: Optional httpx transport, used to stub the API in tests
        """
        self.api_url = settings.MAIL_API_URL
        self.api_key = settings.MAIL_API_KEY
        self.from_email = settings.MAIL_FROM
        self.max_retries = settings.MAIL_MAX_RETRIES
        self.backoff_seconds = 1.0
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.api_url)

    async def _make_request(self, json_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Post a message with retry logic.

        Raises:
            httpx.HTTPError: If the request fails after retries
        """
        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        async with httpx.AsyncClient(transport=self.transport) as client:
            for attempt in range(self.max_retries):
                try:
                    logger.info(f"Sending email via {self.api_url} (attempt {attempt + 1}/{self.max_retries})")

                    response = await client.post(
                        self.api_url,
                        json=json_data,
                        headers=headers,
                        timeout=30.0,
                    )
                    response.raise_for_status()

                    return response.json() if response.content else {}

                except httpx.HTTPError as e:
                    logger.warning(f"Email request failed (attempt {attempt + 1}/{self.max_retries}): {e}")

                    if attempt == self.max_retries - 1:
                        raise

                    # Exponential backoff
                    await asyncio.sleep(self.backoff_seconds * 2 ** attempt)

            raise httpx.HTTPError("Max retries exceeded")

    async def send_email(self, to: str, subject: str, text: str) -> bool:
        """
        Send a plain-text email.

        Returns:
            True if the API accepted the message, False if mail is disabled
        """
        if not self.enabled:
            logger.info(f"Mail disabled, dropping email to {to}: {subject}")
            return False

        await self._make_request(
            {"from": self.from_email, "to": [to], "subject": subject, "text": text}
        )
        return True

    async def send_booking_confirmation(self, confirmation: BookingConfirmation) -> bool:
        tz = local_tz()
        start = as_utc(confirmation.start_time).astimezone(tz)
        end = as_utc(confirmation.end_time).astimezone(tz)

        subject = f"Your booking at {confirmation.stadium_name} is confirmed"
        text = (
            f"Hi {confirmation.user_name},\n\n"
            f"Your booking #{confirmation.booking_id} at {confirmation.stadium_name} "
            f"on {start:%Y-%m-%d} from {start:%H:%M} to {end:%H:%M} is confirmed.\n"
            f"Total price: {confirmation.total_price:.2f}\n"
        )
        return await self.send_email(confirmation.to_email, subject, text)


async def notify_booking_confirmed(confirmation: BookingConfirmation) -> None:
    """Background task: send a confirmation, logging failures instead of raising."""
    try:
        await mailer.send_booking_confirmation(confirmation)
    except Exception as e:
        logger.error(
            f"Failed to send confirmation for booking {confirmation.booking_id}: {e}",
            exc_info=True,
        )


# Singleton instance
mailer = Mailer()
