"""Timezone helpers for booking timestamps."""
from datetime import date, datetime, time as dt_time
from typing import Tuple

import pytz

from stadium_booking.core.config import settings


def local_tz():
    return pytz.timezone(settings.TIMEZONE)


def utcnow() -> datetime:
    return datetime.now(pytz.UTC)


def to_utc(value: datetime) -> datetime:
    """Normalize a request timestamp to UTC; naive values are local wall time."""
    if value.tzinfo is None:
        value = local_tz().localize(value)
    return value.astimezone(pytz.UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to a timestamp read back from storage."""
    # SQLite returns naive values; everything is stored as UTC
    if value.tzinfo is None:
        return pytz.UTC.localize(value)
    return value.astimezone(pytz.UTC)


def local_day_bounds(target_date: date) -> Tuple[datetime, datetime]:
    """Return [local midnight, local 23:59:59.999999] of a date, in UTC."""
    tz = local_tz()
    start = tz.localize(datetime.combine(target_date, dt_time.min))
    end = tz.localize(datetime.combine(target_date, dt_time.max))
    return start.astimezone(pytz.UTC), end.astimezone(pytz.UTC)


def format_local_hhmm(value: datetime) -> str:
    return as_utc(value).astimezone(local_tz()).strftime("%H:%M")
