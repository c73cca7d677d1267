"""Shared fixtures: per-test SQLite database, ASGI client and factories."""
import os

# Settings are read at import time, so configure before importing the app
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["TIMEZONE"] = "UTC"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"
os.environ["MAIL_API_URL"] = ""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, Optional

import httpx
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from stadium_booking.core.database import Base, get_db
from stadium_booking.core.security import create_session_token, hash_password
from stadium_booking.main import app
from stadium_booking.models import (
    AvailabilitySlot,
    Booking,
    BookingStatus,
    Stadium,
    User,
    UserRole,
)

PASSWORD = "password123"
PASSWORD_HASH = hash_password(PASSWORD)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


def auth_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_session_token(user)}"}


async def make_user(
    db: AsyncSession,
    email: str,
    role: UserRole = UserRole.USER,
    name: Optional[str] = None,
) -> User:
    user = User(
        name=name or email.split("@")[0].title(),
        email=email,
        hashed_password=PASSWORD_HASH,
        role=role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def make_stadium(
    db: AsyncSession,
    owner: User,
    name: str = "Arena Central",
    city: str = "Madrid",
    price_per_hour: Decimal = Decimal("50.00"),
    sport_types=("football",),
) -> Stadium:
    stadium = Stadium(
        owner_id=owner.id,
        name=name,
        description="Floodlit five-a-side pitch",
        address="Calle Mayor 1",
        city=city,
        postal_code="28013",
        country="Spain",
        price_per_hour=price_per_hour,
        sport_types=list(sport_types),
        facilities=["showers"],
        capacity=10,
    )
    db.add(stadium)
    await db.commit()
    await db.refresh(stadium)
    return stadium


async def make_slot(
    db: AsyncSession,
    stadium: Stadium,
    start_time: str,
    end_time: str,
    day_of_week: Optional[int] = None,
    specific_date=None,
) -> AvailabilitySlot:
    slot = AvailabilitySlot(
        stadium_id=stadium.id,
        is_recurring=specific_date is None,
        day_of_week=day_of_week,
        specific_date=specific_date,
        start_time=start_time,
        end_time=end_time,
    )
    db.add(slot)
    await db.commit()
    return slot


async def make_booking(
    db: AsyncSession,
    stadium: Stadium,
    user: User,
    start: datetime,
    hours: float = 1,
    status: BookingStatus = BookingStatus.CONFIRMED,
) -> Booking:
    booking = Booking(
        stadium_id=stadium.id,
        user_id=user.id,
        start_time=start,
        end_time=start + timedelta(hours=hours),
        status=status,
        total_price=Decimal("50.00") * Decimal(str(hours)),
    )
    db.add(booking)
    await db.commit()
    await db.refresh(booking)
    return booking


@pytest_asyncio.fixture
async def owner(db):
    return await make_user(db, "owner@example.com", role=UserRole.STADIUM_OWNER)


@pytest_asyncio.fixture
async def player(db):
    return await make_user(db, "player@example.com")


@pytest_asyncio.fixture
async def other_player(db):
    return await make_user(db, "other@example.com")


@pytest_asyncio.fixture
async def admin(db):
    return await make_user(db, "admin@example.com", role=UserRole.ADMIN)


@pytest_asyncio.fixture
async def stadium(db, owner):
    return await make_stadium(db, owner)
