"""Stadium endpoints."""
import logging
import math
from typing import Literal, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, cast, or_
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from stadium_booking.core.database import get_db
from stadium_booking.core.security import Identity, require_identity
from stadium_booking.models.review import Review
from stadium_booking.models.stadium import Stadium
from stadium_booking.models.user import UserRole
from stadium_booking.schemas.availability import AvailabilityUpdate
from stadium_booking.schemas.stadium import (
    Pagination,
    StadiumCreate,
    StadiumDetail,
    StadiumInDB,
    StadiumListResponse,
    StadiumUpdate,
)
from stadium_booking.services.availability_service import build_slots

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stadiums", tags=["stadiums"])

StadiumSort = Literal["newest", "price-asc", "price-desc", "rating"]

STADIUM_SORTS = {
    "newest": (Stadium.created_at.desc(), Stadium.id.desc()),
    "price-asc": (Stadium.price_per_hour.asc(), Stadium.id.desc()),
    "price-desc": (Stadium.price_per_hour.desc(), Stadium.id.desc()),
}


def has_sport(dialect_name: str, sport: str):
    """
    Exact membership test of a sport in the sport_types JSON list.

    Args:
        dialect_name: Dialect the query runs on (postgresql or sqlite)
        sport: Sport type to look for

    Returns:
        Boolean SQL expression
    """
    if dialect_name == "postgresql":
        return cast(Stadium.sport_types, JSONB).contains([sport])

    sports = func.json_each(Stadium.sport_types).table_valued("value")
    return select(sports.c.value).where(sports.c.value == sport).exists()


def stadium_ordering(sort: str):
    if sort == "rating":
        # Most reviewed first
        review_count = (
            select(func.count(Review.id))
            .where(Review.stadium_id == Stadium.id)
            .correlate(Stadium)
            .scalar_subquery()
        )
        return (review_count.desc(), Stadium.created_at.desc(), Stadium.id.desc())
    return STADIUM_SORTS[sort]


async def get_stadium_or_404(db: AsyncSession, stadium_id: int, *relations) -> Stadium:
    """Load a stadium with the given relationships eagerly, or raise 404."""
    query = select(Stadium).where(Stadium.id == stadium_id)
    for relation in relations:
        query = query.options(selectinload(relation))
    result = await db.execute(query.execution_options(populate_existing=True))
    stadium = result.scalar_one_or_none()

    if not stadium:
        raise HTTPException(status_code=404, detail="Stadium not found")

    return stadium


@router.post("", response_model=StadiumDetail, status_code=201)
async def create_stadium(
    stadium_in: StadiumCreate,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a new stadium owned by the caller.

    Initial availability slots may be passed along with the stadium.

    Args:
        stadium_in: Stadium data and optional availability
        identity: Caller, must be a stadium owner
        db: Database session

    Returns:
        Created stadium with its availability
    """
    if identity.role != UserRole.STADIUM_OWNER:
        raise HTTPException(status_code=403, detail="Only stadium owners can create stadiums")

    data = stadium_in.model_dump(exclude={"recurring_slots", "specific_slots"})
    stadium = Stadium(**data, owner_id=identity.user_id, is_verified=False)
    db.add(stadium)
    await db.flush()

    db.add_all(
        build_slots(
            stadium.id,
            AvailabilityUpdate(
                recurring_slots=stadium_in.recurring_slots,
                specific_slots=stadium_in.specific_slots,
            ),
        )
    )
    await db.commit()

    logger.info(f"Stadium {stadium.id} created by user {identity.user_id}")
    return await get_stadium_or_404(db, stadium.id, Stadium.availability)


@router.get("", response_model=StadiumListResponse)
async def list_stadiums(
    q: Optional[str] = Query(default=None, description="Search name, city or sport"),
    city: Optional[str] = Query(default=None, description="Case-insensitive city match"),
    sport: Optional[str] = Query(default=None, description="Sport the stadium offers"),
    price_min: Optional[float] = Query(default=None, ge=0),
    price_max: Optional[float] = Query(default=None, ge=0),
    sort: StadiumSort = Query(default="newest"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """
    List stadiums with filters, sorting and pagination.

    Args:
        q: Substring of the name or city, or an exact sport type
        city: Substring of the city name
        sport: Sport type the stadium must list
        price_min: Minimum price per hour
        price_max: Maximum price per hour
        sort: newest, price-asc, price-desc or rating (most reviewed)
        page: Page number, starting at 1
        page_size: Stadiums per page
        db: Database session

    Returns:
        Stadiums and pagination metadata
    """
    dialect_name = db.bind.dialect.name

    conditions = []
    if q:
        conditions.append(
            or_(
                Stadium.name.icontains(q, autoescape=True),
                Stadium.city.icontains(q, autoescape=True),
                has_sport(dialect_name, q),
            )
        )
    if city:
        conditions.append(Stadium.city.icontains(city, autoescape=True))
    if sport:
        conditions.append(has_sport(dialect_name, sport))
    if price_min is not None:
        conditions.append(Stadium.price_per_hour >= price_min)
    if price_max is not None:
        conditions.append(Stadium.price_per_hour <= price_max)

    result = await db.execute(
        select(Stadium)
        .where(*conditions)
        .order_by(*stadium_ordering(sort))
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    stadiums = result.scalars().all()

    result = await db.execute(select(func.count()).select_from(Stadium).where(*conditions))
    total = result.scalar_one()

    return StadiumListResponse(
        stadiums=[StadiumInDB.model_validate(s) for s in stadiums],
        pagination=Pagination(
            current_page=page,
            total_pages=math.ceil(total / page_size),
            total_stadiums=total,
            page_size=page_size,
        ),
    )


@router.get("/{stadium_id}", response_model=StadiumDetail)
async def get_stadium(
    stadium_id: int,
    db: AsyncSession = Depends(get_db),
):
    """
    Get a specific stadium by ID.

    Args:
        stadium_id: Stadium ID
        db: Database session

    Returns:
        Stadium details with availability
    """
    return await get_stadium_or_404(db, stadium_id, Stadium.availability)


@router.put("/{stadium_id}", response_model=StadiumDetail)
async def update_stadium(
    stadium_id: int,
    stadium_update: StadiumUpdate,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    """
    Update a stadium's information.

    Args:
        stadium_id: Stadium ID
        stadium_update: Fields to update
        identity: Caller, must own the stadium or be an admin
        db: Database session

    Returns:
        Updated stadium
    """
    stadium = await get_stadium_or_404(db, stadium_id)

    if not identity.can_manage(stadium.owner_id):
        raise HTTPException(
            status_code=403, detail="You don't have permission to update this stadium"
        )

    # Update fields
    update_data = stadium_update.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(stadium, field, value)

    await db.commit()

    logger.info(f"Stadium {stadium_id} updated by user {identity.user_id}: {sorted(update_data)}")
    return await get_stadium_or_404(db, stadium_id, Stadium.availability)


@router.delete("/{stadium_id}")
async def delete_stadium(
    stadium_id: int,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete a stadium with its availability, bookings and reviews.

    Args:
        stadium_id: Stadium ID
        identity: Caller, must own the stadium or be an admin
        db: Database session
    """
    stadium = await get_stadium_or_404(
        db, stadium_id, Stadium.availability, Stadium.bookings, Stadium.reviews
    )

    if not identity.can_manage(stadium.owner_id):
        raise HTTPException(
            status_code=403, detail="You don't have permission to delete this stadium"
        )

    await db.delete(stadium)
    await db.commit()

    logger.info(f"Stadium {stadium_id} deleted by user {identity.user_id}")
    return {"message": "Stadium deleted successfully"}
