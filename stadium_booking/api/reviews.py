"""Review endpoints."""
import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stadium_booking.core.database import get_db
from stadium_booking.core.security import Identity, require_identity
from stadium_booking.models.review import Review
from stadium_booking.models.stadium import Stadium
from stadium_booking.schemas.review import ReviewCreate, ReviewInDB

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stadiums/{stadium_id}/reviews", tags=["reviews"])


async def _ensure_stadium(db: AsyncSession, stadium_id: int) -> None:
    result = await db.execute(select(Stadium.id).where(Stadium.id == stadium_id))
    if result.scalar_one_or_none() is None:
        raise HTTPException(status_code=404, detail="Stadium not found")


@router.get("", response_model=List[ReviewInDB])
async def list_reviews(
    stadium_id: int,
    db: AsyncSession = Depends(get_db),
):
    """List reviews of a stadium, newest first."""
    await _ensure_stadium(db, stadium_id)

    result = await db.execute(
        select(Review)
        .where(Review.stadium_id == stadium_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    return result.scalars().all()


@router.post("", response_model=ReviewInDB, status_code=201)
async def create_review(
    stadium_id: int,
    review_in: ReviewCreate,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    """
    Post a review of a stadium.

    Args:
        stadium_id: Stadium ID
        review_in: Rating (1-5) and content
        identity: Caller
        db: Database session

    Returns:
        Created review
    """
    await _ensure_stadium(db, stadium_id)

    review = Review(
        stadium_id=stadium_id,
        user_id=identity.user_id,
        rating=review_in.rating,
        content=review_in.content,
    )
    db.add(review)
    await db.commit()
    await db.refresh(review)

    logger.info(f"User {identity.user_id} reviewed stadium {stadium_id} ({review.rating}/5)")
    return review
