"""User profile endpoints."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stadium_booking.core.database import get_db
from stadium_booking.core.security import Identity, require_identity
from stadium_booking.models.user import User
from stadium_booking.schemas.user import ProfileUpdate, UserInDB

router = APIRouter(prefix="/api/user", tags=["users"])


async def _get_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    return user


@router.get("/profile", response_model=UserInDB)
async def get_profile(
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    """Get the caller's profile."""
    return await _get_user(db, identity.user_id)


@router.patch("/profile", response_model=UserInDB)
async def update_profile(
    profile: ProfileUpdate,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
):
    """
    Update the caller's profile.

    Args:
        profile: New display name
        identity: Caller
        db: Database session

    Returns:
        Updated user
    """
    user = await _get_user(db, identity.user_id)
    user.name = profile.name

    await db.commit()
    await db.refresh(user)

    return user
