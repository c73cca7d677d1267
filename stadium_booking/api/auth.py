"""Authentication endpoints."""
import logging
from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stadium_booking.core.config import settings
from stadium_booking.core.database import get_db
from stadium_booking.core.security import (
    Identity,
    create_session_token,
    hash_password,
    require_identity,
    verify_password,
)
from stadium_booking.models.user import User, UserRole
from stadium_booking.schemas.user import (
    IdentityResponse,
    SessionResponse,
    UserCreate,
    UserInDB,
    UserLogin,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=UserInDB, status_code=201)
async def register(
    user_in: UserCreate,
    db: AsyncSession = Depends(get_db),
):
    """
    Register a new account.

    Only USER and STADIUM_OWNER can be chosen; any other role registers as USER.

    Args:
        user_in: Name, email, password and requested role
        db: Database session

    Returns:
        Created user
    """
    result = await db.execute(select(User).where(User.email == user_in.email))
    if result.scalar_one_or_none():
        logger.info("Registration failed: email already in use")
        raise HTTPException(status_code=400, detail="Email already in use")

    role = UserRole.STADIUM_OWNER if user_in.role == UserRole.STADIUM_OWNER else UserRole.USER
    hashed = await run_in_threadpool(hash_password, user_in.password)

    user = User(
        name=user_in.name,
        email=user_in.email,
        hashed_password=hashed,
        role=role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info(f"User {user.id} registered with role {role.value}")
    return user


@router.post("/login", response_model=SessionResponse)
async def login(
    credentials: UserLogin,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """
    Log in with email and password.

    Sets the signed session cookie and also returns the token for
    clients that send it as a bearer header.
    """
    result = await db.execute(select(User).where(User.email == credentials.email))
    user = result.scalar_one_or_none()

    if not user or not await run_in_threadpool(
        verify_password, credentials.password, user.hashed_password
    ):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_session_token(user)
    max_age = settings.SESSION_TTL_MINUTES * 60
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=max_age,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )

    return SessionResponse(user=UserInDB.model_validate(user), token=token, expires_in=max_age)


@router.post("/logout")
async def logout(response: Response):
    """Clear the session cookie."""
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"message": "Logged out"}


@router.get("/session", response_model=IdentityResponse)
async def get_session(identity: Identity = Depends(require_identity)):
    """Return the identity carried by the current session."""
    return IdentityResponse(
        user_id=identity.user_id,
        email=identity.email,
        name=identity.name,
        role=identity.role,
    )
