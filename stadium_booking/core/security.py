"""Password hashing, session tokens and the authenticated identity."""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from fastapi import Depends, HTTPException, Request, status
from passlib.context import CryptContext

from stadium_booking.core.config import settings
from stadium_booking.models.user import User, UserRole

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, built from session token claims."""

    user_id: int
    email: str
    name: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def can_manage(self, owner_id: int) -> bool:
        """True if the caller owns the resource or is an admin."""
        return self.is_admin or self.user_id == owner_id


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError as e:
        logger.error(f"Error verifying password: {e}")
        return False


def create_session_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed session token for a user.

    Args:
        user: Authenticated user
        expires_delta: Optional lifetime, defaults to SESSION_TTL_MINUTES

    Returns:
        Encoded JWT
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.SESSION_TTL_MINUTES)
    )
    claims: Dict[str, Any] = {
        "sub": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": user.role.value,
        "exp": expire,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_session_token(token: str) -> Identity:
    """Decode a session token into an identity, raising jwt.PyJWTError if invalid."""
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    try:
        return Identity(
            user_id=int(payload["sub"]),
            email=payload.get("email", ""),
            name=payload.get("name", ""),
            role=UserRole(payload["role"]),
        )
    except (KeyError, ValueError) as e:
        raise jwt.InvalidTokenError(f"Malformed session claims: {e}")


def _token_from_request(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip()
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


async def get_optional_identity(request: Request) -> Optional[Identity]:
    """Resolve the caller identity, or None for anonymous requests."""
    token = _token_from_request(request)
    if not token:
        return None
    try:
        return decode_session_token(token)
    except jwt.PyJWTError as e:
        logger.info(f"Rejected session token: {e}")
        return None


async def require_identity(
    identity: Optional[Identity] = Depends(get_optional_identity),
) -> Identity:
    """Resolve the caller identity, raising 401 for anonymous requests."""
    if identity is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return identity
