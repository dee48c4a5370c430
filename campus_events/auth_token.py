import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from campus_events.access_policy import Identity
from campus_events.database import get_db
from campus_events.errors import Unauthenticated
from campus_events.models.user import User

load_dotenv()

logger = logging.getLogger(__name__)

SECRET_KEY = os.getenv("JWT_SECRET", "dev-secret-change-me")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
EXPIRY_MINUTES = int(os.getenv("JWT_EXPIRY_MINUTES", "60"))

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=EXPIRY_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> int:
    """Check signature and expiry, returning the subject user id."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise Unauthenticated()

    user_id = payload.get("user_id")
    if user_id is None:
        raise Unauthenticated()
    try:
        return int(user_id)
    except (TypeError, ValueError):
        raise Unauthenticated()


async def resolve_user(token: Optional[str], db: AsyncSession) -> User:
    if not token:
        raise Unauthenticated()

    user_id = decode_access_token(token)
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        # Signed token for an account that has since been removed.
        raise Unauthenticated("User not found")
    return user


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    return await resolve_user(token, db)


async def get_current_user_optional(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    if not token:
        return None
    try:
        return await resolve_user(token, db)
    except Unauthenticated:
        logger.debug("Ignoring invalid bearer token on optional-auth route")
        return None


async def get_identity(user: User = Depends(get_current_user)) -> Identity:
    return Identity.from_user(user)


async def get_identity_optional(
    user: Optional[User] = Depends(get_current_user_optional),
) -> Optional[Identity]:
    if user is None:
        return None
    return Identity.from_user(user)

