import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from campus_events.auth_token import create_access_token, get_current_user
from campus_events.database import get_db
from campus_events.errors import Unauthenticated
from campus_events.models.user import User
from campus_events.schemas import (
    TokenResponse,
    UserLogin,
    UserProfileRead,
    UserRegister,
)
from campus_events.security import check_password, hash_password

router = APIRouter(tags=["auth"])
logger = logging.getLogger(__name__)


def _token_response(user: User) -> TokenResponse:
    token = create_access_token({"user_id": user.id})
    return TokenResponse(access_token=token, user=UserProfileRead.model_validate(user))


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(payload: UserRegister, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(User.email == payload.email))
    if result.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Email already exists")

    new_user = User(
        name=payload.name,
        email=payload.email,
        password_hash=hash_password(payload.password),
        role=payload.role,
        organization=payload.organization,
    )
    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)
    logger.info("Registered user %s with role %s", new_user.id, new_user.role)
    return _token_response(new_user)


@router.post("/login", response_model=TokenResponse)
async def login(payload: UserLogin, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(User.email == payload.email))
    db_user = result.scalar_one_or_none()

    ok, new_hash = check_password(payload.password, db_user.password_hash if db_user else None)
    if not ok:
        raise Unauthenticated("Invalid credentials")

    if new_hash:
        db_user.password_hash = new_hash
        await db.commit()

    return _token_response(db_user)


@router.get("/me", response_model=UserProfileRead)
async def read_users_me(current_user: User = Depends(get_current_user)):
    return UserProfileRead.model_validate(current_user)

