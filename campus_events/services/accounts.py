"""Admin provisioning. Self-registration never grants the admin role."""

from __future__ import annotations

import logging
from typing import Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from campus_events.models.user import Role, User
from campus_events.security import MIN_PASSWORD_LENGTH, hash_password

logger = logging.getLogger(__name__)


async def ensure_admin(db: AsyncSession, *, name: str, email: str, password: str) -> Tuple[User, bool]:
    """Create an admin account, or promote the existing account with that email.

    An existing account keeps its password. Returns the user and whether it
    was newly created.
    """
    email = email.strip().lower()
    existing = (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()
    if existing is not None:
        if existing.role != Role.admin.value:
            existing.role = Role.admin.value
            await db.commit()
            logger.warning("User %s promoted to admin", existing.id)
        return existing, False

    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Admin password must be at least {MIN_PASSWORD_LENGTH} characters")

    user = User(
        name=name.strip(),
        email=email,
        password_hash=hash_password(password),
        role=Role.admin.value,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.warning("Admin account %s created", user.id)
    return user, True
