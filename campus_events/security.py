"""Password hashing for user accounts."""

from typing import Optional

from passlib.context import CryptContext


pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

MIN_PASSWORD_LENGTH = 6


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def check_password(plain_password: str, stored_hash: Optional[str]) -> tuple[bool, Optional[str]]:
    """Verify a login password.

    Returns ``(ok, new_hash)`` where ``new_hash`` is set when the stored hash
    uses outdated parameters and should be replaced.
    """
    if not stored_hash:
        return False, None
    return pwd_context.verify_and_update(plain_password, stored_hash)
