"""
SnipStash Backend — User Service
==================================

What:  Account registration and password login.
How:   bcrypt for password hashing (72-byte input limit applied), unique
       email enforced by the database and surfaced as ConflictError.
Who:   Called by the /api/auth routes.
"""

import logging
import uuid
from datetime import datetime, timezone

import bcrypt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from snipstash.exceptions import ConflictError, InvalidCredentialError, NotFoundError
from snipstash.models.user import User

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Hash a plain-text password using bcrypt."""
    pw_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain-text password against a bcrypt hash."""
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8")[:72],
            hashed_password.encode("utf-8"),
        )
    except ValueError:
        # Stored value is not a bcrypt hash
        logger.warning("Unreadable password hash encountered during login")
        return False


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    """Account registration and password login."""

    async def register_user(
        self,
        db: AsyncSession,
        name: str,
        email: str,
        password: str,
    ) -> User:
        """
        Create an account.

        Raises:
            ConflictError: an account with this email already exists
        """
        email = normalize_email(email)
        existing = await db.execute(select(User.id).where(User.email == email))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(message="User already exists", resource="user")

        now = datetime.now(timezone.utc)
        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            email_verified=False,
            created_at=now,
            updated_at=now,
        )
        try:
            async with db.begin_nested():
                db.add(user)
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email
            raise ConflictError(message="User already exists", resource="user")

        logger.info("Registered user %s", user.id)
        return user

    async def authenticate(self, db: AsyncSession, email: str, password: str) -> User:
        """
        Check an email/password pair.

        Raises:
            InvalidCredentialError: unknown email or wrong password (indistinguishable)
        """
        result = await db.execute(select(User).where(User.email == normalize_email(email)))
        user = result.scalar_one_or_none()
        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialError(message="Invalid email or password")
        return user

    async def get_user(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user


user_service = UserService()
