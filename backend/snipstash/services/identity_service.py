"""
SnipStash Backend — Identity Service (Token Issuance & Resolution)
====================================================================

What:  Turns a bearer token into an authenticated `Identity`, or into one of
       the typed identity failures. Also issues the tokens it later resolves.
How:   HS256 JWTs via python-jose. The token's `sub` claim holds the user id;
       the user row is read to fill in name/email/verification.
Who:   Called by the `get_current_identity` FastAPI dependency on every
       authenticated request, and by the login route for issuance.

Failure mapping:
    token missing / empty                     → UnauthorizedError
    bad signature / malformed / bad `sub`     → InvalidCredentialError
    `sub` names a user that no longer exists  → InvalidCredentialError
    `exp` in the past                         → CredentialExpiredError

resolve_identity() performs reads only. Calling it twice with the same token
yields equal identities (or the same failure).
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from snipstash.config import settings
from snipstash.exceptions import (
    CredentialExpiredError,
    ForbiddenError,
    InvalidCredentialError,
    UnauthorizedError,
)
from snipstash.models.user import User
from snipstash.schemas.user import Identity

logger = logging.getLogger(__name__)


class IdentityService:
    """Issues and resolves access tokens. Stateless apart from settings."""

    def create_access_token(
        self,
        user_id: uuid.UUID,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """
        Create a signed access token for `user_id`.

        Claims: sub (user id), iat, exp, jti (unique per token).
        """
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=settings.jwt_expiry_minutes))
        claims = {
            "sub": str(user_id),
            "iat": now,
            "exp": expire,
            "jti": str(uuid.uuid4()),
        }
        return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)

    def decode_token(self, token: Optional[str]) -> uuid.UUID:
        """
        Verify a token's signature and expiry and return the user id it names.

        Raises:
            UnauthorizedError: token is None or blank
            CredentialExpiredError: signature valid but `exp` has passed
            InvalidCredentialError: anything else wrong with the token
        """
        if token is None or not token.strip():
            raise UnauthorizedError()

        try:
            payload = jwt.decode(
                token.strip(),
                settings.jwt_secret,
                algorithms=[settings.jwt_algorithm],
            )
        except ExpiredSignatureError:
            # Must be caught before JWTError: it is a subclass
            raise CredentialExpiredError()
        except JWTError as e:
            logger.info("Rejected token: %s", str(e))
            raise InvalidCredentialError()

        subject = payload.get("sub")
        if not subject:
            raise InvalidCredentialError(message="Token payload missing required claims")
        try:
            return uuid.UUID(str(subject))
        except ValueError:
            raise InvalidCredentialError(message="Token subject is not a valid user id")

    async def resolve_identity(self, db: AsyncSession, token: Optional[str]) -> Identity:
        """
        Resolve a bearer token into the identity of an existing user.

        Args:
            db: Async database session (read-only use)
            token: Raw token string, without the "Bearer " prefix

        Returns:
            Identity with the standard_user role

        Raises:
            UnauthorizedError, InvalidCredentialError, CredentialExpiredError
        """
        user_id = self.decode_token(token)

        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            logger.info("Token subject %s has no matching user", user_id)
            raise InvalidCredentialError(message="Not authorized, user not found")

        return Identity(
            id=user.id,
            name=user.name,
            email=user.email,
            email_verified=user.email_verified,
        )

    def ensure_capability(self, identity: Identity, capability: str) -> None:
        """Raise ForbiddenError unless `identity` holds `capability`."""
        if capability not in identity.capabilities:
            raise ForbiddenError(capability=capability)


# ── Singleton Instance ────────────────────────────────────────────────────
identity_service = IdentityService()
