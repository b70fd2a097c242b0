"""
SnipStash Backend — Request Dependencies
==========================================

What:  FastAPI dependencies shared by the authenticated routes.
How:   `get_current_identity` reads the `Authorization: Bearer <token>`
       header and hands the token to IdentityService. The resolved Identity
       is passed explicitly into every service call as `identity.id`.
"""

from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from snipstash.database import get_db_session
from snipstash.exceptions import UnauthorizedError
from snipstash.schemas.user import Identity
from snipstash.services.identity_service import identity_service

BEARER_PREFIX = "bearer "


def extract_bearer_token(authorization: Optional[str]) -> str:
    """
    Pull the token out of an Authorization header value.

    Raises:
        UnauthorizedError: header absent, not a Bearer header, or token empty
    """
    if not authorization or not authorization.lower().startswith(BEARER_PREFIX):
        raise UnauthorizedError()
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise UnauthorizedError()
    return token


async def get_current_identity(
    authorization: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> Identity:
    return await identity_service.resolve_identity(db, extract_bearer_token(authorization))
