"""
SnipStash Backend — Auth Route Handlers
=========================================

What:  POST /api/auth/register, POST /api/auth/login, GET /api/auth/me.
How:   Registration and login go through UserService; tokens are issued by
       IdentityService. /me simply echoes the resolved identity.

Login failures are deliberately uniform: an unknown email and a wrong
password both produce 401 invalid_credential with the same message.
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from snipstash.config import settings
from snipstash.database import get_db_session
from snipstash.dependencies import get_current_identity
from snipstash.schemas.common import ErrorResponse
from snipstash.schemas.user import (
    Identity,
    LoginRequest,
    TokenResponse,
    UserCreate,
    UserResponse,
)
from snipstash.services.identity_service import identity_service
from snipstash.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Email already registered", "model": ErrorResponse}},
    summary="Create an account",
)
async def register(
    body: UserCreate,
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    user = await user_service.register_user(db, body.name, body.email, body.password)
    return UserResponse.model_validate(user)


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={401: {"description": "Invalid email or password", "model": ErrorResponse}},
    summary="Exchange email and password for a bearer token",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    """
    Verify credentials and issue an access token.

    The token is sent back as `Authorization: Bearer <access_token>` on every
    other request. It expires after JWT_EXPIRY_MINUTES.
    """
    user = await user_service.authenticate(db, body.email, body.password)
    token = identity_service.create_access_token(user.id)
    logger.info("User %s logged in", user.id)
    return TokenResponse(
        access_token=token,
        expires_in=settings.jwt_expiry_minutes * 60,
        user=UserResponse.model_validate(user),
    )


@router.get(
    "/me",
    response_model=Identity,
    responses={401: {"description": "Missing, invalid or expired token", "model": ErrorResponse}},
    summary="The identity behind the presented token",
)
async def me(identity: Identity = Depends(get_current_identity)) -> Identity:
    return identity
