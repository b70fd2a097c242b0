"""
SnipStash Backend — User & Identity Schemas
=============================================

What:  Registration/login payloads, the token response, and `Identity`,
       the value the identity resolver hands to every other component.
"""

import uuid
from datetime import datetime
from typing import FrozenSet

from pydantic import BaseModel, EmailStr, Field, field_validator


STANDARD_USER = "standard_user"


class UserCreate(BaseModel):
    """Body of POST /api/auth/register."""
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("name must not be blank")
        return stripped


class LoginRequest(BaseModel):
    """Body of POST /api/auth/login."""
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class UserResponse(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    email_verified: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Token lifetime in seconds")
    user: UserResponse


class Identity(BaseModel):
    """
    An authenticated caller.

    Produced only by IdentityService.resolve_identity. Every identity holds
    exactly the "standard_user" capability and may act on its own resources
    only.
    """
    id: uuid.UUID
    name: str
    email: str
    email_verified: bool
    role: str = STANDARD_USER

    model_config = {"frozen": True}

    @property
    def capabilities(self) -> FrozenSet[str]:
        return frozenset({self.role})
