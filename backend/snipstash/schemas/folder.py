"""
SnipStash Backend — Folder Request/Response Schemas
=====================================================
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from snipstash.schemas.snippet import SnippetResponse


class FolderCreate(BaseModel):
    """Body of POST /api/folders. Names are unique per user."""
    name: str = Field(max_length=100)
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Folder name is required")
        return stripped


class FolderUpdate(BaseModel):
    """
    Body of PATCH /api/folders/{id}: rename and/or redescribe.

    Only fields present in the request body are changed; an explicit
    `"description": null` clears the description.
    """
    name: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        stripped = v.strip()
        if not stripped:
            raise ValueError("Folder name is required")
        return stripped


class FolderResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class FolderDetailResponse(FolderResponse):
    """Folder plus its snippets; returned when include_snippets is requested."""
    snippets: List[SnippetResponse] = Field(default_factory=list)
