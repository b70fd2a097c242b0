"""
SnipStash Backend — Snippet Request/Response Schemas
======================================================

What:  Pydantic models defining the snippet API contract.
How:   FastAPI validates request bodies against the *Create/*Update models
       and serializes service results through the *Response models.

Schemas are separate from the SQLAlchemy models: a SnippetResponse carries
tag names and folder ids, which the ORM model does not hold. The service
layer fills them in from the join tables.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


def _strip_required(value: str, field: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError(f"{field} must not be blank")
    return stripped


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class SnippetCreate(BaseModel):
    """
    What:  Body of POST /api/snippets.

    `tags` are names, resolved through find-or-create; `folder_ids` must all
    belong to the caller.
    """
    title: str = Field(max_length=255, description="Short title")
    content: str = Field(description="Snippet body (code or note text)")
    language: str = Field(max_length=50, description="Language label, e.g. 'python'")
    description: Optional[str] = Field(default=None, description="Optional longer description")
    tags: List[str] = Field(default_factory=list, description="Tag names to attach")
    folder_ids: List[uuid.UUID] = Field(default_factory=list, description="Folders to file the snippet in")

    @field_validator("title", "language")
    @classmethod
    def validate_not_blank(cls, v: str, info) -> str:
        return _strip_required(v, info.field_name)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        # Content keeps its whitespace; it only has to contain something
        if not v.strip():
            raise ValueError("content must not be blank")
        return v


class SnippetUpdate(BaseModel):
    """
    What:  Body of PUT /api/snippets/{id}.

    Omitted (None) fields keep their current value. A supplied `tags` list
    replaces the whole tag set; a supplied `folder_ids` list replaces the
    whole folder membership.
    """
    title: Optional[str] = Field(default=None, max_length=255)
    content: Optional[str] = None
    language: Optional[str] = Field(default=None, max_length=50)
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    folder_ids: Optional[List[uuid.UUID]] = None

    @field_validator("title", "language")
    @classmethod
    def validate_not_blank(cls, v: Optional[str], info) -> Optional[str]:
        if v is None:
            return v
        return _strip_required(v, info.field_name)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("content must not be blank")
        return v


class TagAssignment(BaseModel):
    """Body of PUT /api/snippets/{id}/tags: the complete desired tag set."""
    tags: List[str] = Field(description="Tag names; replaces the current set")


class FolderAssignment(BaseModel):
    """Body of PUT /api/snippets/{id}/folders: the complete desired folder set."""
    folder_ids: List[uuid.UUID] = Field(description="Folder ids; replaces the current set")


class UsageRequest(BaseModel):
    """Body of POST /api/snippets/{id}/copy."""
    action: str = Field(default="copy", min_length=1, max_length=50)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class SnippetResponse(BaseModel):
    """
    What:  Full representation of a snippet with its tag names and folders.

    `tags` is sorted by name so responses are stable between calls.
    """
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    content: str
    language: str
    description: Optional[str] = None
    usage_count: int = 0
    last_used_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    tags: List[str] = Field(default_factory=list)
    folder_ids: List[uuid.UUID] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class SnippetPage(BaseModel):
    """
    What:  One page of search results.

    Pagination is one-based and offset-driven: page N holds rows
    [(N-1)*page_size, N*page_size) of the ordered result set. total_count
    counts every matching row, independent of the page requested.
    """
    items: List[SnippetResponse] = Field(description="Snippets on this page, in sort order")
    total_count: int = Field(description="Number of snippets matching all filters")
    page: int = Field(description="One-based page index")
    page_size: int = Field(description="Maximum items per page")
    has_more: bool = Field(description="Whether a later page holds more results")
