"""
SnipStash Backend — Tag Response Schemas
==========================================
"""

import uuid

from pydantic import BaseModel, Field


class TagResponse(BaseModel):
    id: uuid.UUID
    name: str

    model_config = {"from_attributes": True}


class TagUsage(BaseModel):
    """A tag name with the number of the user's snippets that carry it."""
    name: str = Field(description="Tag name")
    count: int = Field(description="Distinct snippets owned by the user carrying this tag")
