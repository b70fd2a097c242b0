"""
SnipStash Backend — Tag Route Handlers
========================================

What:  GET /api/tags (the caller's tag vocabulary) and GET /api/tags/popular
       (usage counts, most used first, ties alphabetical).
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from snipstash.database import get_db_session
from snipstash.dependencies import get_current_identity
from snipstash.schemas.tag import TagResponse, TagUsage
from snipstash.schemas.user import Identity
from snipstash.services.tag_analytics import tag_analytics

router = APIRouter(prefix="/api/tags", tags=["Tags"])


@router.get("", response_model=List[TagResponse], summary="Tags used on your snippets")
async def list_tags(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> List[TagResponse]:
    tags = await tag_analytics.list_tags_for_user(db, identity.id)
    return [TagResponse.model_validate(tag) for tag in tags]


@router.get("/popular", response_model=List[TagUsage], summary="Your most used tags")
async def popular_tags(
    limit: Optional[int] = Query(default=10, ge=1, le=100, description="Maximum tags returned"),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> List[TagUsage]:
    return await tag_analytics.tag_usage(db, identity.id, limit=limit)
