"""
SnipStash Backend — Snippet Route Handlers
============================================

What:  Snippet CRUD, search, usage recording and membership replacement.
How:   Thin handlers: resolve the caller, call one service method, shape the
       HTTP response. Every handler passes `identity.id` explicitly.
Who:   Called by the SnipStash frontend.

Endpoints:
    POST   /api/snippets                              create
    GET    /api/snippets                              search (X-Total-Count header)
    GET    /api/snippets/{id}                         read
    PUT    /api/snippets/{id}                         update
    DELETE /api/snippets/{id}                         delete
    POST   /api/snippets/{id}/copy                    record a use
    PUT    /api/snippets/{id}/tags                    replace tag set
    PUT    /api/snippets/{id}/folders                 replace folder set
    DELETE /api/snippets/{id}/folders/{folder_id}     leave one folder

Snippets owned by another user answer 404, exactly like missing ones.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from snipstash.config import settings
from snipstash.database import get_db_session
from snipstash.dependencies import get_current_identity
from snipstash.schemas.common import ErrorResponse
from snipstash.schemas.snippet import (
    FolderAssignment,
    SnippetCreate,
    SnippetPage,
    SnippetResponse,
    SnippetUpdate,
    TagAssignment,
    UsageRequest,
)
from snipstash.schemas.user import Identity
from snipstash.services.search_service import DEFAULT_SORT, search_service
from snipstash.services.snippet_service import snippet_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/snippets", tags=["Snippets"])

NOT_FOUND = {404: {"description": "Snippet not found", "model": ErrorResponse}}


def split_tag_params(values: Optional[List[str]]) -> List[str]:
    """
    Accept both `?tags=go,cli` and `?tags=go&tags=cli`.

    Empty segments (from "go,,cli" or a trailing comma) are passed through as
    blank names so the search layer rejects them with a 400.
    """
    if not values:
        return []
    names: List[str] = []
    for value in values:
        names.extend(value.split(","))
    return names


@router.post(
    "",
    response_model=SnippetResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"description": "A folder was not found", "model": ErrorResponse}},
    summary="Create a snippet",
)
async def create_snippet(
    body: SnippetCreate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> SnippetResponse:
    return await snippet_service.create_snippet(db, identity.id, body)


@router.get(
    "",
    response_model=SnippetPage,
    responses={400: {"description": "Invalid filter or paging argument", "model": ErrorResponse}},
    summary="Search your snippets",
    description=(
        "Filters combine with AND: free text over title/content/description "
        "(case-insensitive), tags (snippet must carry all), exact language, "
        "folder. Pages are one-based."
    ),
)
async def search_snippets(
    response: Response,
    q: Optional[str] = Query(default=None, description="Free-text query"),
    tags: Optional[List[str]] = Query(
        default=None,
        description="Required tags, comma-separated or repeated",
    ),
    language: Optional[str] = Query(default=None, description="Exact language label"),
    folder_id: Optional[UUID] = Query(default=None, description="Only snippets in this folder"),
    page: int = Query(default=1, ge=1, description="One-based page index"),
    page_size: int = Query(
        default=settings.default_page_size,
        ge=1,
        le=settings.max_page_size,
        description="Items per page",
    ),
    sort: str = Query(default=DEFAULT_SORT, description="Sort key"),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> SnippetPage:
    """
    Search the caller's snippets.

    X-Total-Count carries the number of matches across all pages, so a
    client can render "21-40 of 157" without a second request.
    """
    result = await search_service.search(
        db,
        identity.id,
        text_query=q,
        tag_names=split_tag_params(tags),
        language=language,
        folder_id=folder_id,
        page=page,
        page_size=page_size,
        sort=sort,
    )
    response.headers["X-Total-Count"] = str(result.total_count)
    return result


@router.get(
    "/{snippet_id}",
    response_model=SnippetResponse,
    responses=NOT_FOUND,
    summary="Get one snippet",
)
async def get_snippet(
    snippet_id: UUID,
    response: Response,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> SnippetResponse:
    result = await snippet_service.get_snippet(db, identity.id, snippet_id)
    # User-specific and mutable
    response.headers["Cache-Control"] = "private, no-cache"
    return result


@router.put(
    "/{snippet_id}",
    response_model=SnippetResponse,
    responses=NOT_FOUND,
    summary="Update a snippet",
)
async def update_snippet(
    snippet_id: UUID,
    body: SnippetUpdate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> SnippetResponse:
    return await snippet_service.update_snippet(db, identity.id, snippet_id, body)


@router.delete(
    "/{snippet_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=NOT_FOUND,
    summary="Delete a snippet",
)
async def delete_snippet(
    snippet_id: UUID,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await snippet_service.delete_snippet(db, identity.id, snippet_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{snippet_id}/copy",
    response_model=SnippetResponse,
    responses=NOT_FOUND,
    summary="Record that a snippet was used",
)
async def record_usage(
    snippet_id: UUID,
    body: Optional[UsageRequest] = None,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> SnippetResponse:
    action = body.action if body is not None else "copy"
    return await snippet_service.record_usage(db, identity.id, snippet_id, action=action)


@router.put(
    "/{snippet_id}/tags",
    response_model=SnippetResponse,
    responses=NOT_FOUND,
    summary="Replace a snippet's tags",
)
async def attach_tags(
    snippet_id: UUID,
    body: TagAssignment,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> SnippetResponse:
    return await snippet_service.attach_tags(db, identity.id, snippet_id, body.tags)


@router.put(
    "/{snippet_id}/folders",
    response_model=SnippetResponse,
    responses=NOT_FOUND,
    summary="Replace a snippet's folders",
)
async def attach_folders(
    snippet_id: UUID,
    body: FolderAssignment,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> SnippetResponse:
    return await snippet_service.attach_folders(db, identity.id, snippet_id, body.folder_ids)


@router.delete(
    "/{snippet_id}/folders/{folder_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=NOT_FOUND,
    summary="Take a snippet out of a folder",
)
async def remove_from_folder(
    snippet_id: UUID,
    folder_id: UUID,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await snippet_service.remove_snippet_from_folder(db, identity.id, snippet_id, folder_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
