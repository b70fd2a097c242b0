"""
SnipStash Backend — Folder Route Handlers
===========================================

What:  POST/GET /api/folders and GET/PATCH/DELETE /api/folders/{id}.
Who:   Called by the frontend sidebar and folder views.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from snipstash.database import get_db_session
from snipstash.dependencies import get_current_identity
from snipstash.schemas.common import ErrorResponse
from snipstash.schemas.folder import (
    FolderCreate,
    FolderDetailResponse,
    FolderResponse,
    FolderUpdate,
)
from snipstash.schemas.user import Identity
from snipstash.services.folder_service import folder_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/folders", tags=["Folders"])

NOT_FOUND = {404: {"description": "Folder not found", "model": ErrorResponse}}
CONFLICT = {409: {"description": "Folder name already in use", "model": ErrorResponse}}


@router.post(
    "",
    response_model=FolderResponse,
    status_code=status.HTTP_201_CREATED,
    responses=CONFLICT,
    summary="Create a folder",
)
async def create_folder(
    body: FolderCreate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> FolderResponse:
    return await folder_service.create_folder(db, identity.id, body.name, body.description)


@router.get("", response_model=List[FolderResponse], summary="List your folders")
async def list_folders(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> List[FolderResponse]:
    return await folder_service.list_folders(db, identity.id)


@router.get(
    "/{folder_id}",
    response_model=FolderDetailResponse,
    responses=NOT_FOUND,
    summary="Get a folder",
)
async def get_folder(
    folder_id: UUID,
    include_snippets: bool = Query(default=False, description="Embed the folder's snippets"),
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> FolderDetailResponse:
    return await folder_service.get_folder(
        db, identity.id, folder_id, include_snippets=include_snippets
    )


@router.patch(
    "/{folder_id}",
    response_model=FolderResponse,
    responses={**NOT_FOUND, **CONFLICT},
    summary="Rename a folder",
)
async def update_folder(
    folder_id: UUID,
    body: FolderUpdate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> FolderResponse:
    return await folder_service.update_folder(db, identity.id, folder_id, body)


@router.delete(
    "/{folder_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=NOT_FOUND,
    summary="Delete a folder (its snippets are kept)",
)
async def delete_folder(
    folder_id: UUID,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await folder_service.delete_folder(db, identity.id, folder_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
