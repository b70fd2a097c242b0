"""
SnipStash Backend — Folder Service
====================================

What:  CRUD for user-owned folders.
Who:   Called by the /api/folders routes.

Folder names are unique per user (two users may both have "Work"). The name
check runs before the INSERT so the common case returns a clean 409; the
UNIQUE constraint still catches a concurrent duplicate, which is mapped to
the same ConflictError.

Deleting a folder removes its membership rows only. The snippets that were
in it are kept.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from snipstash.exceptions import ConflictError, NotFoundError, database_errors
from snipstash.models.associations import snippet_folders
from snipstash.models.folder import Folder
from snipstash.models.snippet import Snippet
from snipstash.schemas.folder import FolderDetailResponse, FolderResponse, FolderUpdate
from snipstash.services.snippet_service import snippet_service

logger = logging.getLogger(__name__)


class FolderService:
    """Folder CRUD scoped to the owning user. Flushes; the caller commits."""

    async def _get_owned(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        folder_id: uuid.UUID,
    ) -> Folder:
        result = await db.execute(
            select(Folder).where(Folder.id == folder_id, Folder.user_id == user_id)
        )
        folder = result.scalar_one_or_none()
        if folder is None:
            raise NotFoundError(resource="folder", resource_id=str(folder_id))
        return folder

    async def _ensure_name_free(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        name: str,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        query = select(Folder.id).where(Folder.user_id == user_id, Folder.name == name)
        if exclude_id is not None:
            query = query.where(Folder.id != exclude_id)
        result = await db.execute(query)
        if result.first() is not None:
            raise ConflictError(
                message=f"A folder named '{name}' already exists",
                resource="folder",
            )

    async def _flush_unique(self, db: AsyncSession, name: str, new: Optional[Folder] = None) -> None:
        try:
            async with db.begin_nested():
                if new is not None:
                    db.add(new)
                await db.flush()
        except IntegrityError:
            raise ConflictError(
                message=f"A folder named '{name}' already exists",
                resource="folder",
            )

    async def create_folder(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        name: str,
        description: Optional[str] = None,
    ) -> FolderResponse:
        """
        Create a folder for the user.

        Raises:
            ConflictError: the user already has a folder with this name
        """
        with database_errors("create the folder", user_id=str(user_id)):
            await self._ensure_name_free(db, user_id, name)

            now = datetime.now(timezone.utc)
            folder = Folder(
                user_id=user_id,
                name=name,
                description=description,
                created_at=now,
                updated_at=now,
            )
            await self._flush_unique(db, name, new=folder)

            logger.info("Folder %s ('%s') created for user %s", folder.id, name, user_id)
            return FolderResponse.model_validate(folder)

    async def list_folders(self, db: AsyncSession, user_id: uuid.UUID) -> List[FolderResponse]:
        """The user's folders, ordered by name."""
        with database_errors("list folders", user_id=str(user_id)):
            result = await db.execute(
                select(Folder).where(Folder.user_id == user_id).order_by(Folder.name, Folder.id)
            )
            return [FolderResponse.model_validate(folder) for folder in result.scalars().all()]

    async def get_folder(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        folder_id: uuid.UUID,
        include_snippets: bool = False,
    ) -> FolderDetailResponse:
        """
        Retrieve a folder, optionally with its snippets (most recently
        updated first, each with tags and folder ids).

        Raises:
            NotFoundError: missing, or owned by another user
        """
        with database_errors("retrieve the folder", folder_id=str(folder_id)):
            folder = await self._get_owned(db, user_id, folder_id)
            detail = FolderDetailResponse.model_validate(folder)

            if include_snippets:
                result = await db.execute(
                    select(Snippet)
                    .join(snippet_folders, snippet_folders.c.snippet_id == Snippet.id)
                    .where(
                        snippet_folders.c.folder_id == folder.id,
                        Snippet.user_id == user_id,
                    )
                    .order_by(Snippet.updated_at.desc(), Snippet.id.asc())
                )
                detail.snippets = await snippet_service.to_responses(db, result.scalars().all())

            return detail

    async def update_folder(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        folder_id: uuid.UUID,
        data: FolderUpdate,
    ) -> FolderResponse:
        """
        Rename and/or redescribe a folder. Fields absent from `data` are left
        as they are.

        Raises:
            NotFoundError: missing, or owned by another user
            ConflictError: another of the user's folders already has the new name
        """
        provided = data.model_fields_set

        with database_errors("update the folder", folder_id=str(folder_id)):
            folder = await self._get_owned(db, user_id, folder_id)
            if data.name is not None and data.name != folder.name:
                await self._ensure_name_free(db, user_id, data.name, exclude_id=folder.id)
                folder.name = data.name
            if "description" in provided:
                folder.description = data.description

            folder.updated_at = datetime.now(timezone.utc)
            await self._flush_unique(db, folder.name)

            logger.info("Folder %s updated", folder.id)
            return FolderResponse.model_validate(folder)

    async def delete_folder(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        folder_id: uuid.UUID,
    ) -> None:
        """Delete a folder. Its snippets stay; only their membership rows go."""
        with database_errors("delete the folder", folder_id=str(folder_id)):
            folder = await self._get_owned(db, user_id, folder_id)
            await db.execute(delete(snippet_folders).where(snippet_folders.c.folder_id == folder.id))
            await db.delete(folder)
            await db.flush()
            logger.info("Folder %s deleted by user %s", folder_id, user_id)


# ── Singleton Instance ────────────────────────────────────────────────────
folder_service = FolderService()
