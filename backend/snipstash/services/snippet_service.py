"""
SnipStash Backend — Snippet Service (Owner-Scoped Entity Store)
=================================================================

What:  Create, read, update and delete snippets; replace their tag and folder
       memberships; record usage; hydrate snippets with their relations.
Who:   Called by the /api/snippets routes, by FolderService (folder detail)
       and by SearchService (result pages).

Ownership Rule:
    Every public method takes the requesting user's id and every row lookup
    filters on `Snippet.user_id == user_id`. A snippet owned by somebody else
    is reported exactly like a missing one (NotFoundError), so ids cannot be
    probed across accounts.

Relations Are Explicit:
    The Snippet model has no tag/folder attributes. `to_responses()` issues
    one batched query per relation for a whole list of snippets; callers
    that do not need relations skip it.

Timestamps:
    created_at/updated_at are set here, at the point of mutation.
    updated_at moves on create, update and tag replacement. Folder membership
    changes and recorded uses leave it alone.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from sqlalchemy import delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from snipstash.config import settings
from snipstash.exceptions import NotFoundError, database_errors
from snipstash.models.associations import snippet_folders, snippet_tags
from snipstash.models.folder import Folder
from snipstash.models.snippet import Snippet
from snipstash.models.usage_log import UsageLog
from snipstash.schemas.snippet import SnippetCreate, SnippetResponse, SnippetUpdate
from snipstash.services.auto_tagger import auto_tag
from snipstash.services.tag_service import normalize_tag_names, tag_service

logger = logging.getLogger(__name__)


class SnippetService:
    """
    Business logic for snippet persistence.

    Methods flush but never commit: the request's session dependency commits
    once, so multi-step changes (snippet row + tag rows + folder rows) land
    atomically.
    """

    # ── Internal helpers ──────────────────────────────────────────────────

    async def _get_owned(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        snippet_id: uuid.UUID,
    ) -> Snippet:
        result = await db.execute(
            select(Snippet).where(Snippet.id == snippet_id, Snippet.user_id == user_id)
        )
        snippet = result.scalar_one_or_none()
        if snippet is None:
            raise NotFoundError(resource="snippet", resource_id=str(snippet_id))
        return snippet

    async def _ensure_folders_owned(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        folder_ids: Sequence[uuid.UUID],
    ) -> List[uuid.UUID]:
        """De-duplicate `folder_ids`; NotFoundError unless the user owns all of them."""
        unique_ids = list(dict.fromkeys(folder_ids))
        if not unique_ids:
            return []
        result = await db.execute(
            select(Folder.id).where(Folder.id.in_(unique_ids), Folder.user_id == user_id)
        )
        found = set(result.scalars().all())
        if len(found) != len(unique_ids):
            missing = [str(fid) for fid in unique_ids if fid not in found]
            raise NotFoundError(
                resource="folder",
                resource_id=missing[0],
                context={"missing_folder_ids": missing},
            )
        return unique_ids

    async def _replace_folders(
        self,
        db: AsyncSession,
        snippet_id: uuid.UUID,
        folder_ids: Sequence[uuid.UUID],
    ) -> None:
        result = await db.execute(
            select(snippet_folders.c.folder_id).where(snippet_folders.c.snippet_id == snippet_id)
        )
        current = set(result.scalars().all())
        wanted = set(folder_ids)

        to_remove = current - wanted
        to_add = wanted - current
        if to_remove:
            await db.execute(
                delete(snippet_folders).where(
                    snippet_folders.c.snippet_id == snippet_id,
                    snippet_folders.c.folder_id.in_(to_remove),
                )
            )
        if to_add:
            await db.execute(
                insert(snippet_folders),
                [{"snippet_id": snippet_id, "folder_id": folder_id} for folder_id in to_add],
            )

    def _final_tags(
        self,
        manual_tags: Sequence[str],
        content: str,
        description: Optional[str],
    ) -> List[str]:
        names = normalize_tag_names(manual_tags)
        if settings.auto_tagging_enabled:
            return auto_tag(content, names, description)
        return names

    # ── Relation loaders ──────────────────────────────────────────────────

    async def folder_ids_for(
        self,
        db: AsyncSession,
        snippet_ids: Sequence[uuid.UUID],
    ) -> Dict[uuid.UUID, List[uuid.UUID]]:
        """Batch-load folder membership for many snippets with one query."""
        folders: Dict[uuid.UUID, List[uuid.UUID]] = {snippet_id: [] for snippet_id in snippet_ids}
        if not snippet_ids:
            return folders
        result = await db.execute(
            select(snippet_folders.c.snippet_id, snippet_folders.c.folder_id)
            .where(snippet_folders.c.snippet_id.in_(list(snippet_ids)))
            .order_by(snippet_folders.c.folder_id)
        )
        for snippet_id, folder_id in result.all():
            folders[snippet_id].append(folder_id)
        return folders

    async def to_responses(
        self,
        db: AsyncSession,
        snippets: Sequence[Snippet],
        include_relations: bool = True,
    ) -> List[SnippetResponse]:
        """
        Convert ORM snippets to responses, preserving order.

        With include_relations, tag names and folder ids are fetched in two
        batched queries for the whole list; without it both lists are empty.
        """
        ids = [snippet.id for snippet in snippets]
        tags: Dict[uuid.UUID, List[str]] = {}
        folders: Dict[uuid.UUID, List[uuid.UUID]] = {}
        if include_relations and ids:
            tags = await tag_service.tag_names_for(db, ids)
            folders = await self.folder_ids_for(db, ids)

        responses = []
        for snippet in snippets:
            response = SnippetResponse.model_validate(snippet)
            response.tags = tags.get(snippet.id, [])
            response.folder_ids = folders.get(snippet.id, [])
            responses.append(response)
        return responses

    async def _to_response(self, db: AsyncSession, snippet: Snippet) -> SnippetResponse:
        return (await self.to_responses(db, [snippet]))[0]

    # ── CRUD ──────────────────────────────────────────────────────────────

    async def get_snippet(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        snippet_id: uuid.UUID,
    ) -> SnippetResponse:
        """
        Retrieve one of the user's snippets with its tags and folders.

        Raises:
            NotFoundError: no such snippet, or it belongs to another user
        """
        with database_errors("retrieve the snippet", snippet_id=str(snippet_id)):
            snippet = await self._get_owned(db, user_id, snippet_id)
            return await self._to_response(db, snippet)

    async def create_snippet(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        data: SnippetCreate,
    ) -> SnippetResponse:
        """
        Create a snippet owned by `user_id`.

        Workflow:
            1. Verify every requested folder belongs to the user
            2. Insert the snippet (usage_count = 0, both timestamps = now)
            3. Attach manual + auto-detected tags via find-or-create
            4. Attach folders

        Raises:
            NotFoundError: a folder id is unknown or not owned
            InvalidArgumentError: a blank tag name
        """
        with database_errors("create the snippet", user_id=str(user_id)):
            folder_ids = await self._ensure_folders_owned(db, user_id, data.folder_ids)
            final_tags = self._final_tags(data.tags, data.content, data.description)

            now = datetime.now(timezone.utc)
            snippet = Snippet(
                user_id=user_id,
                title=data.title,
                content=data.content,
                language=data.language,
                description=data.description,
                usage_count=0,
                created_at=now,
                updated_at=now,
            )
            db.add(snippet)
            await db.flush()

            await tag_service.replace_snippet_tags(db, snippet.id, final_tags)
            await self._replace_folders(db, snippet.id, folder_ids)

            logger.info(
                "Snippet %s created for user %s with %d tags",
                snippet.id, user_id, len(final_tags),
            )
            return await self._to_response(db, snippet)

    async def update_snippet(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        snippet_id: uuid.UUID,
        data: SnippetUpdate,
    ) -> SnippetResponse:
        """
        Update a snippet in place.

        Only fields present in the request change. A supplied tag list
        replaces the tag set (auto-detected tags merged in); a supplied
        folder list replaces the folder membership. The owner never changes.

        Raises:
            NotFoundError: snippet or one of the folders is not the user's
        """
        with database_errors("update the snippet", snippet_id=str(snippet_id)):
            snippet = await self._get_owned(db, user_id, snippet_id)
            provided = data.model_fields_set

            if data.folder_ids is not None:
                folder_ids = await self._ensure_folders_owned(db, user_id, data.folder_ids)

            if data.title is not None:
                snippet.title = data.title
            if data.content is not None:
                snippet.content = data.content
            if data.language is not None:
                snippet.language = data.language
            if "description" in provided:
                snippet.description = data.description

            if data.tags is not None:
                final_tags = self._final_tags(data.tags, snippet.content, snippet.description)
                await tag_service.replace_snippet_tags(db, snippet.id, final_tags)
            if data.folder_ids is not None:
                await self._replace_folders(db, snippet.id, folder_ids)

            snippet.updated_at = datetime.now(timezone.utc)
            await db.flush()

            logger.info("Snippet %s updated (fields: %s)", snippet.id, sorted(provided))
            return await self._to_response(db, snippet)

    async def delete_snippet(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        snippet_id: uuid.UUID,
    ) -> None:
        """
        Delete a snippet with its tag links, folder links and usage logs.

        Tags and folders themselves are untouched.
        """
        with database_errors("delete the snippet", snippet_id=str(snippet_id)):
            snippet = await self._get_owned(db, user_id, snippet_id)

            await db.execute(delete(snippet_tags).where(snippet_tags.c.snippet_id == snippet.id))
            await db.execute(delete(snippet_folders).where(snippet_folders.c.snippet_id == snippet.id))
            await db.execute(delete(UsageLog).where(UsageLog.snippet_id == snippet.id))
            await db.delete(snippet)
            await db.flush()

            logger.info("Snippet %s deleted by user %s", snippet_id, user_id)

    # ── Memberships ───────────────────────────────────────────────────────

    async def attach_tags(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        snippet_id: uuid.UUID,
        tag_names: Sequence[str],
    ) -> SnippetResponse:
        """
        Set the snippet's tags to exactly `tag_names` (full replace).

        Duplicate names fold; each name is find-or-created. No auto-detected
        tags are added here.
        """
        with database_errors("update the snippet's tags", snippet_id=str(snippet_id)):
            snippet = await self._get_owned(db, user_id, snippet_id)
            await tag_service.replace_snippet_tags(db, snippet.id, tag_names)
            snippet.updated_at = datetime.now(timezone.utc)
            await db.flush()
            return await self._to_response(db, snippet)

    async def attach_folders(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        snippet_id: uuid.UUID,
        folder_ids: Sequence[uuid.UUID],
    ) -> SnippetResponse:
        """
        Set the snippet's folders to exactly `folder_ids` (full replace).

        Raises:
            NotFoundError: the snippet or any folder is not the user's; in that
                case membership is left unchanged
        """
        with database_errors("update the snippet's folders", snippet_id=str(snippet_id)):
            snippet = await self._get_owned(db, user_id, snippet_id)
            wanted = await self._ensure_folders_owned(db, user_id, folder_ids)
            await self._replace_folders(db, snippet.id, wanted)
            return await self._to_response(db, snippet)

    async def remove_snippet_from_folder(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        snippet_id: uuid.UUID,
        folder_id: uuid.UUID,
    ) -> None:
        """
        Take one snippet out of one folder.

        Raises:
            NotFoundError: snippet or folder not the user's, or the snippet
                is not in that folder
        """
        with database_errors("remove the snippet from the folder", snippet_id=str(snippet_id)):
            await self._get_owned(db, user_id, snippet_id)
            await self._ensure_folders_owned(db, user_id, [folder_id])

            result = await db.execute(
                delete(snippet_folders).where(
                    snippet_folders.c.snippet_id == snippet_id,
                    snippet_folders.c.folder_id == folder_id,
                )
            )
            if result.rowcount == 0:
                raise NotFoundError(
                    resource="folder membership",
                    context={"snippet_id": str(snippet_id), "folder_id": str(folder_id)},
                )

    # ── Usage ─────────────────────────────────────────────────────────────

    async def record_usage(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        snippet_id: uuid.UUID,
        action: str = "copy",
    ) -> SnippetResponse:
        """
        Count one use of a snippet.

        The increment is a single UPDATE ... SET usage_count = usage_count + 1,
        so concurrent uses are never lost. A UsageLog row records the action.
        """
        with database_errors("record snippet usage", snippet_id=str(snippet_id)):
            snippet = await self._get_owned(db, user_id, snippet_id)
            now = datetime.now(timezone.utc)

            await db.execute(
                update(Snippet)
                .where(Snippet.id == snippet.id, Snippet.user_id == user_id)
                .values(usage_count=Snippet.usage_count + 1, last_used_at=now)
                .execution_options(synchronize_session=False)
            )
            db.add(UsageLog(snippet_id=snippet.id, user_id=user_id, action=action, created_at=now))
            await db.flush()
            await db.refresh(snippet)

            logger.info("Snippet %s used (%s), count=%d", snippet.id, action, snippet.usage_count)
            return await self._to_response(db, snippet)


# ── Singleton Instance ────────────────────────────────────────────────────
snippet_service = SnippetService()
