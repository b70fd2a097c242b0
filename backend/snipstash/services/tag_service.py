"""
SnipStash Backend — Tag Service (Shared Tag Vocabulary)
=========================================================

What:  Find-or-create for tags, full replacement of a snippet's tag set, and
       the batch loader that reads tag names for many snippets at once.
Who:   Called by SnippetService (which performs the ownership checks) and by
       SearchService when it hydrates result pages.

Find-or-create under concurrency:
    Two requests adding the tag "python" at the same moment can both see
    "no such tag" and both INSERT. The UNIQUE constraint on tags.name lets
    exactly one insert succeed.

        lookup ──found──▶ return existing row
          │
        missing
          ▼
        SAVEPOINT; INSERT ──ok──▶ return new row
          │
        IntegrityError → ConflictError
          ▼
        tenacity retries the whole lookup/insert → lookup now finds the
        winner's row

    The SAVEPOINT confines the failed INSERT, so the surrounding request
    transaction (e.g. the snippet being created) survives the conflict.

Tag names are case-sensitive: "Go" and "go" are different tags.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
)

from snipstash.config import settings
from snipstash.exceptions import ConflictError, InvalidArgumentError
from snipstash.models.associations import snippet_tags
from snipstash.models.tag import Tag

logger = logging.getLogger(__name__)

TAG_NAME_MAX_LENGTH = 100


def normalize_tag_names(names: Optional[Iterable[str]], field: str = "tags") -> List[str]:
    """
    Strip, validate and de-duplicate tag names, keeping first-seen order.

    Raises:
        InvalidArgumentError: a name is blank or longer than the column allows
    """
    if not names:
        return []
    seen = set()
    cleaned: List[str] = []
    for raw in names:
        name = (raw or "").strip()
        if not name:
            raise InvalidArgumentError(message="Tag names must not be blank", field=field)
        if len(name) > TAG_NAME_MAX_LENGTH:
            raise InvalidArgumentError(
                message=f"Tag names are limited to {TAG_NAME_MAX_LENGTH} characters",
                field=field,
            )
        if name not in seen:
            seen.add(name)
            cleaned.append(name)
    return cleaned


class TagService:
    """Shared tag vocabulary and the tag sets attached to snippets."""

    async def _lookup(self, db: AsyncSession, name: str) -> Optional[Tag]:
        result = await db.execute(select(Tag).where(Tag.name == name))
        return result.scalar_one_or_none()

    @retry(
        retry=retry_if_exception_type(ConflictError),
        stop=stop_after_attempt(settings.tag_create_max_attempts),
        before_sleep=before_sleep_log(logger, logging.INFO),
        reraise=True,
    )
    async def _find_or_insert(self, db: AsyncSession, name: str) -> Tag:
        existing = await self._lookup(db, name)
        if existing is not None:
            return existing

        tag = Tag(name=name, created_at=datetime.now(timezone.utc))
        try:
            async with db.begin_nested():
                db.add(tag)
        except IntegrityError as e:
            logger.info("Concurrent create of tag '%s' detected; re-reading", name)
            raise ConflictError(
                message=f"Tag '{name}' already exists",
                resource="tag",
                context={"original_error": type(e).__name__},
            )

        logger.debug("Created tag '%s' (%s)", name, tag.id)
        return tag

    async def find_or_create_tag(self, db: AsyncSession, name: str) -> Tag:
        """
        Return the tag called exactly `name`, creating it if needed.

        Never creates a second row for an existing name. A lost creation race
        is resolved by re-reading; ConflictError only escapes if the re-read
        keeps failing for every configured attempt.

        Raises:
            InvalidArgumentError: blank name
        """
        cleaned = normalize_tag_names([name], field="name")
        return await self._find_or_insert(db, cleaned[0])

    async def replace_snippet_tags(
        self,
        db: AsyncSession,
        snippet_id: uuid.UUID,
        tag_names: Sequence[str],
    ) -> List[str]:
        """
        Make the snippet's tag set exactly `tag_names`.

        Tags no longer listed are detached (the Tag rows stay), new ones are
        find-or-created and attached. Runs inside the caller's transaction;
        ownership of the snippet must already have been checked.

        Returns:
            The resulting tag names, sorted
        """
        names = normalize_tag_names(tag_names)

        wanted: Dict[uuid.UUID, str] = {}
        for name in names:
            tag = await self.find_or_create_tag(db, name)
            wanted[tag.id] = tag.name

        result = await db.execute(
            select(snippet_tags.c.tag_id).where(snippet_tags.c.snippet_id == snippet_id)
        )
        current = set(result.scalars().all())

        to_remove = current - wanted.keys()
        to_add = wanted.keys() - current

        if to_remove:
            await db.execute(
                delete(snippet_tags).where(
                    snippet_tags.c.snippet_id == snippet_id,
                    snippet_tags.c.tag_id.in_(to_remove),
                )
            )
        if to_add:
            await db.execute(
                insert(snippet_tags),
                [{"snippet_id": snippet_id, "tag_id": tag_id} for tag_id in to_add],
            )

        logger.debug(
            "Snippet %s tags: +%d -%d (now %d)",
            snippet_id, len(to_add), len(to_remove), len(wanted),
        )
        return sorted(wanted.values())

    async def tag_names_for(
        self,
        db: AsyncSession,
        snippet_ids: Sequence[uuid.UUID],
    ) -> Dict[uuid.UUID, List[str]]:
        """
        Batch-load tag names for many snippets with one query.

        Returns a dict with an entry (possibly empty) for every requested id;
        each list is sorted by name.
        """
        names: Dict[uuid.UUID, List[str]] = {snippet_id: [] for snippet_id in snippet_ids}
        if not snippet_ids:
            return names

        result = await db.execute(
            select(snippet_tags.c.snippet_id, Tag.name)
            .join(Tag, Tag.id == snippet_tags.c.tag_id)
            .where(snippet_tags.c.snippet_id.in_(list(snippet_ids)))
            .order_by(Tag.name)
        )
        for snippet_id, name in result.all():
            names[snippet_id].append(name)
        return names


# ── Singleton Instance ────────────────────────────────────────────────────
tag_service = TagService()
