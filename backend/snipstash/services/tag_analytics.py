"""
SnipStash Backend — Tag Analytics
===================================

What:  Per-user tag statistics: most used tags and the user's tag vocabulary.
Who:   GET /api/tags and GET /api/tags/popular.

Tags are shared across users, but every count here only considers snippets
owned by the requesting user. A tag nobody else can see of yours never leaks
into your numbers and vice versa.

Ordering:
    count DESC, then name ASC, so ties always come out alphabetically.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from snipstash.exceptions import InvalidArgumentError, database_errors
from snipstash.models.associations import snippet_tags
from snipstash.models.snippet import Snippet
from snipstash.models.tag import Tag
from snipstash.schemas.tag import TagUsage

logger = logging.getLogger(__name__)


class TagAnalytics:
    """Read-only tag usage counts for one user's snippets."""

    async def tag_usage(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        limit: Optional[int] = None,
    ) -> List[TagUsage]:
        """
        Tags on the user's snippets with the number of distinct snippets
        carrying each, most used first.

        Raises:
            InvalidArgumentError: limit < 1
        """
        if limit is not None and limit < 1:
            raise InvalidArgumentError(message="limit must be a positive integer", field="limit")

        usage = func.count(func.distinct(Snippet.id)).label("usage")
        query = (
            select(Tag.name, usage)
            .join(snippet_tags, snippet_tags.c.tag_id == Tag.id)
            .join(Snippet, Snippet.id == snippet_tags.c.snippet_id)
            .where(Snippet.user_id == user_id)
            .group_by(Tag.id, Tag.name)
            .order_by(usage.desc(), Tag.name.asc())
        )
        if limit is not None:
            query = query.limit(limit)

        with database_errors("compute tag usage", user_id=str(user_id)):
            result = await db.execute(query)
            return [TagUsage(name=name, count=count) for name, count in result.all()]

    async def most_used_tags(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        limit: Optional[int] = None,
    ) -> List[str]:
        """Tag names only, in tag_usage() order."""
        return [entry.name for entry in await self.tag_usage(db, user_id, limit)]

    async def list_tags_for_user(self, db: AsyncSession, user_id: uuid.UUID) -> List[Tag]:
        """Every tag on at least one of the user's snippets, by name."""
        owned = (
            select(snippet_tags.c.tag_id)
            .join(Snippet, Snippet.id == snippet_tags.c.snippet_id)
            .where(Snippet.user_id == user_id)
        )
        with database_errors("list tags", user_id=str(user_id)):
            result = await db.execute(
                select(Tag).where(Tag.id.in_(owned)).order_by(Tag.name.asc())
            )
            return list(result.scalars().all())


tag_analytics = TagAnalytics()
