"""
SnipStash Backend — Search Service
====================================

What:  Owner-scoped, filtered, sorted, paginated snippet search.
Who:   GET /api/snippets.

Filters (all ANDed, every one optional except ownership):
    ownership    snippets.user_id = :user_id
    text         title / content / description ILIKE %q% (wildcards escaped)
    tags         snippet carries EVERY requested tag
    language     exact, case-sensitive
    folder       snippet is in the folder, and the folder is the user's

Tag intersection:
    SELECT snippet_id FROM snippet_tags JOIN tags
    WHERE tags.name IN (:names)
    GROUP BY snippet_id
    HAVING COUNT(DISTINCT tags.id) = :n

    Requested names are de-duplicated first, so ["go", "cli", "cli"] and
    ["go", "cli"] select the same rows.

Paging:
    One-based. The count query and the page query share the same WHERE
    clause; every sort ends with id ASC so offsets are stable and the union
    of all pages is the full result set with no repeats.
"""

import logging
import uuid
from typing import Dict, List, Optional, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from snipstash.exceptions import InvalidArgumentError, database_errors
from snipstash.models.associations import snippet_folders, snippet_tags
from snipstash.models.folder import Folder
from snipstash.models.snippet import Snippet
from snipstash.models.tag import Tag
from snipstash.schemas.snippet import SnippetPage
from snipstash.services.snippet_service import snippet_service
from snipstash.services.tag_service import normalize_tag_names

logger = logging.getLogger(__name__)


# ── Sort keys ─────────────────────────────────────────────────────────────
# Every ordering is completed with Snippet.id ASC in _order_by().
SORT_ORDERS: Dict[str, list] = {
    "updated_at_desc": [Snippet.updated_at.desc()],
    "created_at_desc": [Snippet.created_at.desc()],
    "usage_count_desc": [Snippet.usage_count.desc()],
    "last_used_at_desc": [Snippet.last_used_at.desc().nulls_last()],
    "title_asc": [Snippet.title.asc()],
}

DEFAULT_SORT = "updated_at_desc"


class SearchService:
    """Owner-scoped snippet search with text, tag, language and folder filters."""

    def _validate(
        self,
        page: int,
        page_size: int,
        sort: str,
        language: Optional[str],
    ) -> None:
        if page < 1:
            raise InvalidArgumentError(message="page must be a positive integer", field="page")
        if page_size < 1:
            raise InvalidArgumentError(
                message="page_size must be a positive integer", field="page_size"
            )
        if sort not in SORT_ORDERS:
            raise InvalidArgumentError(
                message=f"Unknown sort key '{sort}'",
                field="sort",
                context={"allowed": sorted(SORT_ORDERS)},
            )
        if language is not None and not language.strip():
            raise InvalidArgumentError(message="language must not be empty", field="language")

    def _conditions(
        self,
        user_id: uuid.UUID,
        text_query: Optional[str],
        tag_names: List[str],
        language: Optional[str],
        folder_id: Optional[uuid.UUID],
    ) -> list:
        conditions = [Snippet.user_id == user_id]

        text = (text_query or "").strip()
        if text:
            conditions.append(
                or_(
                    Snippet.title.icontains(text, autoescape=True),
                    Snippet.content.icontains(text, autoescape=True),
                    Snippet.description.icontains(text, autoescape=True),
                )
            )

        if tag_names:
            tagged = (
                select(snippet_tags.c.snippet_id)
                .join(Tag, Tag.id == snippet_tags.c.tag_id)
                .where(Tag.name.in_(tag_names))
                .group_by(snippet_tags.c.snippet_id)
                .having(func.count(func.distinct(Tag.id)) == len(tag_names))
            )
            conditions.append(Snippet.id.in_(tagged))

        if language is not None:
            conditions.append(Snippet.language == language)

        if folder_id is not None:
            in_folder = (
                select(snippet_folders.c.snippet_id)
                .join(Folder, Folder.id == snippet_folders.c.folder_id)
                .where(Folder.id == folder_id, Folder.user_id == user_id)
            )
            conditions.append(Snippet.id.in_(in_folder))

        return conditions

    def _order_by(self, sort: str) -> list:
        return [*SORT_ORDERS[sort], Snippet.id.asc()]

    async def search(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        text_query: Optional[str] = None,
        tag_names: Optional[Sequence[str]] = None,
        language: Optional[str] = None,
        folder_id: Optional[uuid.UUID] = None,
        page: int = 1,
        page_size: int = 20,
        sort: str = DEFAULT_SORT,
        include_relations: bool = True,
    ) -> SnippetPage:
        """
        Search the user's snippets.

        Args:
            text_query: Free text; blank means "no text filter"
            tag_names: Snippets must carry all of these (case-sensitive names)
            language: Exact language label
            folder_id: Only snippets filed in this folder
            page: One-based page index
            page_size: Maximum items per page
            sort: One of SORT_ORDERS
            include_relations: Load tag names and folder ids for each item

        Raises:
            InvalidArgumentError: bad paging, unknown sort key, empty
                language, blank tag name
        """
        self._validate(page, page_size, sort, language)
        names = normalize_tag_names(tag_names)
        conditions = self._conditions(user_id, text_query, names, language, folder_id)

        with database_errors("search snippets", user_id=str(user_id)):
            count_result = await db.execute(
                select(func.count()).select_from(Snippet).where(*conditions)
            )
            total_count = count_result.scalar_one()

            snippets: Sequence[Snippet] = []
            offset = (page - 1) * page_size
            if offset < total_count:
                result = await db.execute(
                    select(Snippet)
                    .where(*conditions)
                    .order_by(*self._order_by(sort))
                    .offset(offset)
                    .limit(page_size)
                )
                snippets = result.scalars().all()

            items = await snippet_service.to_responses(
                db, snippets, include_relations=include_relations
            )

        logger.debug(
            "Search for user %s: q=%r tags=%s language=%s folder=%s -> %d total",
            user_id, text_query, names, language, folder_id, total_count,
        )
        return SnippetPage(
            items=items,
            total_count=total_count,
            page=page,
            page_size=page_size,
            has_more=offset + len(items) < total_count,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
search_service = SearchService()
