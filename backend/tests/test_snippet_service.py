"""
SnipStash Backend — Snippet Service Tests
===========================================

What:  Owner-scoped snippet CRUD, tag/folder membership replacement and
       usage recording, against a real (SQLite) database.

What we test:
    ✅ Create stores fields, tags and folders; usage_count starts at 0
    ✅ Other users' snippets behave exactly like missing ones
    ✅ Update changes only supplied fields; tag/folder lists replace
    ✅ attach_tags is an exact replacement and folds duplicates
    ✅ attach_folders rejects folders the user does not own
    ✅ Delete keeps the shared tags
    ✅ record_usage increments and timestamps
    ✅ Auto-tagging merges detected tags when enabled
    ✅ Unexpected database errors become DatabaseError
"""

import uuid
from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from snipstash.config import settings
from snipstash.exceptions import DatabaseError, InvalidArgumentError, NotFoundError
from snipstash.models.associations import snippet_tags
from snipstash.models.tag import Tag
from snipstash.models.usage_log import UsageLog
from snipstash.schemas.snippet import SnippetCreate, SnippetUpdate
from snipstash.services.folder_service import folder_service
from snipstash.services.snippet_service import SnippetService


class TestCreateAndGet:

    def setup_method(self):
        self.service = SnippetService()

    @pytest.mark.asyncio
    async def test_create_snippet(self, db_session, make_user):
        alice = await make_user("alice@example.com")
        folder = await folder_service.create_folder(db_session, alice.id, "Work")

        created = await self.service.create_snippet(
            db_session,
            alice.id,
            SnippetCreate(
                title="  Reverse a list  ",
                content="items[::-1]",
                language="python",
                description="slicing trick",
                tags=["python", "lists", "python"],
                folder_ids=[folder.id],
            ),
        )

        assert created.title == "Reverse a list"
        assert created.user_id == alice.id
        assert created.usage_count == 0
        assert created.last_used_at is None
        assert created.tags == ["lists", "python"]
        assert created.folder_ids == [folder.id]

        fetched = await self.service.get_snippet(db_session, alice.id, created.id)
        assert fetched.id == created.id
        assert fetched.tags == ["lists", "python"]

    @pytest.mark.asyncio
    async def test_get_foreign_snippet_is_not_found(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        bob = await make_user("bob@example.com")
        snippet = await make_snippet(alice, "Alice only")

        with pytest.raises(NotFoundError) as foreign:
            await self.service.get_snippet(db_session, bob.id, snippet.id)
        with pytest.raises(NotFoundError) as missing:
            await self.service.get_snippet(db_session, bob.id, uuid.uuid4())

        assert foreign.value.resource == missing.value.resource == "snippet"

    @pytest.mark.asyncio
    async def test_create_with_foreign_folder_fails(self, db_session, make_user):
        alice = await make_user("alice@example.com")
        bob = await make_user("bob@example.com")
        bobs_folder = await folder_service.create_folder(db_session, bob.id, "Bob's")

        with pytest.raises(NotFoundError):
            await self.service.create_snippet(
                db_session,
                alice.id,
                SnippetCreate(
                    title="t", content="c", language="go", folder_ids=[bobs_folder.id]
                ),
            )

    @pytest.mark.asyncio
    async def test_blank_tag_rejected(self, db_session, make_user):
        alice = await make_user("alice@example.com")

        with pytest.raises(InvalidArgumentError):
            await self.service.create_snippet(
                db_session,
                alice.id,
                SnippetCreate(title="t", content="c", language="go", tags=["go", "  "]),
            )


class TestUpdate:

    def setup_method(self):
        self.service = SnippetService()

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        snippet = await make_snippet(alice, "Old title", description="keep me", tags=["go"])

        updated = await self.service.update_snippet(
            db_session, alice.id, snippet.id, SnippetUpdate(title="New title")
        )

        assert updated.title == "New title"
        assert updated.description == "keep me"
        assert updated.content == snippet.content
        assert updated.tags == ["go"]

    @pytest.mark.asyncio
    async def test_update_replaces_tags_and_clears_description(
        self, db_session, make_user, make_snippet
    ):
        alice = await make_user("alice@example.com")
        snippet = await make_snippet(alice, "T", description="old", tags=["go", "cli"])

        updated = await self.service.update_snippet(
            db_session,
            alice.id,
            snippet.id,
            SnippetUpdate(description=None, tags=["rust"]),
        )

        assert updated.description is None
        assert updated.tags == ["rust"]

    @pytest.mark.asyncio
    async def test_update_foreign_snippet(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        bob = await make_user("bob@example.com")
        snippet = await make_snippet(alice, "T")

        with pytest.raises(NotFoundError):
            await self.service.update_snippet(
                db_session, bob.id, snippet.id, SnippetUpdate(title="hijacked")
            )

        unchanged = await self.service.get_snippet(db_session, alice.id, snippet.id)
        assert unchanged.title == "T"


class TestMemberships:

    def setup_method(self):
        self.service = SnippetService()

    @pytest.mark.asyncio
    async def test_attach_tags_is_exact_replacement(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        snippet = await make_snippet(alice, "T", tags=["a", "b"])

        result = await self.service.attach_tags(
            db_session, alice.id, snippet.id, ["b", "c", "c"]
        )

        assert result.tags == ["b", "c"]
        # The detached tag still exists in the shared vocabulary
        count = await db_session.execute(select(func.count()).select_from(Tag).where(Tag.name == "a"))
        assert count.scalar_one() == 1

    @pytest.mark.asyncio
    async def test_attach_tags_empty_clears(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        snippet = await make_snippet(alice, "T", tags=["a"])

        result = await self.service.attach_tags(db_session, alice.id, snippet.id, [])

        assert result.tags == []

    @pytest.mark.asyncio
    async def test_attach_folders(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        work = await folder_service.create_folder(db_session, alice.id, "Work")
        home = await folder_service.create_folder(db_session, alice.id, "Home")
        snippet = await make_snippet(alice, "T", folder_ids=[work.id])

        result = await self.service.attach_folders(
            db_session, alice.id, snippet.id, [home.id, home.id]
        )

        assert result.folder_ids == [home.id]

    @pytest.mark.asyncio
    async def test_attach_foreign_folder_leaves_membership(
        self, db_session, make_user, make_snippet
    ):
        alice = await make_user("alice@example.com")
        bob = await make_user("bob@example.com")
        work = await folder_service.create_folder(db_session, alice.id, "Work")
        bobs = await folder_service.create_folder(db_session, bob.id, "Bob's")
        snippet = await make_snippet(alice, "T", folder_ids=[work.id])

        with pytest.raises(NotFoundError):
            await self.service.attach_folders(
                db_session, alice.id, snippet.id, [work.id, bobs.id]
            )

        current = await self.service.get_snippet(db_session, alice.id, snippet.id)
        assert current.folder_ids == [work.id]

    @pytest.mark.asyncio
    async def test_remove_snippet_from_folder(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        work = await folder_service.create_folder(db_session, alice.id, "Work")
        snippet = await make_snippet(alice, "T", folder_ids=[work.id])

        await self.service.remove_snippet_from_folder(db_session, alice.id, snippet.id, work.id)

        current = await self.service.get_snippet(db_session, alice.id, snippet.id)
        assert current.folder_ids == []
        with pytest.raises(NotFoundError):
            await self.service.remove_snippet_from_folder(
                db_session, alice.id, snippet.id, work.id
            )


class TestDeleteAndUsage:

    def setup_method(self):
        self.service = SnippetService()

    @pytest.mark.asyncio
    async def test_delete_keeps_tags(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        snippet = await make_snippet(alice, "T", tags=["go"])
        await self.service.record_usage(db_session, alice.id, snippet.id)

        await self.service.delete_snippet(db_session, alice.id, snippet.id)

        with pytest.raises(NotFoundError):
            await self.service.get_snippet(db_session, alice.id, snippet.id)
        tags = await db_session.execute(select(Tag.name))
        assert tags.scalars().all() == ["go"]
        links = await db_session.execute(select(func.count()).select_from(snippet_tags))
        assert links.scalar_one() == 0
        logs = await db_session.execute(select(func.count()).select_from(UsageLog))
        assert logs.scalar_one() == 0

    @pytest.mark.asyncio
    async def test_delete_foreign_snippet(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        bob = await make_user("bob@example.com")
        snippet = await make_snippet(alice, "T")

        with pytest.raises(NotFoundError):
            await self.service.delete_snippet(db_session, bob.id, snippet.id)

    @pytest.mark.asyncio
    async def test_record_usage(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        snippet = await make_snippet(alice, "T")

        await self.service.record_usage(db_session, alice.id, snippet.id)
        result = await self.service.record_usage(db_session, alice.id, snippet.id, action="view")

        assert result.usage_count == 2
        assert result.last_used_at is not None
        actions = await db_session.execute(select(UsageLog.action).order_by(UsageLog.action))
        assert actions.scalars().all() == ["copy", "view"]


class TestAutoTagging:

    @pytest.mark.asyncio
    async def test_detected_tags_merged_on_create(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")

        with patch.object(settings, "auto_tagging_enabled", True):
            snippet = await make_snippet(
                alice,
                "Fetch users",
                content="async function load() { for (const u of users) { await fetch(u) } }",
                language="javascript",
                tags=["Loop", "users"],
            )

        assert "users" in snippet.tags
        assert "Loop" in snippet.tags
        assert "loop" not in snippet.tags
        assert {"async", "API", "function"} <= set(snippet.tags)

    @pytest.mark.asyncio
    async def test_attach_tags_never_auto_tags(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        snippet = await make_snippet(alice, "T", content="for x in xs: pass")

        with patch.object(settings, "auto_tagging_enabled", True):
            result = await SnippetService().attach_tags(db_session, alice.id, snippet.id, ["mine"])

        assert result.tags == ["mine"]


class TestDatabaseErrors:

    @pytest.mark.asyncio
    async def test_operational_error_wrapped(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("gone"))

        with pytest.raises(DatabaseError) as exc_info:
            await SnippetService().get_snippet(mock_db_session, uuid.uuid4(), uuid.uuid4())

        assert exc_info.value.context["error_type"] == "OperationalError"
