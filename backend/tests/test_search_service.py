"""
SnipStash Backend — Search Service Tests
==========================================

What we test:
    ✅ Tag intersection: every requested tag must be present, duplicates fold
    ✅ Free text is case-insensitive over title, content and description
    ✅ LIKE wildcards in the query match literally
    ✅ Language is exact; folder filter respects ownership
    ✅ No cross-user leakage for any filter combination
    ✅ Pages partition the result set; ties break by id
    ✅ Every sort key
    ✅ Invalid arguments raise InvalidArgumentError
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import update

from snipstash.exceptions import InvalidArgumentError
from snipstash.models.snippet import Snippet
from snipstash.services.folder_service import folder_service
from snipstash.services.search_service import SearchService


def ids(page):
    return [item.id for item in page.items]


async def set_columns(db, snippet_id, **values):
    await db.execute(update(Snippet).where(Snippet.id == snippet_id).values(**values))


class TestTagIntersection:

    def setup_method(self):
        self.service = SearchService()

    @pytest.mark.asyncio
    async def test_reference_example(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        s1 = await make_snippet(alice, "S1", tags=["a", "b"])
        s2 = await make_snippet(alice, "S2", tags=["a"])
        s3 = await make_snippet(alice, "S3", tags=["b", "c"])

        only_a = await self.service.search(db_session, alice.id, tag_names=["a"])
        a_and_b = await self.service.search(db_session, alice.id, tag_names=["a", "b"])
        unknown = await self.service.search(db_session, alice.id, tag_names=["z"])

        assert set(ids(only_a)) == {s1.id, s2.id}
        assert ids(a_and_b) == [s1.id]
        assert unknown.items == [] and unknown.total_count == 0
        assert s3.id not in ids(only_a)

    @pytest.mark.asyncio
    async def test_supersets_only_and_duplicates_fold(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        both = await make_snippet(alice, "both", tags=["go", "cli"])
        more = await make_snippet(alice, "more", tags=["go", "cli", "http"])
        await make_snippet(alice, "go only", tags=["go"])
        await make_snippet(alice, "cli only", tags=["cli"])

        plain = await self.service.search(db_session, alice.id, tag_names=["go", "cli"])
        duplicated = await self.service.search(db_session, alice.id, tag_names=["go", "cli", "cli"])

        assert set(ids(plain)) == {both.id, more.id}
        assert ids(duplicated) == ids(plain)
        assert duplicated.total_count == plain.total_count == 2

    @pytest.mark.asyncio
    async def test_tag_names_are_case_sensitive(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        await make_snippet(alice, "T", tags=["Go"])

        result = await self.service.search(db_session, alice.id, tag_names=["go"])

        assert result.total_count == 0


class TestTextAndFilters:

    def setup_method(self):
        self.service = SearchService()

    @pytest.mark.asyncio
    async def test_case_insensitive_text(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        in_content = await make_snippet(alice, "Counting", content="m = new hashmap<>()")
        in_title = await make_snippet(alice, "HASHMAP basics", content="x")
        in_description = await make_snippet(
            alice, "Lookup", content="y", description="uses a HashMap internally"
        )
        await make_snippet(alice, "Unrelated", content="z")

        result = await self.service.search(db_session, alice.id, text_query="HashMap")

        assert set(ids(result)) == {in_content.id, in_title.id, in_description.id}

    @pytest.mark.asyncio
    async def test_wildcards_match_literally(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        percent = await make_snippet(alice, "Progress", content="print('100% done')")
        await make_snippet(alice, "Other", content="print('1000 done')")

        result = await self.service.search(db_session, alice.id, text_query="100%")
        underscore = await self.service.search(db_session, alice.id, text_query="1_0")

        assert ids(result) == [percent.id]
        assert underscore.total_count == 0

    @pytest.mark.asyncio
    async def test_blank_text_is_no_filter(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        await make_snippet(alice, "A")
        await make_snippet(alice, "B")

        result = await self.service.search(db_session, alice.id, text_query="   ")

        assert result.total_count == 2

    @pytest.mark.asyncio
    async def test_language_exact(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        go = await make_snippet(alice, "A", language="go")
        await make_snippet(alice, "B", language="Go")
        await make_snippet(alice, "C", language="golang")

        result = await self.service.search(db_session, alice.id, language="go")

        assert ids(result) == [go.id]

    @pytest.mark.asyncio
    async def test_folder_filter(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        bob = await make_user("bob@example.com")
        work = await folder_service.create_folder(db_session, alice.id, "Work")
        filed = await make_snippet(alice, "Filed", folder_ids=[work.id])
        await make_snippet(alice, "Loose")

        mine = await self.service.search(db_session, alice.id, folder_id=work.id)
        theirs = await self.service.search(db_session, bob.id, folder_id=work.id)

        assert ids(mine) == [filed.id]
        assert theirs.total_count == 0

    @pytest.mark.asyncio
    async def test_filters_combine(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        match = await make_snippet(alice, "Parse flags", language="go", tags=["cli"])
        await make_snippet(alice, "Parse flags", language="python", tags=["cli"])
        await make_snippet(alice, "Parse flags", language="go", tags=["http"])
        await make_snippet(alice, "Serve", language="go", tags=["cli"])

        result = await self.service.search(
            db_session, alice.id, text_query="parse", tag_names=["cli"], language="go"
        )

        assert ids(result) == [match.id]


class TestOwnership:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "filters",
        [
            {},
            {"text_query": "shared"},
            {"tag_names": ["common"]},
            {"language": "python"},
            {"text_query": "shared", "tag_names": ["common"], "language": "python"},
        ],
    )
    async def test_no_cross_user_leakage(self, db_session, make_user, make_snippet, filters):
        alice = await make_user("alice@example.com")
        bob = await make_user("bob@example.com")
        mine = await make_snippet(alice, "shared title", tags=["common"])
        await make_snippet(bob, "shared title", tags=["common"])
        await make_snippet(bob, "shared again", tags=["common", "extra"])

        result = await SearchService().search(db_session, alice.id, **filters)

        assert ids(result) == [mine.id]
        assert all(item.user_id == alice.id for item in result.items)
        assert result.total_count == 1


class TestPaginationAndSorting:

    def setup_method(self):
        self.service = SearchService()

    @pytest.mark.asyncio
    async def test_pages_partition_results(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        created = [await make_snippet(alice, f"Snippet {i}") for i in range(7)]

        seen = []
        pages = []
        for page_number in (1, 2, 3):
            page = await self.service.search(db_session, alice.id, page=page_number, page_size=3)
            pages.append(page)
            seen.extend(ids(page))

        assert [len(p.items) for p in pages] == [3, 3, 1]
        assert [p.has_more for p in pages] == [True, True, False]
        assert all(p.total_count == 7 for p in pages)
        assert len(seen) == len(set(seen)) == 7
        assert set(seen) == {s.id for s in created}

        beyond = await self.service.search(db_session, alice.id, page=4, page_size=3)
        assert beyond.items == [] and beyond.total_count == 7 and beyond.has_more is False

    @pytest.mark.asyncio
    async def test_ties_break_by_id(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        created = [await make_snippet(alice, f"S{i}") for i in range(5)]
        same_moment = datetime(2026, 1, 1, tzinfo=timezone.utc)
        for snippet in created:
            await set_columns(db_session, snippet.id, updated_at=same_moment)

        result = await self.service.search(db_session, alice.id)

        assert ids(result) == sorted(s.id for s in created)

    @pytest.mark.asyncio
    async def test_default_sort_most_recently_updated(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        old = await make_snippet(alice, "old")
        new = await make_snippet(alice, "new")
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        await set_columns(db_session, old.id, updated_at=base)
        await set_columns(db_session, new.id, updated_at=base + timedelta(days=1))

        result = await self.service.search(db_session, alice.id)

        assert ids(result) == [new.id, old.id]

    @pytest.mark.asyncio
    async def test_title_and_usage_sorts(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        b = await make_snippet(alice, "Bravo")
        a = await make_snippet(alice, "Alpha")
        c = await make_snippet(alice, "Charlie")
        await set_columns(db_session, a.id, usage_count=1)
        await set_columns(db_session, c.id, usage_count=5)

        by_title = await self.service.search(db_session, alice.id, sort="title_asc")
        by_usage = await self.service.search(db_session, alice.id, sort="usage_count_desc")

        assert ids(by_title) == [a.id, b.id, c.id]
        assert ids(by_usage) == [c.id, a.id, b.id]

    @pytest.mark.asyncio
    async def test_last_used_puts_never_used_last(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        never = await make_snippet(alice, "never")
        earlier = await make_snippet(alice, "earlier")
        later = await make_snippet(alice, "later")
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        await set_columns(db_session, earlier.id, last_used_at=base)
        await set_columns(db_session, later.id, last_used_at=base + timedelta(hours=1))

        result = await self.service.search(db_session, alice.id, sort="last_used_at_desc")

        assert ids(result) == [later.id, earlier.id, never.id]

    @pytest.mark.asyncio
    async def test_without_relations(self, db_session, make_user, make_snippet):
        alice = await make_user("alice@example.com")
        await make_snippet(alice, "T", tags=["go"])

        result = await self.service.search(db_session, alice.id, include_relations=False)

        assert result.items[0].tags == []


class TestInvalidArguments:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kwargs, field",
        [
            ({"page": 0}, "page"),
            ({"page_size": 0}, "page_size"),
            ({"sort": "popularity"}, "sort"),
            ({"language": ""}, "language"),
            ({"tag_names": ["go", " "]}, "tags"),
        ],
    )
    async def test_rejected(self, db_session, make_user, kwargs, field):
        alice = await make_user("alice@example.com")

        with pytest.raises(InvalidArgumentError) as exc_info:
            await SearchService().search(db_session, alice.id, **kwargs)

        assert exc_info.value.field == field

    @pytest.mark.asyncio
    async def test_empty_result_is_not_an_error(self, db_session, make_user):
        alice = await make_user("alice@example.com")

        result = await SearchService().search(db_session, alice.id, text_query="nothing")

        assert result.items == []
        assert result.total_count == 0
        assert result.has_more is False
