"""Tests for blog derived fields and engagement toggles."""

from uuid import UUID, uuid4

import pytest

from inkwell.blogs.engagement import toggle_engagement, toggle_member
from inkwell.blogs.models import compute_read_time, normalize_tags, slugify
from inkwell.core.exceptions import ConflictError
from tests.fakes import InMemoryCollection, blog_document


class TestDerivedFields:
    @pytest.mark.parametrize(
        ("title", "expected"),
        [
            ("Hello World", "hello-world"),
            ("  UI/UX: Tips & Tricks!  ", "ui-ux-tips-tricks"),
            ("Python 3.12 is out", "python-3-12-is-out"),
            ("!!!", ""),
        ],
    )
    def test_slugify(self, title: str, expected: str) -> None:
        assert slugify(title) == expected

    def test_normalize_tags_from_string(self) -> None:
        assert normalize_tags(" Python, fastapi ,,PYTHON ") == {"python", "fastapi"}

    def test_normalize_tags_from_list(self) -> None:
        assert normalize_tags(["A", " b ", ""]) == {"a", "b"}
        assert normalize_tags(None) == set()

    @pytest.mark.parametrize(
        ("words", "minutes"), [(0, 1), (1, 1), (200, 1), (201, 2), (1000, 5)]
    )
    def test_read_time(self, words: int, minutes: int) -> None:
        assert compute_read_time(" ".join(["word"] * words)) == minutes


class TestToggleMember:
    def test_add_then_remove(self) -> None:
        user = uuid4()

        changes, added = toggle_member({"likes": None}, "likes", "likes_count", user)
        _, removed = toggle_member(changes, "likes", "likes_count", user)

        assert (added.member, added.count) == (True, 1)
        assert (removed.member, removed.count) == (False, 0)

    def test_count_follows_map_not_cached_value(self) -> None:
        document = {"likes": {uuid4(): None}, "likes_count": 7}

        changes, result = toggle_member(document, "likes", "likes_count", uuid4())

        assert result.count == 2
        assert changes["likes_count"] == 2

    def test_input_document_is_not_mutated(self) -> None:
        members = {uuid4(): None}
        toggle_member({"likes": members}, "likes", "likes_count", uuid4())
        assert len(members) == 1


class TestToggleEngagement:
    @pytest.fixture
    def blog_id(self, blogs: InMemoryCollection) -> UUID:
        return blogs.put(blog_document(uuid4()))["id"]

    @pytest.mark.asyncio
    async def test_two_users(self, blogs: InMemoryCollection, blog_id: UUID) -> None:
        first = await toggle_engagement(blogs, blog_id, "likes", "likes_count", uuid4())
        second = await toggle_engagement(blogs, blog_id, "likes", "likes_count", uuid4())

        assert first.count == 1
        assert second.count == 2
        assert blogs.documents[blog_id]["likes_count"] == 2

    @pytest.mark.asyncio
    async def test_result_reflects_winning_attempt(
        self, blogs: InMemoryCollection, blog_id: UUID
    ) -> None:
        blogs.conflicts_to_inject = 2

        result = await toggle_engagement(blogs, blog_id, "bookmarks", "bookmarks_count", uuid4())

        assert (result.member, result.count) == (True, 1)
        assert blogs.update_calls == 3

    @pytest.mark.asyncio
    async def test_missing_document(self, blogs: InMemoryCollection) -> None:
        assert await toggle_engagement(blogs, uuid4(), "likes", "likes_count", uuid4()) is None

    @pytest.mark.asyncio
    async def test_exhausted_retries(self, blogs: InMemoryCollection, blog_id: UUID) -> None:
        blogs.conflicts_to_inject = 10

        with pytest.raises(ConflictError):
            await toggle_engagement(
                blogs, blog_id, "likes", "likes_count", uuid4(), max_attempts=2
            )
