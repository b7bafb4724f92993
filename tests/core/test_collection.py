"""Tests for the versioned Cassandra collection."""

from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from cassandra.cluster import Session

from inkwell.core.database.collection import CassandraCollection, update_with_retry
from inkwell.core.exceptions import ConflictError
from tests.fakes import InMemoryCollection


@pytest.fixture
def mock_session():
    """Mock Cassandra session with an awaitable aexecute."""
    session = Mock(spec=Session)
    session.prepare = Mock(side_effect=lambda cql: cql)
    session.aexecute = AsyncMock()
    return session


@pytest.fixture
def collection(mock_session) -> CassandraCollection:
    return CassandraCollection(mock_session, "test_keyspace", "comments")


def executed_cql(mock_session) -> str:
    return mock_session.aexecute.await_args.args[0]


class TestQueries:
    @pytest.mark.asyncio
    async def test_find_by_id(self, collection, mock_session) -> None:
        doc_id = uuid4()
        row = Mock()
        row._asdict = Mock(return_value={"id": doc_id, "version": 1})
        mock_session.aexecute.return_value = Mock(one=Mock(return_value=row))

        document = await collection.find_by_id(doc_id)

        assert document == {"id": doc_id, "version": 1}
        assert executed_cql(mock_session) == (
            "SELECT * FROM test_keyspace.comments WHERE id = ?"
        )

    @pytest.mark.asyncio
    async def test_find_by_id_missing(self, collection, mock_session) -> None:
        mock_session.aexecute.return_value = Mock(one=Mock(return_value=None))
        assert await collection.find_by_id(uuid4()) is None

    @pytest.mark.asyncio
    async def test_single_filter_uses_index(self, collection, mock_session) -> None:
        blog_id = uuid4()
        mock_session.aexecute.return_value = []

        await collection.find(blog_id=blog_id)

        assert executed_cql(mock_session) == (
            "SELECT * FROM test_keyspace.comments WHERE blog_id = ?"
        )
        assert mock_session.aexecute.await_args.args[1] == [blog_id]

    @pytest.mark.asyncio
    async def test_multiple_filters_allow_filtering(self, collection, mock_session) -> None:
        mock_session.aexecute.return_value = Mock(one=Mock(return_value=Mock(count=3)))

        count = await collection.count_documents(status="active", blog_id=uuid4())

        assert count == 3
        assert executed_cql(mock_session) == (
            "SELECT COUNT(*) FROM test_keyspace.comments "
            "WHERE blog_id = ? AND status = ? ALLOW FILTERING"
        )

    @pytest.mark.asyncio
    async def test_none_filter_is_rejected(self, collection) -> None:
        with pytest.raises(ValueError, match="cannot be None"):
            await collection.find(parent_id=None)

    def test_statements_prepared_once(self, collection, mock_session) -> None:
        collection._prepare("SELECT 1")
        collection._prepare("SELECT 1")
        mock_session.prepare.assert_called_once_with("SELECT 1")


class TestWrites:
    @pytest.mark.asyncio
    async def test_insert_sets_version(self, collection, mock_session) -> None:
        mock_session.aexecute.return_value = Mock(was_applied=True)

        await collection.insert({"id": uuid4(), "content": "hi"})

        cql = executed_cql(mock_session)
        assert cql.startswith("INSERT INTO test_keyspace.comments (content, id, version)")
        assert cql.endswith("IF NOT EXISTS")
        assert mock_session.aexecute.await_args.args[1][2] == 1

    @pytest.mark.asyncio
    async def test_insert_existing_id(self, collection, mock_session) -> None:
        mock_session.aexecute.return_value = Mock(was_applied=False)

        with pytest.raises(ConflictError):
            await collection.insert({"id": uuid4()})

    @pytest.mark.asyncio
    async def test_update_is_conditional(self, collection, mock_session) -> None:
        doc_id = uuid4()
        mock_session.aexecute.return_value = Mock(was_applied=False)

        applied = await collection.update(doc_id, {"status": "hidden"}, expected_version=4)

        assert applied is False
        assert executed_cql(mock_session) == (
            "UPDATE test_keyspace.comments SET status = ?, version = ? "
            "WHERE id = ? IF version = ?"
        )
        assert mock_session.aexecute.await_args.args[1] == ["hidden", 5, doc_id, 4]

    @pytest.mark.asyncio
    async def test_delete_many_counts_existing(self, collection, mock_session) -> None:
        mock_session.aexecute.side_effect = [
            Mock(was_applied=True),
            Mock(was_applied=False),
            Mock(was_applied=True),
        ]

        assert await collection.delete_many([uuid4(), uuid4(), uuid4()]) == 2


class TestUpdateWithRetry:
    @pytest.fixture
    def store(self) -> InMemoryCollection:
        return InMemoryCollection()

    @pytest.mark.asyncio
    async def test_applies_and_bumps_version(self, store: InMemoryCollection) -> None:
        doc = store.put({"id": uuid4(), "views": 0})

        written = await update_with_retry(
            store, doc["id"], lambda d: {"views": d["views"] + 1}
        )

        assert written["views"] == 1
        assert written["version"] == 2
        assert store.documents[doc["id"]]["version"] == 2

    @pytest.mark.asyncio
    async def test_mutation_rerun_on_fresh_read(self, store: InMemoryCollection) -> None:
        doc = store.put({"id": uuid4(), "views": 0})
        store.conflicts_to_inject = 1
        seen_versions = []

        def mutate(document):
            seen_versions.append(document["version"])
            return {"views": document["views"] + 1}

        await update_with_retry(store, doc["id"], mutate)

        assert seen_versions == [1, 2]
        assert store.documents[doc["id"]]["views"] == 1

    @pytest.mark.asyncio
    async def test_empty_changes_skip_write(self, store: InMemoryCollection) -> None:
        doc = store.put({"id": uuid4()})

        written = await update_with_retry(store, doc["id"], lambda d: {})

        assert written == doc
        assert store.update_calls == 0

    @pytest.mark.asyncio
    async def test_missing_document(self, store: InMemoryCollection) -> None:
        assert await update_with_retry(store, uuid4(), lambda d: {"x": 1}) is None

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, store: InMemoryCollection) -> None:
        doc = store.put({"id": uuid4(), "views": 0})
        store.conflicts_to_inject = 3

        with pytest.raises(ConflictError):
            await update_with_retry(
                store, doc["id"], lambda d: {"views": 1}, max_attempts=3
            )
        assert store.documents[doc["id"]]["views"] == 0
