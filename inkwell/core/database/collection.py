"""Document-style access to Cassandra tables.

Each table holds one document per row keyed by ``id`` and carries an
integer ``version`` column. Every single-document mutation is a
lightweight transaction conditioned on that version, so concurrent
read-modify-write sequences cannot silently overwrite each other.

Filtering goes through secondary indexes; ordering and skip/limit are the
caller's job (see ``inkwell.core.pagination``).
"""

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from inkwell.core.exceptions import ConflictError


if TYPE_CHECKING:
    from cassandra.cluster import Session
    from cassandra.query import PreparedStatement


logger = structlog.get_logger(__name__)

Document = dict[str, Any]

# A mutation receives the current document and returns the columns to change.
# An empty dict means "nothing to write".
Mutation = Callable[[Document], Document]


class CassandraCollection:
    """Async CRUD over a single Cassandra table with versioned writes."""

    def __init__(self, session: "Session", keyspace: str, table: str):
        """Initialize with Cassandra session.

        Args:
            session: Cassandra session with aexecute() support
            keyspace: Keyspace name
            table: Table name inside the keyspace
        """
        self.session = session
        self.keyspace = keyspace
        self.table = table
        self._statements: dict[str, PreparedStatement] = {}

    @property
    def name(self) -> str:
        return f"{self.keyspace}.{self.table}"

    def _prepare(self, cql: str) -> "PreparedStatement":
        """Prepare a statement once and reuse it for the session lifetime."""
        statement = self._statements.get(cql)
        if statement is None:
            statement = self.session.prepare(cql)
            self._statements[cql] = statement
        return statement

    @staticmethod
    def _where(filters: Document) -> tuple[str, list[Any]]:
        if not filters:
            return "", []
        if any(value is None for value in filters.values()):
            msg = "Filter values cannot be None"
            raise ValueError(msg)
        columns = sorted(filters)
        clause = " WHERE " + " AND ".join(f"{column} = ?" for column in columns)
        if len(columns) > 1:
            clause += " ALLOW FILTERING"
        return clause, [filters[column] for column in columns]

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def find_by_id(self, doc_id: UUID) -> Document | None:
        rows = await self.session.aexecute(
            self._prepare(f"SELECT * FROM {self.name} WHERE id = ?"),
            [doc_id],
        )
        row = rows.one()
        return row._asdict() if row else None

    async def find(self, **filters: Any) -> list[Document]:
        """Return every document whose columns equal the given values."""
        clause, params = self._where(filters)
        rows = await self.session.aexecute(
            self._prepare(f"SELECT * FROM {self.name}{clause}"),
            params,
        )
        return [row._asdict() for row in rows]

    async def count_documents(self, **filters: Any) -> int:
        clause, params = self._where(filters)
        rows = await self.session.aexecute(
            self._prepare(f"SELECT COUNT(*) FROM {self.name}{clause}"),
            params,
        )
        row = rows.one()
        return row.count if row else 0

    # ==========================================================================
    # Writes
    # ==========================================================================

    async def insert(self, document: Document) -> None:
        """Insert a new document with ``version`` initialised to 1.

        Raises:
            ConflictError: If a document with the same id already exists.
        """
        document = {**document, "version": 1}
        columns = sorted(document)
        placeholders = ", ".join("?" for _ in columns)
        result = await self.session.aexecute(
            self._prepare(
                f"INSERT INTO {self.name} ({', '.join(columns)}) "
                f"VALUES ({placeholders}) IF NOT EXISTS"
            ),
            [document[column] for column in columns],
        )
        if not result.was_applied:
            raise ConflictError(f"Document {document['id']} already exists")

    async def update(
        self, doc_id: UUID, changes: Document, expected_version: int
    ) -> bool:
        """Apply ``changes`` only if the stored version still matches.

        Returns:
            True if the write was applied, False if another writer got there first.
        """
        columns = sorted(changes)
        assignments = ", ".join(f"{column} = ?" for column in columns)
        result = await self.session.aexecute(
            self._prepare(
                f"UPDATE {self.name} SET {assignments}, version = ? "
                f"WHERE id = ? IF version = ?"
            ),
            [
                *(changes[column] for column in columns),
                expected_version + 1,
                doc_id,
                expected_version,
            ],
        )
        return bool(result.was_applied)

    async def delete_one(self, doc_id: UUID) -> bool:
        result = await self.session.aexecute(
            self._prepare(f"DELETE FROM {self.name} WHERE id = ? IF EXISTS"),
            [doc_id],
        )
        return bool(result.was_applied)

    async def delete_many(self, doc_ids: Iterable[UUID]) -> int:
        """Delete documents by id, returning how many existed."""
        deleted = 0
        for doc_id in doc_ids:
            if await self.delete_one(doc_id):
                deleted += 1
        return deleted


async def update_with_retry(
    collection: CassandraCollection,
    doc_id: UUID,
    mutate: Mutation,
    *,
    max_attempts: int = 5,
) -> Document | None:
    """Read-modify-write a document under optimistic concurrency.

    ``mutate`` is re-run against a fresh read after every lost race, so it
    must be a pure function of the document it is given. Domain errors it
    raises propagate unchanged.

    Returns:
        The document as written, or None if it does not exist.

    Raises:
        ConflictError: If every attempt lost to a concurrent writer.
    """
    for attempt in range(1, max_attempts + 1):
        document = await collection.find_by_id(doc_id)
        if document is None:
            return None

        changes = mutate(document)
        if not changes:
            return document

        version = document.get("version") or 0
        if await collection.update(doc_id, changes, expected_version=version):
            return {**document, **changes, "version": version + 1}

        logger.info(
            "conditional_update_conflict",
            collection=collection.name,
            doc_id=str(doc_id),
            attempt=attempt,
        )

    logger.warning(
        "conditional_update_exhausted",
        collection=collection.name,
        doc_id=str(doc_id),
        attempts=max_attempts,
    )
    raise ConflictError
