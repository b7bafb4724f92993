"""Document access for Inkwell.

Connection management lives in ``inkwell.core.database.async_cassandra``;
it imports every module's table definitions, so it is only imported by
the application entry point.
"""

from inkwell.core.database.collection import (
    CassandraCollection,
    Document,
    Mutation,
    update_with_retry,
)


__all__ = [
    "CassandraCollection",
    "Document",
    "Mutation",
    "update_with_retry",
]
