"""Engagement toggles: like/bookmark set-membership flips.

A toggle is a read-modify-write of one document: the member map and its
cached count are rewritten together in a single versioned update, and the
count is recomputed from the map. Callers only ever get back the
requester's membership and the new count, never the member map itself.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from inkwell.core.database.collection import Document, update_with_retry


if TYPE_CHECKING:
    from inkwell.core.database.collection import CassandraCollection


@dataclass(frozen=True)
class ToggleResult:
    """Outcome of a toggle for the requesting user."""

    member: bool
    count: int


def toggle_member(
    document: Document,
    members_field: str,
    count_field: str,
    user_id: UUID,
    now: datetime | None = None,
) -> tuple[Document, ToggleResult]:
    """Flip ``user_id`` in ``document[members_field]``.

    Returns:
        The changes to persist and the resulting membership/count.
    """
    members = dict(document.get(members_field) or {})
    if user_id in members:
        del members[user_id]
        member = False
    else:
        members[user_id] = now or datetime.now(UTC)
        member = True

    count = len(members)
    return {members_field: members, count_field: count}, ToggleResult(member, count)


async def toggle_engagement(
    collection: "CassandraCollection",
    doc_id: UUID,
    members_field: str,
    count_field: str,
    user_id: UUID,
    *,
    max_attempts: int = 5,
) -> ToggleResult | None:
    """Toggle membership on a stored document under optimistic concurrency.

    Returns:
        The toggle result, or None if the document does not exist.
    """
    outcome: list[ToggleResult] = []

    def mutate(document: Document) -> Document:
        changes, result = toggle_member(document, members_field, count_field, user_id)
        # Only the attempt that finally wins is kept
        outcome[:] = [result]
        return changes

    written = await update_with_retry(
        collection, doc_id, mutate, max_attempts=max_attempts
    )
    if written is None:
        return None
    return outcome[-1]
