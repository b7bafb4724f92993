"""Comment moderation state machine.

States: ``active`` (default), ``flagged`` (reported, awaiting review) and
``hidden`` (suppressed by an admin).

- A flag records ``(user, reason)`` and moves ``active -> flagged``. A flag
  on a flagged or hidden comment is recorded without a status change.
- A user may flag a comment once; a second flag is rejected.
- An admin may set any status. ``active`` and ``hidden`` clear the flags,
  ``flagged`` keeps them.

Both transitions are pure: they take the stored document and return the
columns to write, so they can run inside ``update_with_retry``.
"""

from datetime import UTC, datetime
from uuid import UUID

from inkwell.comments.models import CommentStatus, FlagReason
from inkwell.core.database.collection import Document
from inkwell.core.exceptions import AlreadyFlaggedError, InvalidArgumentError


def parse_flag_reason(reason: str | FlagReason) -> FlagReason:
    """Raises InvalidArgumentError for an unknown reason."""
    try:
        return FlagReason(reason)
    except ValueError as e:
        allowed = ", ".join(r.value for r in FlagReason)
        raise InvalidArgumentError(
            f"Invalid flag reason '{reason}'. Allowed: {allowed}"
        ) from e


def parse_status(status: str | CommentStatus) -> CommentStatus:
    """Raises InvalidArgumentError for an unknown status."""
    try:
        return CommentStatus(status)
    except ValueError as e:
        allowed = ", ".join(s.value for s in CommentStatus)
        raise InvalidArgumentError(
            f"Invalid status '{status}'. Allowed: {allowed}"
        ) from e


def apply_flag(
    document: Document,
    user_id: UUID,
    reason: str | FlagReason,
    now: datetime | None = None,
) -> Document:
    """Record a flag by ``user_id``.

    Raises:
        InvalidArgumentError: Unknown reason
        AlreadyFlaggedError: The user has already flagged this comment
    """
    reason = parse_flag_reason(reason)
    flagged_by = dict(document.get("flagged_by") or {})
    if user_id in flagged_by:
        raise AlreadyFlaggedError

    now = now or datetime.now(UTC)
    flagged_by[user_id] = (reason.value, now)

    changes: Document = {"flagged_by": flagged_by, "updated_at": now}
    if (document.get("status") or CommentStatus.ACTIVE.value) == CommentStatus.ACTIVE.value:
        changes["status"] = CommentStatus.FLAGGED.value
    return changes


def apply_moderation(
    document: Document,
    status: str | CommentStatus,
    now: datetime | None = None,
) -> Document:
    """Set the moderation status chosen by an admin.

    Raises:
        InvalidArgumentError: Unknown status
    """
    target = parse_status(status)
    changes: Document = {"status": target.value, "updated_at": now or datetime.now(UTC)}
    if target in (CommentStatus.ACTIVE, CommentStatus.HIDDEN):
        changes["flagged_by"] = {}
    return changes
