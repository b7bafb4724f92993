"""Database models for threaded blog comments.

Comments form a tree per blog through ``parent_id`` (NULL for top-level
comments). Each comment also keeps ``replies``: the ordered ids of its
direct children, maintained by ``inkwell.comments.consistency``.

``flagged_by`` maps the flagging user to ``(reason, flagged_at)`` so a
user can hold at most one flag per comment.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from inkwell.auth.models import ensure_utc_aware


class CommentStatus(str, Enum):
    """Moderation status of a comment."""

    ACTIVE = "active"
    FLAGGED = "flagged"
    HIDDEN = "hidden"


class FlagReason(str, Enum):
    """Reasons for flagging a comment."""

    SPAM = "spam"
    INAPPROPRIATE = "inappropriate"
    HARASSMENT = "harassment"
    OTHER = "other"


MAX_CONTENT_LENGTH = 1000


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COMMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments (
    id UUID PRIMARY KEY,
    blog_id UUID,
    parent_id UUID,
    author_id UUID,
    author_name TEXT,
    content TEXT,
    replies LIST<UUID>,
    status TEXT,
    flagged_by MAP<UUID, FROZEN<TUPLE<TEXT, TIMESTAMP>>>,
    likes MAP<UUID, TIMESTAMP>,
    likes_count INT,
    is_edited BOOLEAN,
    edited_at TIMESTAMP,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    version INT
)
"""

# Comments of a blog (listing, counting, cascade on blog delete)
COMMENT_BLOG_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS comments_blog_idx ON {keyspace}.comments (blog_id)
"""

# Direct children of a comment (subtree deletion, replies)
COMMENT_PARENT_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS comments_parent_idx ON {keyspace}.comments (parent_id)
"""

# Moderation queue
COMMENT_STATUS_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS comments_status_idx ON {keyspace}.comments (status)
"""

COMMENT_AUTHOR_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS comments_author_idx ON {keyspace}.comments (author_id)
"""

COMMENTS_TABLES_CQL = [
    COMMENT_TABLE_CQL,
    COMMENT_BLOG_INDEX_CQL,
    COMMENT_PARENT_INDEX_CQL,
    COMMENT_STATUS_INDEX_CQL,
    COMMENT_AUTHOR_INDEX_CQL,
]


# ==============================================================================
# Entities
# ==============================================================================


@dataclass
class CommentFlag:
    """A single user's flag on a comment."""

    user_id: UUID
    reason: FlagReason
    created_at: datetime


@dataclass
class Comment:
    """Comment entity."""

    id: UUID
    blog_id: UUID
    author_id: UUID
    author_name: str
    content: str
    created_at: datetime
    updated_at: datetime
    parent_id: UUID | None = None
    replies: list[UUID] = field(default_factory=list)
    status: CommentStatus = CommentStatus.ACTIVE
    flagged_by: dict[UUID, tuple[str, datetime]] = field(default_factory=dict)
    likes: dict[UUID, datetime] = field(default_factory=dict)
    likes_count: int = 0
    is_edited: bool = False
    edited_at: datetime | None = None
    version: int = 1

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Comment":
        """Create Comment from a stored document."""
        return cls(
            id=row["id"],
            blog_id=row["blog_id"],
            author_id=row["author_id"],
            author_name=row.get("author_name") or "",
            content=row["content"],
            created_at=ensure_utc_aware(row["created_at"]),
            updated_at=ensure_utc_aware(row.get("updated_at") or row["created_at"]),
            parent_id=row.get("parent_id"),
            replies=list(row.get("replies") or ()),
            status=CommentStatus(row.get("status") or CommentStatus.ACTIVE.value),
            flagged_by={
                user_id: (reason, ensure_utc_aware(flagged_at))
                for user_id, (reason, flagged_at) in (row.get("flagged_by") or {}).items()
            },
            likes=dict(row.get("likes") or {}),
            likes_count=row.get("likes_count") or 0,
            is_edited=bool(row.get("is_edited")),
            edited_at=ensure_utc_aware(row.get("edited_at")),
            version=row.get("version") or 1,
        )

    def to_row(self) -> dict[str, Any]:
        """Convert to the stored document shape (``version`` is store-managed)."""
        return {
            "id": self.id,
            "blog_id": self.blog_id,
            "parent_id": self.parent_id,
            "author_id": self.author_id,
            "author_name": self.author_name,
            "content": self.content,
            "replies": list(self.replies),
            "status": self.status.value,
            "flagged_by": dict(self.flagged_by),
            "likes": dict(self.likes),
            "likes_count": self.likes_count,
            "is_edited": self.is_edited,
            "edited_at": self.edited_at,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @property
    def is_active(self) -> bool:
        return self.status == CommentStatus.ACTIVE

    @property
    def flags(self) -> list[CommentFlag]:
        """Flags in the order they were raised."""
        flags = [
            CommentFlag(user_id=user_id, reason=FlagReason(reason), created_at=flagged_at)
            for user_id, (reason, flagged_at) in self.flagged_by.items()
        ]
        flags.sort(key=lambda flag: flag.created_at)
        return flags

    def is_liked_by(self, user_id: UUID | None) -> bool:
        return user_id is not None and user_id in self.likes


def create_comment(
    blog_id: UUID,
    author_id: UUID,
    author_name: str,
    content: str,
    parent_id: UUID | None = None,
) -> Comment:
    """Create a new comment with default values."""
    now = datetime.now(UTC)
    return Comment(
        id=uuid4(),
        blog_id=blog_id,
        author_id=author_id,
        author_name=author_name,
        content=content,
        created_at=now,
        updated_at=now,
        parent_id=parent_id,
    )
