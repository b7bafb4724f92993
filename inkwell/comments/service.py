"""Comment service layer.

Business logic for:
- Comment and reply CRUD
- Like toggles
- Flagging and admin moderation
- Rate limiting (Redis-based, optional)

Every mutation ends by calling the consistency hooks in
``inkwell.comments.consistency``.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from inkwell.auth.permissions import UserRole, can_modify, is_admin
from inkwell.blogs.engagement import ToggleResult, toggle_engagement
from inkwell.comments.consistency import (
    on_comment_created,
    on_comment_deleted,
    reconcile_comment_count,
)
from inkwell.comments.models import (
    MAX_CONTENT_LENGTH,
    Comment,
    CommentStatus,
    create_comment,
)
from inkwell.comments.moderation import (
    apply_flag,
    apply_moderation,
    parse_flag_reason,
    parse_status,
)
from inkwell.comments.schemas import CommentListResponse, CommentResponse
from inkwell.core.database.collection import Document, update_with_retry
from inkwell.core.exceptions import (
    BlogNotFoundError,
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitExceededError,
)
from inkwell.core.pagination import Pagination, paginate, sort_items


if TYPE_CHECKING:
    from redis.asyncio import Redis

    from inkwell.core.database.collection import CassandraCollection


logger = structlog.get_logger(__name__)

LIST_SORTS = {"newest": "-created_at", "oldest": "created_at"}
SORTABLE_FIELDS = frozenset({"created_at"})


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CommentNotFoundError(NotFoundError):
    """Comment not found."""

    def __init__(self, message: str = "Comment not found"):
        super().__init__(message)


def validate_content(content: str | None) -> str:
    """Trim comment content and check its length.

    Raises:
        InvalidArgumentError: Empty, or longer than the maximum
    """
    content = (content or "").strip()
    if not content:
        raise InvalidArgumentError("Comment content is required")
    if len(content) > MAX_CONTENT_LENGTH:
        raise InvalidArgumentError(
            f"Comment cannot exceed {MAX_CONTENT_LENGTH} characters"
        )
    return content


# ==============================================================================
# Comment Service
# ==============================================================================


class CommentService:
    """Service for comment management."""

    def __init__(
        self,
        comments: "CassandraCollection",
        blogs: "CassandraCollection",
        redis: "Redis | None" = None,
        max_update_attempts: int = 5,
        comments_per_minute: int = 10,
        comments_per_hour: int = 100,
    ):
        """Initialize with the comments and blogs collections and optional Redis."""
        self.comments = comments
        self.blogs = blogs
        self.redis = redis
        self.max_update_attempts = max_update_attempts
        self.comments_per_minute = comments_per_minute
        self.comments_per_hour = comments_per_hour

    async def get_comment(self, comment_id: UUID) -> Comment:
        """Raises CommentNotFoundError if the comment does not exist."""
        row = await self.comments.find_by_id(comment_id)
        if row is None:
            raise CommentNotFoundError
        return Comment.from_row(row)

    async def _reconcile(self, blog_id: UUID) -> None:
        await reconcile_comment_count(
            self.comments, self.blogs, blog_id, max_attempts=self.max_update_attempts
        )

    # ==========================================================================
    # Rate Limiting (Redis-based)
    # ==========================================================================

    async def check_rate_limit(self, user_id: UUID) -> bool:
        """Check if user has exceeded rate limit.

        Returns True if within limit, raises RateLimitExceededError otherwise.
        """
        if not self.redis:
            return True

        key_minute = f"comments:rate:{user_id}:minute"
        key_hour = f"comments:rate:{user_id}:hour"

        minute_count = await self.redis.get(key_minute)
        if minute_count and int(minute_count) >= self.comments_per_minute:
            raise RateLimitExceededError("Too many comments per minute. Please wait.")

        hour_count = await self.redis.get(key_hour)
        if hour_count and int(hour_count) >= self.comments_per_hour:
            raise RateLimitExceededError("Hourly comment limit reached.")

        return True

    async def increment_rate_limit(self, user_id: UUID) -> None:
        """Increment rate limit counters."""
        if not self.redis:
            return

        key_minute = f"comments:rate:{user_id}:minute"
        key_hour = f"comments:rate:{user_id}:hour"

        pipe = self.redis.pipeline()
        pipe.incr(key_minute)
        pipe.expire(key_minute, 60)
        pipe.incr(key_hour)
        pipe.expire(key_hour, 3600)
        await pipe.execute()

    # ==========================================================================
    # Comment CRUD
    # ==========================================================================

    async def create_comment(
        self,
        blog_id: UUID,
        author_id: UUID,
        author_name: str,
        content: str,
        parent_id: UUID | None = None,
    ) -> Comment:
        """Create a comment, or a reply when ``parent_id`` is given.

        Raises:
            InvalidArgumentError: Bad content, or parent on another blog
            BlogNotFoundError: Unknown blog
            CommentNotFoundError: Unknown parent
            RateLimitExceededError: Too many comments
            ConflictError: Parent reply list could not be updated; nothing is stored
        """
        content = validate_content(content)

        if await self.blogs.find_by_id(blog_id) is None:
            raise BlogNotFoundError

        if parent_id is not None:
            parent = await self.comments.find_by_id(parent_id)
            if parent is None:
                raise CommentNotFoundError("Parent comment not found")
            if parent["blog_id"] != blog_id:
                raise InvalidArgumentError("Parent comment belongs to another blog")

        await self.check_rate_limit(author_id)

        comment = create_comment(
            blog_id=blog_id,
            author_id=author_id,
            author_name=author_name,
            content=content,
            parent_id=parent_id,
        )
        await self.comments.insert(comment.to_row())
        await on_comment_created(
            self.comments, self.blogs, comment, max_attempts=self.max_update_attempts
        )
        await self.increment_rate_limit(author_id)

        logger.info(
            "comment_created",
            comment_id=str(comment.id),
            blog_id=str(blog_id),
            parent_id=str(parent_id) if parent_id else None,
        )
        return comment

    async def update_comment(
        self, comment_id: UUID, user_id: UUID, content: str
    ) -> Comment:
        """Edit a comment's content. Only the author may edit.

        Raises:
            InvalidArgumentError: Bad content
            CommentNotFoundError: Unknown comment
            PermissionDeniedError: Requester is not the author
        """
        content = validate_content(content)
        comment = await self.get_comment(comment_id)
        if comment.author_id != user_id:
            raise PermissionDeniedError("Not authorized to update this comment")

        def mutate(_document: Document) -> Document:
            now = datetime.now(UTC)
            return {
                "content": content,
                "is_edited": True,
                "edited_at": now,
                "updated_at": now,
            }

        written = await update_with_retry(
            self.comments, comment_id, mutate, max_attempts=self.max_update_attempts
        )
        if written is None:
            raise CommentNotFoundError

        logger.info("comment_updated", comment_id=str(comment_id))
        return Comment.from_row(written)

    async def delete_comment(
        self, comment_id: UUID, user_id: UUID, role: UserRole | str
    ) -> int:
        """Delete a comment and all of its replies.

        Returns:
            Number of comments deleted.

        Raises:
            CommentNotFoundError: Unknown comment
            PermissionDeniedError: Requester is neither the author nor an admin
        """
        comment = await self.get_comment(comment_id)
        if not can_modify(comment.author_id, user_id, role):
            raise PermissionDeniedError("Not authorized to delete this comment")

        deleted = await on_comment_deleted(
            self.comments, self.blogs, comment, max_attempts=self.max_update_attempts
        )
        logger.info(
            "comment_deleted",
            comment_id=str(comment_id),
            deleted_by=str(user_id),
            deleted=deleted,
        )
        return deleted

    async def toggle_like(self, comment_id: UUID, user_id: UUID) -> ToggleResult:
        """Like or unlike a comment.

        Raises:
            CommentNotFoundError: Unknown comment
        """
        result = await toggle_engagement(
            self.comments,
            comment_id,
            "likes",
            "likes_count",
            user_id,
            max_attempts=self.max_update_attempts,
        )
        if result is None:
            raise CommentNotFoundError
        return result

    # ==========================================================================
    # Moderation
    # ==========================================================================

    async def flag_comment(self, comment_id: UUID, user_id: UUID, reason: str) -> Comment:
        """Flag a comment for review.

        Raises:
            InvalidArgumentError: Unknown reason
            CommentNotFoundError: Unknown comment
            AlreadyFlaggedError: The user already flagged this comment
        """
        parse_flag_reason(reason)

        written = await update_with_retry(
            self.comments,
            comment_id,
            lambda document: apply_flag(document, user_id, reason),
            max_attempts=self.max_update_attempts,
        )
        if written is None:
            raise CommentNotFoundError

        comment = Comment.from_row(written)
        logger.info(
            "comment_flagged",
            comment_id=str(comment_id),
            reason=reason,
            status=comment.status.value,
            flags=len(comment.flagged_by),
        )
        await self._reconcile(comment.blog_id)
        return comment

    async def moderate_comment(
        self, comment_id: UUID, status: str, role: UserRole | str
    ) -> Comment:
        """Set a comment's moderation status (admin only).

        Raises:
            PermissionDeniedError: Requester is not an admin
            InvalidArgumentError: Unknown status
            CommentNotFoundError: Unknown comment
        """
        if not is_admin(role):
            raise PermissionDeniedError("Only admins can moderate comments")
        parse_status(status)

        written = await update_with_retry(
            self.comments,
            comment_id,
            lambda document: apply_moderation(document, status),
            max_attempts=self.max_update_attempts,
        )
        if written is None:
            raise CommentNotFoundError

        comment = Comment.from_row(written)
        logger.info("comment_moderated", comment_id=str(comment_id), status=status)
        await self._reconcile(comment.blog_id)
        return comment

    async def list_flagged(
        self, page: int = 1, limit: int = 20
    ) -> tuple[list[Comment], Pagination]:
        """Flagged comments, newest first."""
        rows = await self.comments.find(status=CommentStatus.FLAGGED.value)
        flagged = sort_items(
            [Comment.from_row(row) for row in rows], "-created_at", SORTABLE_FIELDS
        )
        return paginate(flagged, page, limit)

    # ==========================================================================
    # Listing
    # ==========================================================================

    async def list_blog_comments(
        self,
        blog_id: UUID,
        user_id: UUID | None = None,
        sort: str = "newest",
        page: int = 1,
        limit: int = 10,
    ) -> CommentListResponse:
        """Top-level active comments of a blog with their active direct replies.

        Raises:
            InvalidArgumentError: Unknown sort
            BlogNotFoundError: Unknown blog
        """
        if sort not in LIST_SORTS:
            raise InvalidArgumentError("Sort must be 'newest' or 'oldest'")
        if await self.blogs.find_by_id(blog_id) is None:
            raise BlogNotFoundError

        comments = [Comment.from_row(row) for row in await self.comments.find(blog_id=blog_id)]
        active = [c for c in comments if c.is_active]

        replies_by_parent: dict[UUID, list[Comment]] = {}
        for reply in sort_items(
            [c for c in active if c.parent_id is not None], "created_at", SORTABLE_FIELDS
        ):
            replies_by_parent.setdefault(reply.parent_id, []).append(reply)

        top_level = sort_items(
            [c for c in active if c.parent_id is None], LIST_SORTS[sort], SORTABLE_FIELDS
        )
        page_items, pagination = paginate(top_level, page, limit)

        return CommentListResponse(
            items=[
                CommentResponse.from_comment(
                    comment,
                    user_id,
                    replies=[
                        CommentResponse.from_comment(reply, user_id)
                        for reply in replies_by_parent.get(comment.id, [])
                    ],
                )
                for comment in page_items
            ],
            pagination=pagination,
        )

    async def get_replies(self, comment_id: UUID) -> list[Comment]:
        """Active direct replies of a comment, oldest first.

        Raises:
            CommentNotFoundError: Unknown comment
        """
        await self.get_comment(comment_id)
        replies = [
            Comment.from_row(row) for row in await self.comments.find(parent_id=comment_id)
        ]
        return sort_items(
            [r for r in replies if r.is_active], "created_at", SORTABLE_FIELDS
        )
