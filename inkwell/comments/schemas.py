"""Pydantic schemas for comments.

Content length, flag reasons and moderation statuses are checked by the
service so that they surface as ``invalid_argument`` errors.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from inkwell.core.pagination import Pagination

from .models import Comment, CommentStatus, FlagReason


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreateCommentRequest(BaseModel):
    """Request to create a comment or a reply."""

    blog_id: UUID
    content: str
    parent_id: UUID | None = None


class UpdateCommentRequest(BaseModel):
    content: str


class FlagCommentRequest(BaseModel):
    reason: str = Field(..., description="spam, inappropriate, harassment or other")


class ModerateCommentRequest(BaseModel):
    status: str = Field(..., description="active, hidden or flagged")


# ==============================================================================
# Response Schemas
# ==============================================================================


class CommentAuthorResponse(BaseModel):
    id: UUID
    name: str


class FlagResponse(BaseModel):
    user_id: UUID
    reason: FlagReason
    created_at: datetime


class CommentResponse(BaseModel):
    """Comment with its direct replies when they were requested."""

    id: UUID
    blog_id: UUID
    parent_id: UUID | None = None
    content: str
    author: CommentAuthorResponse
    status: CommentStatus
    likes_count: int = 0
    is_liked: bool = False
    is_edited: bool = False
    edited_at: datetime | None = None
    replies_count: int = 0
    replies: list["CommentResponse"] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_comment(
        cls,
        comment: Comment,
        user_id: UUID | None = None,
        replies: list["CommentResponse"] | None = None,
    ) -> "CommentResponse":
        """Build a response; without ``replies`` only the count is filled."""
        return cls(
            id=comment.id,
            blog_id=comment.blog_id,
            parent_id=comment.parent_id,
            content=comment.content,
            author=CommentAuthorResponse(id=comment.author_id, name=comment.author_name),
            status=comment.status,
            likes_count=comment.likes_count,
            is_liked=comment.is_liked_by(user_id),
            is_edited=comment.is_edited,
            edited_at=comment.edited_at,
            replies_count=len(replies) if replies is not None else len(comment.replies),
            replies=replies or [],
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )


class FlaggedCommentResponse(CommentResponse):
    """Comment in the moderation queue."""

    flagged_by: list[FlagResponse] = Field(default_factory=list)

    @classmethod
    def from_flagged(cls, comment: Comment) -> "FlaggedCommentResponse":
        base = CommentResponse.from_comment(comment)
        return cls(
            **base.model_dump(exclude={"replies"}),
            flagged_by=[
                FlagResponse(
                    user_id=flag.user_id,
                    reason=flag.reason,
                    created_at=flag.created_at,
                )
                for flag in comment.flags
            ],
        )


class CommentListResponse(BaseModel):
    items: list[CommentResponse]
    pagination: Pagination


class FlaggedCommentListResponse(BaseModel):
    items: list[FlaggedCommentResponse]
    pagination: Pagination


class CommentLikeResponse(BaseModel):
    liked: bool
    count: int


class DeleteCommentResponse(BaseModel):
    success: bool = True
    message: str
    deleted_count: int
