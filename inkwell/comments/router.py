"""Comment API endpoints.

Provides routes for:
- Listing a blog's comments and a comment's replies
- Comment CRUD and like toggles
- Flagging and moderation
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status

from inkwell.auth.dependencies import AdminUser, CurrentUser, OptionalUser
from inkwell.comments.dependencies import CommentServiceDep
from inkwell.comments.schemas import (
    CommentLikeResponse,
    CommentListResponse,
    CommentResponse,
    CreateCommentRequest,
    DeleteCommentResponse,
    FlagCommentRequest,
    FlaggedCommentListResponse,
    FlaggedCommentResponse,
    ModerateCommentRequest,
    UpdateCommentRequest,
)
from inkwell.core.exceptions import AppError, handle_app_error


router = APIRouter(prefix="/v1/comments", tags=["comments"])


@router.get(
    "/blog/{blog_id}",
    response_model=CommentListResponse,
    summary="List comments of a blog",
)
async def list_blog_comments(
    blog_id: UUID,
    comment_service: CommentServiceDep,
    user: OptionalUser,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    sort: Annotated[str, Query(pattern="^(newest|oldest)$")] = "newest",
) -> CommentListResponse:
    """Top-level active comments, each with its active direct replies."""
    try:
        return await comment_service.list_blog_comments(
            blog_id,
            user_id=user.id if user else None,
            sort=sort,
            page=page,
            limit=limit,
        )
    except AppError as e:
        raise handle_app_error(e) from e


@router.post(
    "",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create comment",
)
async def create_comment(
    data: CreateCommentRequest,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> CommentResponse:
    """Create a comment on a blog, or a reply when ``parent_id`` is set.

    Rate limited per user when Redis is available.
    """
    try:
        comment = await comment_service.create_comment(
            blog_id=data.blog_id,
            author_id=user.id,
            author_name=user.username,
            content=data.content,
            parent_id=data.parent_id,
        )
    except AppError as e:
        raise handle_app_error(e) from e
    return CommentResponse.from_comment(comment, user.id)


@router.get(
    "/moderation/flagged",
    response_model=FlaggedCommentListResponse,
    summary="Flagged comments (admin)",
)
async def list_flagged_comments(
    comment_service: CommentServiceDep,
    _admin: AdminUser,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> FlaggedCommentListResponse:
    comments, pagination = await comment_service.list_flagged(page, limit)
    return FlaggedCommentListResponse(
        items=[FlaggedCommentResponse.from_flagged(c) for c in comments],
        pagination=pagination,
    )


@router.get(
    "/{comment_id}/replies",
    response_model=list[CommentResponse],
    summary="Replies of a comment",
)
async def get_replies(
    comment_id: UUID,
    comment_service: CommentServiceDep,
    user: OptionalUser,
) -> list[CommentResponse]:
    try:
        replies = await comment_service.get_replies(comment_id)
    except AppError as e:
        raise handle_app_error(e) from e
    user_id = user.id if user else None
    return [CommentResponse.from_comment(r, user_id) for r in replies]


@router.put("/{comment_id}", response_model=CommentResponse, summary="Edit comment")
async def update_comment(
    comment_id: UUID,
    data: UpdateCommentRequest,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> CommentResponse:
    try:
        comment = await comment_service.update_comment(comment_id, user.id, data.content)
    except AppError as e:
        raise handle_app_error(e) from e
    return CommentResponse.from_comment(comment, user.id)


@router.delete(
    "/{comment_id}",
    response_model=DeleteCommentResponse,
    summary="Delete comment",
)
async def delete_comment(
    comment_id: UUID,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> DeleteCommentResponse:
    """Delete a comment and all of its replies (author or admin)."""
    try:
        deleted = await comment_service.delete_comment(comment_id, user.id, user.role)
    except AppError as e:
        raise handle_app_error(e) from e
    return DeleteCommentResponse(message="Comment deleted successfully", deleted_count=deleted)


@router.post(
    "/{comment_id}/like",
    response_model=CommentLikeResponse,
    summary="Like or unlike a comment",
)
async def toggle_like(
    comment_id: UUID,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> CommentLikeResponse:
    try:
        result = await comment_service.toggle_like(comment_id, user.id)
    except AppError as e:
        raise handle_app_error(e) from e
    return CommentLikeResponse(liked=result.member, count=result.count)


@router.post(
    "/{comment_id}/flag",
    response_model=CommentResponse,
    summary="Flag comment for review",
)
async def flag_comment(
    comment_id: UUID,
    data: FlagCommentRequest,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> CommentResponse:
    try:
        comment = await comment_service.flag_comment(comment_id, user.id, data.reason)
    except AppError as e:
        raise handle_app_error(e) from e
    return CommentResponse.from_comment(comment, user.id)


@router.patch(
    "/{comment_id}/moderate",
    response_model=CommentResponse,
    summary="Moderate comment (admin)",
)
async def moderate_comment(
    comment_id: UUID,
    data: ModerateCommentRequest,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> CommentResponse:
    """Set a comment's status. Non-admins get 403."""
    try:
        comment = await comment_service.moderate_comment(comment_id, data.status, user.role)
    except AppError as e:
        raise handle_app_error(e) from e
    return CommentResponse.from_comment(comment, user.id)
