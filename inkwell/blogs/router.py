"""Blog API endpoints.

Provides routes for:
- Public listing, featured posts, categories and detail pages
- Like and bookmark toggles
- Admin CRUD, statistics and image uploads
"""

from typing import Annotated
from uuid import UUID

import structlog
from fastapi import APIRouter, File, Form, Query, UploadFile, status

from inkwell.auth.dependencies import AdminUser, CurrentUser, OptionalUser
from inkwell.blogs.dependencies import BlogServiceDep
from inkwell.blogs.models import BlogCategory, BlogStatus, normalize_tags
from inkwell.blogs.schemas import (
    AdminBlogResponse,
    BlogDetailResponse,
    BlogListResponse,
    BlogResponse,
    BlogStatsResponse,
    BlogSummaryResponse,
    BookmarkToggleResponse,
    CategoryCountResponse,
    CreateBlogRequest,
    LikeToggleResponse,
    MessageResponse,
    UpdateBlogRequest,
)
from inkwell.comments.schemas import CommentResponse
from inkwell.core.exceptions import AppError, handle_app_error


logger = structlog.get_logger(__name__)


router = APIRouter(prefix="/v1/blogs", tags=["blogs"])
admin_router = APIRouter(prefix="/v1/admin/blogs", tags=["blogs-admin"])

Page = Annotated[int, Query(ge=1, description="Page number")]
Limit = Annotated[int, Query(ge=1, le=100, description="Items per page")]


# ==============================================================================
# Public
# ==============================================================================


@router.get("", response_model=BlogListResponse, summary="List published blogs")
async def list_published_blogs(
    blog_service: BlogServiceDep,
    user: OptionalUser,
    page: Page = 1,
    limit: Limit = 10,
    category: BlogCategory | None = None,
    featured: bool | None = None,
    tags: Annotated[str | None, Query(description="Comma separated tags")] = None,
    search: str | None = None,
    sort: Annotated[str, Query(pattern="^(newest|oldest)$")] = "newest",
) -> BlogListResponse:
    """List published blogs. Content is omitted from list items."""
    try:
        blogs, pagination = await blog_service.list_published(
            category=category,
            featured=featured,
            tags=normalize_tags(tags) or None,
            search=search,
            sort=sort,
            page=page,
            limit=limit,
        )
    except AppError as e:
        raise handle_app_error(e) from e

    user_id = user.id if user else None
    return BlogListResponse(
        items=[BlogSummaryResponse.from_blog(b, user_id) for b in blogs],
        pagination=pagination,
    )


@router.get(
    "/featured",
    response_model=list[BlogSummaryResponse],
    summary="Featured blogs",
)
async def get_featured_blogs(
    blog_service: BlogServiceDep,
    user: OptionalUser,
    limit: Annotated[int, Query(ge=1, le=20)] = 5,
) -> list[BlogSummaryResponse]:
    blogs = await blog_service.get_featured(limit)
    user_id = user.id if user else None
    return [BlogSummaryResponse.from_blog(b, user_id) for b in blogs]


@router.get(
    "/categories",
    response_model=list[CategoryCountResponse],
    summary="Published blog counts per category",
)
async def get_categories(blog_service: BlogServiceDep) -> list[CategoryCountResponse]:
    categories = await blog_service.get_categories()
    return [
        CategoryCountResponse(category=category, count=count)
        for category, count in categories
    ]


@router.get(
    "/bookmarks",
    response_model=list[BlogSummaryResponse],
    summary="Blogs bookmarked by the current user",
)
async def get_bookmarked_blogs(
    blog_service: BlogServiceDep,
    user: CurrentUser,
) -> list[BlogSummaryResponse]:
    blogs = await blog_service.list_bookmarked(user.id)
    return [BlogSummaryResponse.from_blog(b, user.id) for b in blogs]


@router.get(
    "/slug/{slug}",
    response_model=BlogDetailResponse,
    summary="Get a published blog by slug",
)
async def get_blog_by_slug(
    slug: str,
    blog_service: BlogServiceDep,
    user: OptionalUser,
) -> BlogDetailResponse:
    """Get a published blog and count the view.

    Also returns up to three related posts from the same category.
    """
    try:
        blog, related = await blog_service.get_published_by_slug(slug)
    except AppError as e:
        raise handle_app_error(e) from e

    user_id = user.id if user else None
    return BlogDetailResponse(
        blog=BlogResponse.from_blog(blog, user_id),
        related=[BlogSummaryResponse.from_blog(b, user_id) for b in related],
    )


@router.post(
    "/{blog_id}/like",
    response_model=LikeToggleResponse,
    summary="Like or unlike a blog",
)
async def toggle_like(
    blog_id: UUID,
    blog_service: BlogServiceDep,
    user: CurrentUser,
) -> LikeToggleResponse:
    try:
        result = await blog_service.toggle_like(blog_id, user.id)
    except AppError as e:
        raise handle_app_error(e) from e
    return LikeToggleResponse(liked=result.member, count=result.count)


@router.post(
    "/{blog_id}/bookmark",
    response_model=BookmarkToggleResponse,
    summary="Bookmark or un-bookmark a blog",
)
async def toggle_bookmark(
    blog_id: UUID,
    blog_service: BlogServiceDep,
    user: CurrentUser,
) -> BookmarkToggleResponse:
    try:
        result = await blog_service.toggle_bookmark(blog_id, user.id)
    except AppError as e:
        raise handle_app_error(e) from e
    return BookmarkToggleResponse(bookmarked=result.member, count=result.count)


# ==============================================================================
# Admin
# ==============================================================================


@admin_router.get("", response_model=BlogListResponse, summary="List all blogs (admin)")
async def list_blogs(
    blog_service: BlogServiceDep,
    admin: AdminUser,
    page: Page = 1,
    limit: Limit = 10,
    status_filter: Annotated[BlogStatus | None, Query(alias="status")] = None,
    category: BlogCategory | None = None,
    author_id: UUID | None = None,
    featured: bool | None = None,
    search: str | None = None,
    sort: Annotated[
        str, Query(description="Field name, prefixed with '-' for descending")
    ] = "-created_at",
) -> BlogListResponse:
    try:
        blogs, pagination = await blog_service.list_blogs(
            status=status_filter,
            category=category,
            author_id=author_id,
            featured=featured,
            search=search,
            sort=sort,
            page=page,
            limit=limit,
        )
    except AppError as e:
        raise handle_app_error(e) from e

    return BlogListResponse(
        items=[BlogSummaryResponse.from_blog(b, admin.id) for b in blogs],
        pagination=pagination,
    )


@admin_router.post(
    "",
    response_model=BlogResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create blog",
)
async def create_blog(
    data: CreateBlogRequest,
    blog_service: BlogServiceDep,
    admin: AdminUser,
) -> BlogResponse:
    try:
        blog = await blog_service.create_blog(data, admin.id, admin.username)
    except AppError as e:
        raise handle_app_error(e) from e
    return BlogResponse.from_blog(blog, admin.id)


@admin_router.get("/stats", response_model=BlogStatsResponse, summary="Blog statistics")
async def get_stats(blog_service: BlogServiceDep, _admin: AdminUser) -> BlogStatsResponse:
    return await blog_service.get_stats()


@admin_router.get(
    "/{blog_id}", response_model=AdminBlogResponse, summary="Get blog with comments (admin)"
)
async def get_blog(
    blog_id: UUID,
    blog_service: BlogServiceDep,
    admin: AdminUser,
) -> AdminBlogResponse:
    try:
        blog = await blog_service.get_blog(blog_id)
    except AppError as e:
        raise handle_app_error(e) from e

    comments = await blog_service.get_blog_comments(blog_id)
    return AdminBlogResponse(
        **BlogResponse.from_blog(blog, admin.id).model_dump(),
        comments=[CommentResponse.from_comment(c, admin.id) for c in comments],
    )


@admin_router.patch("/{blog_id}", response_model=BlogResponse, summary="Update blog")
async def update_blog(
    blog_id: UUID,
    data: UpdateBlogRequest,
    blog_service: BlogServiceDep,
    admin: AdminUser,
) -> BlogResponse:
    try:
        blog = await blog_service.update_blog(blog_id, data)
    except AppError as e:
        raise handle_app_error(e) from e
    return BlogResponse.from_blog(blog, admin.id)


@admin_router.delete("/{blog_id}", response_model=MessageResponse, summary="Delete blog")
async def delete_blog(
    blog_id: UUID,
    blog_service: BlogServiceDep,
    _admin: AdminUser,
) -> MessageResponse:
    """Delete a blog with its images and comments."""
    try:
        await blog_service.delete_blog(blog_id)
    except AppError as e:
        raise handle_app_error(e) from e
    return MessageResponse(message="Blog deleted successfully")


@admin_router.post(
    "/{blog_id}/featured-image",
    response_model=BlogResponse,
    summary="Upload featured image",
)
async def upload_featured_image(
    blog_id: UUID,
    blog_service: BlogServiceDep,
    admin: AdminUser,
    file: Annotated[UploadFile, File(description="Image file to upload")],
    alt_text: Annotated[str | None, Form(max_length=200)] = None,
) -> BlogResponse:
    """Upload a featured image, replacing (and deleting) the previous one."""
    logger.info(
        "featured_image_upload_request",
        blog_id=str(blog_id),
        filename=file.filename,
        content_type=file.content_type,
    )
    try:
        blog = await blog_service.set_featured_image(
            blog_id,
            await file.read(),
            file.content_type or "application/octet-stream",
            alt_text,
        )
    except AppError as e:
        raise handle_app_error(e) from e
    return BlogResponse.from_blog(blog, admin.id)


@admin_router.post(
    "/{blog_id}/images",
    response_model=BlogResponse,
    summary="Upload content images",
)
async def upload_content_images(
    blog_id: UUID,
    blog_service: BlogServiceDep,
    admin: AdminUser,
    files: Annotated[list[UploadFile], File(description="Image files to upload")],
    alt_texts: Annotated[list[str] | None, Form()] = None,
) -> BlogResponse:
    """Replace the content images of a blog."""
    logger.info("content_images_upload_request", blog_id=str(blog_id), count=len(files))
    try:
        blog = await blog_service.set_content_images(
            blog_id,
            [
                (await file.read(), file.content_type or "application/octet-stream")
                for file in files
            ],
            alt_texts,
        )
    except AppError as e:
        raise handle_app_error(e) from e
    return BlogResponse.from_blog(blog, admin.id)
