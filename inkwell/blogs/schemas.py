"""Pydantic schemas for blogs."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from inkwell.comments.schemas import CommentResponse
from inkwell.core.pagination import Pagination

from .models import BlogCategory, BlogStatus, normalize_tags


if TYPE_CHECKING:
    from .models import Blog


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreateBlogRequest(BaseModel):
    """Request to create a blog post."""

    title: str = Field(..., min_length=1, max_length=200)
    excerpt: str = Field(..., min_length=1, max_length=300)
    content: str = Field(..., min_length=1)
    category: BlogCategory
    tags: set[str] = Field(
        default_factory=set, description="List or comma separated string"
    )
    status: BlogStatus = BlogStatus.DRAFT
    featured: bool = False

    @field_validator("title", "excerpt")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "Field cannot be empty"
            raise ValueError(msg)
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tags(cls, v: str | list[str] | None) -> set[str]:
        return normalize_tags(v)


class UpdateBlogRequest(BaseModel):
    """Partial update of a blog post; only fields sent are changed."""

    title: str | None = Field(None, min_length=1, max_length=200)
    excerpt: str | None = Field(None, min_length=1, max_length=300)
    content: str | None = Field(None, min_length=1)
    category: BlogCategory | None = None
    tags: set[str] | None = None
    status: BlogStatus | None = None
    featured: bool | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tags(cls, v: str | list[str] | None) -> set[str] | None:
        return None if v is None else normalize_tags(v)


# ==============================================================================
# Response Schemas
# ==============================================================================


class ImageResponse(BaseModel):
    public_id: str
    secure_url: str
    alt_text: str | None = None


class AuthorResponse(BaseModel):
    id: UUID
    name: str


class BlogSummaryResponse(BaseModel):
    """Blog without its body, used in lists."""

    id: UUID
    title: str
    slug: str
    excerpt: str
    category: BlogCategory
    tags: list[str]
    status: BlogStatus
    featured: bool
    featured_image: ImageResponse | None = None
    author: AuthorResponse
    read_time: int
    views: int
    likes_count: int
    bookmarks_count: int
    comments_count: int
    is_liked: bool = False
    is_bookmarked: bool = False
    published_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def summary_fields(cls, blog: "Blog", user_id: UUID | None) -> dict:
        return {
            "id": blog.id,
            "title": blog.title,
            "slug": blog.slug,
            "excerpt": blog.excerpt,
            "category": blog.category,
            "tags": sorted(blog.tags),
            "status": blog.status,
            "featured": blog.featured,
            "featured_image": blog.featured_image,
            "author": AuthorResponse(id=blog.author_id, name=blog.author_name),
            "read_time": blog.read_time,
            "views": blog.views,
            "likes_count": blog.likes_count,
            "bookmarks_count": blog.bookmarks_count,
            "comments_count": blog.comments_count,
            "is_liked": blog.is_liked_by(user_id),
            "is_bookmarked": blog.is_bookmarked_by(user_id),
            "published_at": blog.published_at,
            "created_at": blog.created_at,
            "updated_at": blog.updated_at,
        }

    @classmethod
    def from_blog(
        cls, blog: "Blog", user_id: UUID | None = None
    ) -> "BlogSummaryResponse":
        return cls(**cls.summary_fields(blog, user_id))


class BlogResponse(BlogSummaryResponse):
    """Full blog including body and content images."""

    content: str
    images: list[ImageResponse] = Field(default_factory=list)

    @classmethod
    def from_blog(cls, blog: "Blog", user_id: UUID | None = None) -> "BlogResponse":
        return cls(
            **cls.summary_fields(blog, user_id),
            content=blog.content,
            images=blog.images,
        )


class AdminBlogResponse(BlogResponse):
    """Blog as seen from the dashboard, with every comment attached."""

    comments: list[CommentResponse] = Field(default_factory=list)


class BlogListResponse(BaseModel):
    items: list[BlogSummaryResponse]
    pagination: Pagination


class BlogDetailResponse(BaseModel):
    """Public blog page: the post plus related posts of the same category."""

    blog: BlogResponse
    related: list[BlogSummaryResponse]


class CategoryCountResponse(BaseModel):
    category: BlogCategory
    count: int


class LikeToggleResponse(BaseModel):
    liked: bool
    count: int


class BookmarkToggleResponse(BaseModel):
    bookmarked: bool
    count: int


class StatusStats(BaseModel):
    status: BlogStatus
    count: int
    total_views: int
    total_likes: int
    total_comments: int


class CategoryStats(BaseModel):
    category: BlogCategory
    count: int
    avg_views: float


class StatsOverview(BaseModel):
    total_blogs: int
    published_blogs: int
    draft_blogs: int


class BlogStatsResponse(BaseModel):
    overview: StatsOverview
    status_stats: list[StatusStats]
    category_stats: list[CategoryStats]


class MessageResponse(BaseModel):
    success: bool = True
    message: str
