"""Blog service layer.

Business logic for:
- Blog CRUD and publishing (admin)
- Public listing, detail pages and categories
- Like/bookmark toggles
- Featured and content images
- Admin statistics
"""

from collections import Counter
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from inkwell.blogs.engagement import ToggleResult, toggle_engagement
from inkwell.blogs.models import (
    Blog,
    BlogCategory,
    BlogStatus,
    compute_read_time,
    create_blog,
    slugify,
)
from inkwell.blogs.schemas import (
    BlogStatsResponse,
    CategoryStats,
    CreateBlogRequest,
    StatsOverview,
    StatusStats,
    UpdateBlogRequest,
)
from inkwell.comments.models import Comment
from inkwell.core.database.collection import Document, update_with_retry
from inkwell.core.exceptions import BlogNotFoundError, InvalidArgumentError
from inkwell.core.pagination import Pagination, paginate, sort_items
from inkwell.storage.service import StorageError, StorageNotConfiguredError


if TYPE_CHECKING:
    from inkwell.core.database.collection import CassandraCollection
    from inkwell.storage.service import FirebaseStorageService


logger = structlog.get_logger(__name__)


SORTABLE_FIELDS = frozenset(
    {
        "created_at",
        "updated_at",
        "published_at",
        "title",
        "views",
        "likes_count",
        "comments_count",
    }
)

PUBLIC_SORTS = {"newest": "-published_at", "oldest": "published_at"}

RELATED_LIMIT = 3


def _matches_search(blog: Blog, term: str) -> bool:
    term = term.lower()
    return any(term in text.lower() for text in (blog.title, blog.excerpt, blog.content))


# ==============================================================================
# Blog Service
# ==============================================================================


class BlogService:
    """Service for blog management and engagement."""

    def __init__(
        self,
        blogs: "CassandraCollection",
        comments: "CassandraCollection",
        storage: "FirebaseStorageService | None" = None,
        max_update_attempts: int = 5,
        max_content_images: int = 10,
    ):
        """Initialize with the blogs and comments collections.

        Args:
            blogs: Blog documents
            comments: Comment documents, cleaned up when a blog is deleted
            storage: Image storage, optional (image endpoints fail without it)
            max_update_attempts: Retries for conditional writes
            max_content_images: Upper bound for content images per blog
        """
        self.blogs = blogs
        self.comments = comments
        self.storage = storage
        self.max_update_attempts = max_update_attempts
        self.max_content_images = max_content_images

    # ==========================================================================
    # Lookups
    # ==========================================================================

    async def get_blog(self, blog_id: UUID) -> Blog:
        """Get a blog by id regardless of status.

        Raises:
            BlogNotFoundError: If it does not exist
        """
        row = await self.blogs.find_by_id(blog_id)
        if row is None:
            raise BlogNotFoundError
        return Blog.from_row(row)

    async def get_blog_comments(self, blog_id: UUID) -> list[Comment]:
        """All comments of a blog, any status, oldest first."""
        rows = await self.comments.find(blog_id=blog_id)
        return sorted((Comment.from_row(row) for row in rows), key=lambda c: c.created_at)

    async def _unique_slug(self, title: str, exclude_id: UUID | None = None) -> str:
        """Slug for ``title``, suffixed with -2, -3... while taken by another blog."""
        base = slugify(title) or "post"
        slug = base
        suffix = 2
        while any(row["id"] != exclude_id for row in await self.blogs.find(slug=slug)):
            slug = f"{base}-{suffix}"
            suffix += 1
        return slug

    async def _published(self) -> list[Blog]:
        rows = await self.blogs.find(status=BlogStatus.PUBLISHED.value)
        return [Blog.from_row(row) for row in rows]

    # ==========================================================================
    # Admin CRUD
    # ==========================================================================

    async def list_blogs(
        self,
        *,
        status: BlogStatus | None = None,
        category: BlogCategory | None = None,
        author_id: UUID | None = None,
        featured: bool | None = None,
        search: str | None = None,
        sort: str = "-created_at",
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Blog], Pagination]:
        """List blogs of every status for the admin dashboard.

        Raises:
            InvalidArgumentError: If ``sort`` names an unsortable field
        """
        filters: Document = {}
        if status is not None:
            filters["status"] = status.value
        if category is not None:
            filters["category"] = category.value
        if author_id is not None:
            filters["author_id"] = author_id

        blogs = [Blog.from_row(row) for row in await self.blogs.find(**filters)]
        if featured is not None:
            blogs = [b for b in blogs if b.featured == featured]
        if search:
            blogs = [b for b in blogs if _matches_search(b, search)]

        return paginate(sort_items(blogs, sort, SORTABLE_FIELDS), page, limit)

    async def create_blog(
        self, data: CreateBlogRequest, author_id: UUID, author_name: str
    ) -> Blog:
        """Create a blog post with a unique slug."""
        blog = create_blog(
            title=data.title,
            slug=await self._unique_slug(data.title),
            excerpt=data.excerpt,
            content=data.content,
            category=data.category,
            author_id=author_id,
            author_name=author_name,
            tags=data.tags,
            status=data.status,
            featured=data.featured,
        )
        await self.blogs.insert(blog.to_row())

        logger.info(
            "blog_created",
            blog_id=str(blog.id),
            slug=blog.slug,
            status=blog.status.value,
        )
        return blog

    async def update_blog(self, blog_id: UUID, data: UpdateBlogRequest) -> Blog:
        """Apply a partial update.

        A new title regenerates the slug, new content the read time, and the
        first move to ``published`` stamps ``published_at``.

        Raises:
            BlogNotFoundError: If the blog does not exist
        """
        updates = {
            field: value.value if isinstance(value, Enum) else value
            for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items()
        }
        if "title" in updates:
            updates["slug"] = await self._unique_slug(updates["title"], exclude_id=blog_id)
        if "content" in updates:
            updates["read_time"] = compute_read_time(updates["content"])

        def mutate(document: Document) -> Document:
            now = datetime.now(UTC)
            changes = {**updates, "updated_at": now}
            if (
                updates.get("status") == BlogStatus.PUBLISHED.value
                and document.get("published_at") is None
            ):
                changes["published_at"] = now
            return changes

        written = await update_with_retry(
            self.blogs, blog_id, mutate, max_attempts=self.max_update_attempts
        )
        if written is None:
            raise BlogNotFoundError

        logger.info("blog_updated", blog_id=str(blog_id), fields=sorted(updates))
        return Blog.from_row(written)

    async def delete_blog(self, blog_id: UUID) -> None:
        """Delete a blog, its images and all of its comments.

        Raises:
            BlogNotFoundError: If the blog does not exist
        """
        blog = await self.get_blog(blog_id)

        public_ids = [image["public_id"] for image in blog.images if image.get("public_id")]
        if blog.featured_image and blog.featured_image.get("public_id"):
            public_ids.append(blog.featured_image["public_id"])
        for public_id in public_ids:
            await self._delete_image(public_id)

        comment_ids = [row["id"] for row in await self.comments.find(blog_id=blog_id)]
        deleted_comments = await self.comments.delete_many(comment_ids)

        if not await self.blogs.delete_one(blog_id):
            raise BlogNotFoundError

        logger.info(
            "blog_deleted",
            blog_id=str(blog_id),
            deleted_comments=deleted_comments,
            deleted_images=len(public_ids),
        )

    # ==========================================================================
    # Images
    # ==========================================================================

    def _require_storage(self) -> "FirebaseStorageService":
        if self.storage is None:
            raise StorageNotConfiguredError
        return self.storage

    async def _delete_image(self, public_id: str) -> None:
        """Best-effort removal of a stored image."""
        if self.storage is None or not self.storage.is_configured:
            return
        try:
            await self.storage.delete_image(public_id)
        except StorageError:
            logger.exception("blog_image_delete_failed", public_id=public_id)

    async def _replace_images(
        self, blog_id: UUID, field: str, value: object
    ) -> tuple[Document | None, object]:
        previous: list[object] = [None]

        def mutate(document: Document) -> Document:
            previous[0] = document.get(field)
            return {field: value, "updated_at": datetime.now(UTC)}

        written = await update_with_retry(
            self.blogs, blog_id, mutate, max_attempts=self.max_update_attempts
        )
        return written, previous[0]

    async def set_featured_image(
        self,
        blog_id: UUID,
        content: bytes,
        content_type: str,
        alt_text: str | None = None,
    ) -> Blog:
        """Upload a featured image and delete the one it replaces."""
        storage = self._require_storage()
        blog = await self.get_blog(blog_id)

        image = await storage.upload_image(
            content, content_type, "featured", str(blog_id), alt_text or blog.title
        )
        written, previous = await self._replace_images(blog_id, "featured_image", image)
        if written is None:
            await self._delete_image(image["public_id"])
            raise BlogNotFoundError

        if previous and previous.get("public_id"):
            await self._delete_image(previous["public_id"])

        logger.info("featured_image_set", blog_id=str(blog_id), public_id=image["public_id"])
        return Blog.from_row(written)

    async def set_content_images(
        self,
        blog_id: UUID,
        files: list[tuple[bytes, str]],
        alt_texts: list[str] | None = None,
    ) -> Blog:
        """Replace the content images of a blog.

        Args:
            blog_id: Target blog
            files: ``(content, content_type)`` per image
            alt_texts: Optional alt text per image, by position

        Raises:
            InvalidArgumentError: If no files or too many files are given
            BlogNotFoundError: If the blog does not exist
        """
        if not files:
            raise InvalidArgumentError("At least one image is required")
        if len(files) > self.max_content_images:
            raise InvalidArgumentError(
                f"At most {self.max_content_images} content images are allowed"
            )

        storage = self._require_storage()
        blog = await self.get_blog(blog_id)
        alt_texts = alt_texts or []

        images = []
        for position, (content, content_type) in enumerate(files):
            alt_text = alt_texts[position] if position < len(alt_texts) else ""
            images.append(
                await storage.upload_image(
                    content,
                    content_type,
                    "content",
                    str(blog_id),
                    alt_text or f"{blog.title} image {position + 1}",
                )
            )

        written, previous = await self._replace_images(blog_id, "images", images)
        if written is None:
            for image in images:
                await self._delete_image(image["public_id"])
            raise BlogNotFoundError

        for image in previous or ():
            if image.get("public_id"):
                await self._delete_image(image["public_id"])

        logger.info("content_images_set", blog_id=str(blog_id), count=len(images))
        return Blog.from_row(written)

    # ==========================================================================
    # Public reads
    # ==========================================================================

    async def list_published(
        self,
        *,
        category: BlogCategory | None = None,
        featured: bool | None = None,
        tags: set[str] | None = None,
        search: str | None = None,
        sort: str = "newest",
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Blog], Pagination]:
        """List published blogs with filters.

        Raises:
            InvalidArgumentError: If ``sort`` is neither newest nor oldest
        """
        if sort not in PUBLIC_SORTS:
            raise InvalidArgumentError("Sort must be 'newest' or 'oldest'")

        filters: Document = {"status": BlogStatus.PUBLISHED.value}
        if category is not None:
            filters["category"] = category.value

        blogs = [Blog.from_row(row) for row in await self.blogs.find(**filters)]
        if featured is not None:
            blogs = [b for b in blogs if b.featured == featured]
        if tags:
            blogs = [b for b in blogs if b.tags & tags]
        if search:
            blogs = [b for b in blogs if _matches_search(b, search)]

        return paginate(sort_items(blogs, PUBLIC_SORTS[sort], SORTABLE_FIELDS), page, limit)

    async def get_published_by_slug(self, slug: str) -> tuple[Blog, list[Blog]]:
        """Get a published blog, count the view, and pick related posts.

        Returns:
            The blog (with the view counted) and up to three published blogs
            of the same category, newest first.

        Raises:
            BlogNotFoundError: If no published blog has this slug
        """
        rows = await self.blogs.find(slug=slug, status=BlogStatus.PUBLISHED.value)
        if not rows:
            raise BlogNotFoundError

        written = await update_with_retry(
            self.blogs,
            rows[0]["id"],
            lambda document: {"views": (document.get("views") or 0) + 1},
            max_attempts=self.max_update_attempts,
        )
        if written is None:
            raise BlogNotFoundError
        blog = Blog.from_row(written)

        candidates = [
            Blog.from_row(row)
            for row in await self.blogs.find(
                category=blog.category.value, status=BlogStatus.PUBLISHED.value
            )
            if row["id"] != blog.id
        ]
        related = sort_items(candidates, "-published_at", SORTABLE_FIELDS)[:RELATED_LIMIT]
        return blog, related

    async def get_categories(self) -> list[tuple[BlogCategory, int]]:
        """Published blog counts per category, largest first."""
        counts = Counter(blog.category for blog in await self._published())
        return sorted(counts.items(), key=lambda item: (-item[1], item[0].value))

    async def get_featured(self, limit: int = 5) -> list[Blog]:
        featured = [blog for blog in await self._published() if blog.featured]
        return sort_items(featured, "-published_at", SORTABLE_FIELDS)[:limit]

    async def list_bookmarked(self, user_id: UUID) -> list[Blog]:
        """Published blogs bookmarked by the user, most recently bookmarked first."""
        bookmarked = [blog for blog in await self._published() if blog.is_bookmarked_by(user_id)]
        bookmarked.sort(key=lambda blog: blog.bookmarks[user_id], reverse=True)
        return bookmarked

    # ==========================================================================
    # Statistics
    # ==========================================================================

    async def get_stats(self) -> BlogStatsResponse:
        """Aggregate counts for the admin dashboard."""
        blogs = [Blog.from_row(row) for row in await self.blogs.find()]

        status_stats = []
        for blog_status in BlogStatus:
            group = [b for b in blogs if b.status == blog_status]
            if not group:
                continue
            status_stats.append(
                StatusStats(
                    status=blog_status,
                    count=len(group),
                    total_views=sum(b.views for b in group),
                    total_likes=sum(b.likes_count for b in group),
                    total_comments=sum(b.comments_count for b in group),
                )
            )

        published = [b for b in blogs if b.is_published]
        category_stats = []
        for category in BlogCategory:
            group = [b for b in published if b.category == category]
            if not group:
                continue
            category_stats.append(
                CategoryStats(
                    category=category,
                    count=len(group),
                    avg_views=round(sum(b.views for b in group) / len(group), 2),
                )
            )
        category_stats.sort(key=lambda stats: stats.count, reverse=True)

        return BlogStatsResponse(
            overview=StatsOverview(
                total_blogs=len(blogs),
                published_blogs=len(published),
                draft_blogs=sum(1 for b in blogs if b.status == BlogStatus.DRAFT),
            ),
            status_stats=status_stats,
            category_stats=category_stats,
        )

    # ==========================================================================
    # Engagement
    # ==========================================================================

    async def toggle_like(self, blog_id: UUID, user_id: UUID) -> ToggleResult:
        """Like or unlike a blog.

        Raises:
            BlogNotFoundError: If the blog does not exist
        """
        result = await toggle_engagement(
            self.blogs,
            blog_id,
            "likes",
            "likes_count",
            user_id,
            max_attempts=self.max_update_attempts,
        )
        if result is None:
            raise BlogNotFoundError

        logger.info("blog_like_toggled", blog_id=str(blog_id), liked=result.member)
        return result

    async def toggle_bookmark(self, blog_id: UUID, user_id: UUID) -> ToggleResult:
        """Bookmark or un-bookmark a blog.

        Raises:
            BlogNotFoundError: If the blog does not exist
        """
        result = await toggle_engagement(
            self.blogs,
            blog_id,
            "bookmarks",
            "bookmarks_count",
            user_id,
            max_attempts=self.max_update_attempts,
        )
        if result is None:
            raise BlogNotFoundError

        logger.info("blog_bookmark_toggled", blog_id=str(blog_id), bookmarked=result.member)
        return result
