"""Database models for blog posts.

One row per blog. Engagement sets (``likes``/``bookmarks``) are stored as
``user_id -> liked_at`` maps next to their cached cardinalities so a
single versioned write updates both. ``comments_count`` is derived data
owned by the comment reconciler.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from inkwell.auth.models import ensure_utc_aware


class BlogCategory(str, Enum):
    """Blog categories."""

    DESIGN = "design"
    DEVELOPMENT = "development"
    UI_UX = "ui-ux"
    TUTORIAL = "tutorial"
    TIPS = "tips"


class BlogStatus(str, Enum):
    """Publication status."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


WORDS_PER_MINUTE = 200


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

BLOG_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.blogs (
    id UUID PRIMARY KEY,
    title TEXT,
    slug TEXT,
    excerpt TEXT,
    content TEXT,
    category TEXT,
    tags SET<TEXT>,
    status TEXT,
    featured BOOLEAN,
    featured_image FROZEN<MAP<TEXT, TEXT>>,
    images LIST<FROZEN<MAP<TEXT, TEXT>>>,
    author_id UUID,
    author_name TEXT,
    read_time INT,
    views INT,
    likes MAP<UUID, TIMESTAMP>,
    likes_count INT,
    bookmarks MAP<UUID, TIMESTAMP>,
    bookmarks_count INT,
    comments_count INT,
    published_at TIMESTAMP,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    version INT
)
"""

BLOG_SLUG_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS blogs_slug_idx ON {keyspace}.blogs (slug)
"""

BLOG_STATUS_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS blogs_status_idx ON {keyspace}.blogs (status)
"""

BLOG_CATEGORY_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS blogs_category_idx ON {keyspace}.blogs (category)
"""

BLOG_AUTHOR_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS blogs_author_idx ON {keyspace}.blogs (author_id)
"""

BLOGS_TABLES_CQL = [
    BLOG_TABLE_CQL,
    BLOG_SLUG_INDEX_CQL,
    BLOG_STATUS_INDEX_CQL,
    BLOG_CATEGORY_INDEX_CQL,
    BLOG_AUTHOR_INDEX_CQL,
]


# ==============================================================================
# Derived fields
# ==============================================================================


def slugify(title: str) -> str:
    """Lower-case the title and collapse every non-alphanumeric run to '-'."""
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower())
    return slug.strip("-")


def normalize_tags(tags: str | list[str] | set[str] | None) -> set[str]:
    """Accept a comma separated string or a list; trim and lower-case."""
    if tags is None:
        return set()
    if isinstance(tags, str):
        tags = tags.split(",")
    return {tag.strip().lower() for tag in tags if tag and tag.strip()}


def compute_read_time(content: str) -> int:
    """Estimated reading time in minutes (at least one)."""
    words = len(content.split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


# ==============================================================================
# Entities
# ==============================================================================


@dataclass
class Blog:
    """Blog post entity."""

    id: UUID
    title: str
    slug: str
    excerpt: str
    content: str
    category: BlogCategory
    status: BlogStatus
    author_id: UUID
    author_name: str
    created_at: datetime
    updated_at: datetime
    tags: set[str] = field(default_factory=set)
    featured: bool = False
    featured_image: dict[str, str] | None = None
    images: list[dict[str, str]] = field(default_factory=list)
    read_time: int = 1
    views: int = 0
    likes: dict[UUID, datetime] = field(default_factory=dict)
    likes_count: int = 0
    bookmarks: dict[UUID, datetime] = field(default_factory=dict)
    bookmarks_count: int = 0
    comments_count: int = 0
    published_at: datetime | None = None
    version: int = 1

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Blog":
        """Create Blog from a stored document.

        Cassandra returns empty collections as None.
        """
        return cls(
            id=row["id"],
            title=row["title"],
            slug=row["slug"],
            excerpt=row.get("excerpt") or "",
            content=row.get("content") or "",
            category=BlogCategory(row["category"]),
            status=BlogStatus(row.get("status") or BlogStatus.DRAFT.value),
            author_id=row["author_id"],
            author_name=row.get("author_name") or "",
            created_at=ensure_utc_aware(row["created_at"]),
            updated_at=ensure_utc_aware(row.get("updated_at") or row["created_at"]),
            tags=set(row.get("tags") or ()),
            featured=bool(row.get("featured")),
            featured_image=dict(row["featured_image"]) if row.get("featured_image") else None,
            images=[dict(image) for image in row.get("images") or ()],
            read_time=row.get("read_time") or 1,
            views=row.get("views") or 0,
            likes=dict(row.get("likes") or {}),
            likes_count=row.get("likes_count") or 0,
            bookmarks=dict(row.get("bookmarks") or {}),
            bookmarks_count=row.get("bookmarks_count") or 0,
            comments_count=row.get("comments_count") or 0,
            published_at=ensure_utc_aware(row.get("published_at")),
            version=row.get("version") or 1,
        )

    def to_row(self) -> dict[str, Any]:
        """Convert to the stored document shape (``version`` is store-managed)."""
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "excerpt": self.excerpt,
            "content": self.content,
            "category": self.category.value,
            "tags": set(self.tags),
            "status": self.status.value,
            "featured": self.featured,
            "featured_image": self.featured_image,
            "images": list(self.images),
            "author_id": self.author_id,
            "author_name": self.author_name,
            "read_time": self.read_time,
            "views": self.views,
            "likes": dict(self.likes),
            "likes_count": self.likes_count,
            "bookmarks": dict(self.bookmarks),
            "bookmarks_count": self.bookmarks_count,
            "comments_count": self.comments_count,
            "published_at": self.published_at,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @property
    def is_published(self) -> bool:
        return self.status == BlogStatus.PUBLISHED

    def is_liked_by(self, user_id: UUID | None) -> bool:
        return user_id is not None and user_id in self.likes

    def is_bookmarked_by(self, user_id: UUID | None) -> bool:
        return user_id is not None and user_id in self.bookmarks


def create_blog(
    title: str,
    slug: str,
    excerpt: str,
    content: str,
    category: BlogCategory,
    author_id: UUID,
    author_name: str,
    tags: set[str] | None = None,
    status: BlogStatus = BlogStatus.DRAFT,
    featured: bool = False,
) -> Blog:
    """Create a new blog with default values."""
    now = datetime.now(UTC)
    return Blog(
        id=uuid4(),
        title=title,
        slug=slug,
        excerpt=excerpt,
        content=content,
        category=category,
        status=status,
        author_id=author_id,
        author_name=author_name,
        created_at=now,
        updated_at=now,
        tags=tags or set(),
        featured=featured,
        read_time=compute_read_time(content),
        published_at=now if status == BlogStatus.PUBLISHED else None,
    )
