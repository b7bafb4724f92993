"""Blog posts: CRUD, publishing, listings and engagement toggles."""

from .models import BLOGS_TABLES_CQL, Blog, BlogCategory, BlogStatus
from .service import BlogNotFoundError, BlogService


__all__ = [
    "BLOGS_TABLES_CQL",
    "Blog",
    "BlogCategory",
    "BlogNotFoundError",
    "BlogService",
    "BlogStatus",
]
