"""Threaded comments with moderation and count reconciliation."""

from .models import COMMENTS_TABLES_CQL, Comment, CommentStatus, FlagReason
from .service import CommentNotFoundError, CommentService


__all__ = [
    "COMMENTS_TABLES_CQL",
    "Comment",
    "CommentNotFoundError",
    "CommentService",
    "CommentStatus",
    "FlagReason",
]
