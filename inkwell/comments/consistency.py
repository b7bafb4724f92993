"""Comment/reply consistency engine.

Keeps the data derived from comments in line with the comments themselves:

- ``Blog.comments_count`` equals the number of active comments of the blog.
  It is always recomputed from the comments, never incremented, so every
  reconciliation also repairs earlier drift.
- ``Comment.replies`` holds exactly the ids of the comment's direct
  children, each once.

The hooks are called explicitly by the comment service after the primary
write. Reconciliation is the last step of every hook and runs even when an
earlier step failed; its own failures are logged and never raised.
"""

from collections import deque
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from inkwell.comments.models import Comment, CommentStatus
from inkwell.core.database.collection import Document, update_with_retry
from inkwell.core.exceptions import ConflictError


if TYPE_CHECKING:
    from inkwell.core.database.collection import CassandraCollection


logger = structlog.get_logger(__name__)


# ==============================================================================
# Counter Reconciler
# ==============================================================================


async def _write_comment_count(
    comments: "CassandraCollection",
    blogs: "CassandraCollection",
    blog_id: UUID,
    max_attempts: int,
) -> int | None:
    # The blog version is read before counting, so a reconcile that
    # finishes in between invalidates our write and we count again.
    for attempt in range(1, max_attempts + 1):
        blog = await blogs.find_by_id(blog_id)
        if blog is None:
            return None

        count = await comments.count_documents(
            blog_id=blog_id, status=CommentStatus.ACTIVE.value
        )
        if blog.get("comments_count") == count:
            return count

        version = blog.get("version") or 0
        if await blogs.update(blog_id, {"comments_count": count}, expected_version=version):
            return count

        logger.info(
            "comment_count_reconcile_conflict",
            blog_id=str(blog_id),
            attempt=attempt,
        )

    raise ConflictError


async def reconcile_comment_count(
    comments: "CassandraCollection",
    blogs: "CassandraCollection",
    blog_id: UUID,
    *,
    max_attempts: int = 5,
) -> int | None:
    """Recount the active comments of a blog and store the result.

    Returns:
        The stored count, or None if the blog is gone or the write failed.
    """
    try:
        count = await _write_comment_count(comments, blogs, blog_id, max_attempts)
    except Exception:
        logger.exception("comment_count_reconcile_failed", blog_id=str(blog_id))
        return None

    if count is None:
        logger.warning("comment_count_reconcile_blog_missing", blog_id=str(blog_id))
    else:
        logger.debug("comment_count_reconciled", blog_id=str(blog_id), comments_count=count)
    return count


# ==============================================================================
# Reply-Graph Maintainer
# ==============================================================================


def link_reply(document: Document, reply_id: UUID) -> Document:
    """Append ``reply_id`` to ``replies`` unless it is already there."""
    replies = list(document.get("replies") or ())
    if reply_id in replies:
        return {}
    return {"replies": [*replies, reply_id]}


def unlink_reply(document: Document, reply_id: UUID) -> Document:
    """Remove every occurrence of ``reply_id`` from ``replies``."""
    replies = list(document.get("replies") or ())
    if reply_id not in replies:
        return {}
    return {"replies": [r for r in replies if r != reply_id]}


async def collect_subtree(comments: "CassandraCollection", root_id: UUID) -> list[UUID]:
    """Ids of every descendant of ``root_id``, breadth first (root excluded)."""
    descendants: list[UUID] = []
    seen = {root_id}
    queue = deque([root_id])
    while queue:
        parent_id = queue.popleft()
        for row in await comments.find(parent_id=parent_id):
            if row["id"] in seen:
                continue
            seen.add(row["id"])
            descendants.append(row["id"])
            queue.append(row["id"])
    return descendants


async def on_comment_created(
    comments: "CassandraCollection",
    blogs: "CassandraCollection",
    comment: Comment,
    *,
    max_attempts: int = 5,
) -> None:
    """Link a new reply to its parent, then reconcile the blog count.

    If the parent cannot be updated the reply is deleted again before the
    error propagates, so a client retry never leaves an unlinked duplicate.
    """
    try:
        if comment.parent_id is not None:
            try:
                parent = await update_with_retry(
                    comments,
                    comment.parent_id,
                    lambda document: link_reply(document, comment.id),
                    max_attempts=max_attempts,
                )
            except Exception:
                logger.exception(
                    "reply_link_failed",
                    comment_id=str(comment.id),
                    parent_id=str(comment.parent_id),
                )
                await comments.delete_one(comment.id)
                raise

            if parent is None:
                logger.warning(
                    "reply_parent_missing",
                    comment_id=str(comment.id),
                    parent_id=str(comment.parent_id),
                )
    finally:
        await reconcile_comment_count(
            comments, blogs, comment.blog_id, max_attempts=max_attempts
        )


async def on_comment_deleted(
    comments: "CassandraCollection",
    blogs: "CassandraCollection",
    comment: Comment,
    *,
    max_attempts: int = 5,
) -> int:
    """Unlink a comment from its parent, then delete it with its whole subtree.

    The parent is updated before anything is deleted: if that fails nothing
    is gone and the delete can be retried. Descendants are deleted in
    reverse discovery order and the comment itself after them, so a cascade
    interrupted half way leaves the comment in place and deleting it again
    finishes the job.

    Returns:
        Number of comments deleted, the comment itself included.
    """
    deleted = 0
    try:
        if comment.parent_id is not None:
            await update_with_retry(
                comments,
                comment.parent_id,
                lambda document: unlink_reply(document, comment.id),
                max_attempts=max_attempts,
            )

        descendants = await collect_subtree(comments, comment.id)
        deleted += await comments.delete_many(reversed(descendants))
        if await comments.delete_one(comment.id):
            deleted += 1
    finally:
        await reconcile_comment_count(
            comments, blogs, comment.blog_id, max_attempts=max_attempts
        )

    logger.info(
        "comment_subtree_deleted",
        comment_id=str(comment.id),
        blog_id=str(comment.blog_id),
        deleted=deleted,
    )
    return deleted
