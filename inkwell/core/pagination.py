"""In-application sorting and page/limit pagination.

Cassandra secondary-index queries come back unordered, so listings are
sorted and sliced here after filtering.
"""

from collections.abc import Sequence
from math import ceil
from typing import Any, TypeVar

from pydantic import BaseModel

from inkwell.core.exceptions import InvalidArgumentError


T = TypeVar("T")


class Pagination(BaseModel):
    """Pagination metadata returned alongside list results."""

    current: int
    pages: int
    total: int
    has_next: bool
    has_prev: bool


def sort_items(items: Sequence[T], sort: str, allowed: frozenset[str]) -> list[T]:
    """Sort entities by an attribute, ``-field`` meaning descending.

    Items whose attribute is ``None`` always sort last.

    Raises:
        InvalidArgumentError: If the field is not sortable.
    """
    field = sort.lstrip("-")
    if field not in allowed:
        raise InvalidArgumentError(
            f"Cannot sort by '{field}'. Allowed: {', '.join(sorted(allowed))}"
        )
    reverse = sort.startswith("-")

    present = [item for item in items if getattr(item, field) is not None]
    missing = [item for item in items if getattr(item, field) is None]
    present.sort(key=lambda item: _sort_key(getattr(item, field)), reverse=reverse)
    return present + missing


def _sort_key(value: Any) -> Any:
    if isinstance(value, str):
        return value.lower()
    return value


def paginate(items: Sequence[T], page: int, limit: int) -> tuple[list[T], Pagination]:
    """Slice one page out of ``items``.

    Args:
        items: Already filtered and sorted items.
        page: 1-based page number.
        limit: Page size.
    """
    total = len(items)
    pages = ceil(total / limit) if limit else 0
    skip = (page - 1) * limit
    return list(items[skip : skip + limit]), Pagination(
        current=page,
        pages=pages,
        total=total,
        has_next=page < pages,
        has_prev=page > 1,
    )
