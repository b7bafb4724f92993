"""Tests for in-application sorting and pagination."""

from dataclasses import dataclass
from datetime import datetime

import pytest

from inkwell.core.exceptions import InvalidArgumentError
from inkwell.core.pagination import paginate, sort_items


@dataclass
class Item:
    title: str
    created_at: datetime | None


ALLOWED = frozenset({"title", "created_at"})


class TestSortItems:
    def test_descending_with_missing_values_last(self) -> None:
        items = [
            Item("a", datetime(2026, 1, 1)),
            Item("b", None),
            Item("c", datetime(2026, 3, 1)),
        ]

        ordered = sort_items(items, "-created_at", ALLOWED)

        assert [i.title for i in ordered] == ["c", "a", "b"]

    def test_strings_sort_case_insensitively(self) -> None:
        items = [Item("beta", None), Item("Alpha", None), Item("gamma", None)]
        assert [i.title for i in sort_items(items, "title", ALLOWED)] == [
            "Alpha",
            "beta",
            "gamma",
        ]

    def test_unknown_field(self) -> None:
        with pytest.raises(InvalidArgumentError):
            sort_items([], "-secret", ALLOWED)


class TestPaginate:
    @pytest.mark.parametrize(
        ("page", "expected", "has_next", "has_prev"),
        [
            (1, [0, 1, 2], True, False),
            (2, [3, 4, 5], True, True),
            (3, [6], False, True),
            (4, [], False, True),
        ],
    )
    def test_pages(
        self, page: int, expected: list[int], has_next: bool, has_prev: bool
    ) -> None:
        items, pagination = paginate(list(range(7)), page, 3)

        assert items == expected
        assert pagination.pages == 3
        assert pagination.total == 7
        assert pagination.current == page
        assert pagination.has_next is has_next
        assert pagination.has_prev is has_prev

    def test_empty(self) -> None:
        items, pagination = paginate([], 1, 10)
        assert items == []
        assert pagination.pages == 0
        assert pagination.has_next is False
