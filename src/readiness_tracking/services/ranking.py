from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Callable, Generic, Sequence, TypeVar

T = TypeVar("T")

PAGE_SIZE_OPTIONS = (5, 10, 20)
DEFAULT_PAGE_SIZE = 10


def rank_by_score(items: Sequence[T], key: Callable[[T], float] | None = None) -> list[T]:
    """Sort by score descending and stamp a 1-based ``rank``.

    ``sorted`` is stable, so tied scores keep their input order.
    """
    score_of = key or (lambda item: item.composite_score)  # type: ignore[attr-defined]
    ordered = sorted(items, key=score_of, reverse=True)
    return [replace(item, rank=position) for position, item in enumerate(ordered, start=1)]  # type: ignore[type-var]


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    page: int
    page_size: int
    total_pages: int
    total_count: int

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


@dataclass(frozen=True)
class PaginationState:
    """Caller-owned table position; the engine never stores it."""

    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def with_page_size(self, page_size: int) -> "PaginationState":
        if page_size == self.page_size:
            return self
        return PaginationState(page=1, page_size=page_size)

    def with_page(self, page: int) -> "PaginationState":
        return PaginationState(page=page, page_size=self.page_size)


def normalize_page_size(page_size: int | None) -> int:
    if not page_size or page_size < 1:
        return DEFAULT_PAGE_SIZE
    return int(page_size)


def total_pages(total_count: int, page_size: int) -> int:
    return math.ceil(total_count / normalize_page_size(page_size)) if total_count else 0


def clamp_page(page: int | None, pages: int) -> int:
    if pages <= 0:
        return 1
    return max(1, min(pages, int(page or 1)))


def paginate(items: Sequence[T], page: int | None = 1, page_size: int | None = DEFAULT_PAGE_SIZE) -> Page[T]:
    size = normalize_page_size(page_size)
    count = len(items)
    pages = total_pages(count, size)
    current = clamp_page(page, pages)
    start = (current - 1) * size
    return Page(
        items=list(items[start : start + size]),
        page=current,
        page_size=size,
        total_pages=pages,
        total_count=count,
    )
