"""Pagination for Forge listings.

Slices an ordered sequence of item references into fixed-size pages. Page 1 of a
listing lives at its base path and page N at ``<base>/page/N/``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class PageLink:
    number: int
    path: str
    is_current: bool


def page_path(base_path: str, page: int) -> str:
    """Return the URL path of page ``page`` of a listing rooted at ``base_path``.

    Examples:
        >>> page_path("", 1)
        '/'
        >>> page_path("tags/python", 3)
        'tags/python/page/3/'
    """
    base = base_path.rstrip("/")
    if page == 1:
        return f"{base}/"
    return f"{base}/page/{page}/"


def total_pages_for(total_items: int, items_per_page: int) -> int:
    if items_per_page <= 0:
        raise ValueError("items_per_page must be greater than 0")
    return max(1, -(-total_items // items_per_page))


@dataclass
class Paginator:
    """One page of a paginated listing.

    Attributes:
        current_page: 1-based number of this page.
        total_pages: Number of pages, at least 1.
        total_items: Number of items across all pages.
        items_per_page: Page size.
        prev_path: Path of the previous page, None on the first page.
        next_path: Path of the next page, None on the last page.
        pages: Links to every page of the listing.
        items: The items shown on this page.
    """

    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    prev_path: str | None
    next_path: str | None
    pages: list[PageLink] = field(default_factory=list)
    items: list[Any] = field(default_factory=list)

    @property
    def has_prev(self) -> bool:
        return self.prev_path is not None

    @property
    def has_next(self) -> bool:
        return self.next_path is not None

    @classmethod
    def new(
        cls,
        items: Sequence[Any],
        items_per_page: int,
        page_number: int,
        base_path: str,
    ) -> Paginator:
        """Create the paginator for one page.

        Args:
            items: All items of the listing, in display order.
            items_per_page: Page size; must be positive.
            page_number: Requested page, clamped into ``[1, total_pages]``.
            base_path: Path of the listing's first page.

        Returns:
            Paginator for the requested page.

        Raises:
            ValueError: If ``items_per_page`` is not positive.
        """
        total_items = len(items)
        total_pages = total_pages_for(total_items, items_per_page)
        current = min(max(page_number, 1), total_pages)
        start = (current - 1) * items_per_page
        return cls(
            current_page=current,
            total_pages=total_pages,
            total_items=total_items,
            items_per_page=items_per_page,
            prev_path=page_path(base_path, current - 1) if current > 1 else None,
            next_path=page_path(base_path, current + 1) if current < total_pages else None,
            pages=[
                PageLink(number=n, path=page_path(base_path, n), is_current=n == current)
                for n in range(1, total_pages + 1)
            ],
            items=list(items[start:start + items_per_page]),
        )


def paginate_all(
    items: Sequence[Any], items_per_page: int, base_path: str
) -> list[Paginator]:
    """Create a paginator for every page of a listing.

    Zero items still produce a single, empty page.
    """
    total_pages = total_pages_for(len(items), items_per_page)
    return [
        Paginator.new(items, items_per_page, page, base_path)
        for page in range(1, total_pages + 1)
    ]
