"""Pagination link construction for catalog listings."""
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional

DEFAULT_WINDOW = 3

FIRST_LABEL = 'First page'
PREVIOUS_LABEL = 'Previous'
NEXT_LABEL = 'Next'
LAST_LABEL = 'Last page'


@dataclass
class PaginationLink:
    """One entry of a pagination control.

    Number links are labelled with the page number; navigation links carry
    one of the ``*_LABEL`` constants.
    """

    label: str
    page: int
    active: bool = False

    def to_dict(self) -> Dict:
        return asdict(self)


def page_window(page: int, total_pages: int, window: int = DEFAULT_WINDOW) -> range:
    """Return the page numbers shown around *page*.

    The range is ``[page - window, page + window]`` clamped to
    ``[1, total_pages]``, so it shrinks near either end: with 5 pages and a
    window of 3, page 1 shows 1-4, page 2 shows 1-5 and page 5 shows 2-5.
    """
    first = max(1, page - window)
    last = min(total_pages, page + window)
    return range(first, last + 1)


def build_pagination(page: int, total_pages: int,
                     window: int = DEFAULT_WINDOW) -> Optional[List[PaginationLink]]:
    """Return the ordered link set for *page*, or ``None`` for a single page.

    Links are, in order: first/previous (only when ``page > 1``), the number
    window, next/last (only when ``page < total_pages``).

    Raises:
        ValueError: if *page* lies outside ``1..total_pages`` or *window* is
            negative.
    """
    if total_pages <= 1:
        return None
    if not 1 <= page <= total_pages:
        raise ValueError(f"page {page} is outside 1..{total_pages}")
    if window < 0:
        raise ValueError("window must not be negative")

    links: List[PaginationLink] = []
    if page > 1:
        links.append(PaginationLink(FIRST_LABEL, 1))
        links.append(PaginationLink(PREVIOUS_LABEL, page - 1))
    for number in page_window(page, total_pages, window):
        links.append(PaginationLink(str(number), number, active=number == page))
    if page < total_pages:
        links.append(PaginationLink(NEXT_LABEL, page + 1))
        links.append(PaginationLink(LAST_LABEL, total_pages))
    return links
