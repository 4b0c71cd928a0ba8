"""Catalog listing: filtering, sorting and paging of games.

The engine reads the whole catalog from its repository and does all the
filtering, sorting and windowing in memory, so page contents and ordering
only depend on the games' titles, ids and tags.

Pipeline::

    all games -> search filter -> tag filter -> total -> sort -> page window
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from .pagination import DEFAULT_WINDOW, PaginationLink, build_pagination

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10


class InvalidListingParameter(ValueError):
    """Raised for a page or page size the engine cannot serve."""


class SortKey(Enum):
    DEFAULT = 'Default'
    TITLE = 'Title'


class Direction(Enum):
    ASCENDING = 'Ascending'
    DESCENDING = 'Descending'


@dataclass
class ListingFilter:
    """Search text and required tags.

    ``search`` is matched as a case-sensitive substring of the title; an
    empty or missing value disables it.  ``tags`` holds tag ids and a game
    must carry *all* of them.
    """

    search: Optional[str] = None
    tags: Set[int] = field(default_factory=set)

    def matches_search(self, game) -> bool:
        return not self.search or self.search in (game.title or '')

    def matches_tags(self, game) -> bool:
        if not self.tags:
            return True
        return self.tags <= {tag.id for tag in game.tags}

    def apply(self, games: Iterable) -> List:
        matched = [g for g in games if self.matches_search(g)]
        return [g for g in matched if self.matches_tags(g)]


@dataclass
class Sorting:
    """Sort key plus optional direction.

    Without an explicit direction, title sorting is descending and the
    default (catalog order by id) is ascending.
    """

    key: SortKey = SortKey.DEFAULT
    direction: Optional[Direction] = None

    @property
    def effective_direction(self) -> Direction:
        if self.direction is not None:
            return self.direction
        if self.key is SortKey.TITLE:
            return Direction.DESCENDING
        return Direction.ASCENDING

    def apply(self, games: Iterable) -> List:
        # plain string comparison: "Game 1" < "Game 10" < "Game 2"
        if self.key is SortKey.TITLE:
            sort_key = lambda g: g.title or ''
        else:
            sort_key = lambda g: g.id
        reverse = self.effective_direction is Direction.DESCENDING
        return sorted(games, key=sort_key, reverse=reverse)


@dataclass
class ListingQuery:
    """Everything a listing request asks for."""

    filter: ListingFilter = field(default_factory=ListingFilter)
    sorting: Sorting = field(default_factory=Sorting)
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE


@dataclass
class Page:
    """One page of a listing plus the numbers needed to render it."""

    items: List
    total: int
    page: int
    page_size: int
    pagination: Optional[List[PaginationLink]] = None

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size)

    @property
    def offset_from(self) -> int:
        """1-based position of the first item, 0 for an empty listing."""
        if self.total == 0:
            return 0
        return (self.page - 1) * self.page_size + 1

    @property
    def offset_to(self) -> int:
        return min(self.page * self.page_size, self.total)

    def summary(self) -> str:
        return (f"Showing {len(self.items)} games from {self.offset_from} "
                f"to {self.offset_to} of {self.total} games")

    def to_dict(self, serialize_item: Callable[[Any], Dict]) -> Dict:
        return {
            'items': [serialize_item(item) for item in self.items],
            'total': self.total,
            'page': self.page,
            'page_size': self.page_size,
            'offset_from': self.offset_from,
            'offset_to': self.offset_to,
            'total_pages': self.total_pages,
            'pagination': ([link.to_dict() for link in self.pagination]
                           if self.pagination is not None else None),
            'summary': self.summary(),
        }


class ListingQueryEngine:
    """Filter, sort and page the catalog.

    Args:
        repository:    Catalog accessor exposing ``all_games()`` (see
                       :class:`~app.repositories.game_repository.GameRepository`).
        max_page_size: Largest page size accepted, ``None`` for no limit.
        window:        Number of page links shown on each side of the
                       current page.
    """

    def __init__(self, repository, max_page_size: Optional[int] = None,
                 window: int = DEFAULT_WINDOW) -> None:
        self._repo = repository
        self._max_page_size = max_page_size
        self._window = window

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def list(self, listing_filter: Optional[ListingFilter] = None,
             sorting: Optional[Sorting] = None,
             page: int = DEFAULT_PAGE,
             page_size: int = DEFAULT_PAGE_SIZE) -> Page:
        """Return the requested page of the filtered, sorted catalog.

        A *page* past the last page is clamped to the last page.

        Raises:
            InvalidListingParameter: if *page* or *page_size* is below 1, or
                *page_size* exceeds the configured maximum.
        """
        self._validate(page, page_size)
        listing_filter = listing_filter or ListingFilter()
        sorting = sorting or Sorting()

        matched = listing_filter.apply(self._repo.all_games())
        total = len(matched)
        total_pages = math.ceil(total / page_size)
        if total and page > total_pages:
            logger.debug("Page %d past last page %d, clamping", page, total_pages)
            page = total_pages

        ordered = sorting.apply(matched)
        start = (page - 1) * page_size
        items = ordered[start:start + page_size]

        logger.debug("Listing search=%r tags=%s sort=%s/%s page=%d size=%d -> %d of %d",
                     listing_filter.search, sorted(listing_filter.tags),
                     sorting.key.value, sorting.effective_direction.value,
                     page, page_size, len(items), total)
        return Page(
            items=items,
            total=total,
            page=page,
            page_size=page_size,
            pagination=build_pagination(page, total_pages, self._window),
        )

    def run(self, query: ListingQuery) -> Page:
        """Execute a parsed :class:`ListingQuery`."""
        return self.list(query.filter, query.sorting, query.page, query.page_size)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _validate(self, page, page_size) -> None:
        if not isinstance(page, int) or page < 1:
            raise InvalidListingParameter(f"page must be a positive integer, got {page!r}")
        if not isinstance(page_size, int) or page_size < 1:
            raise InvalidListingParameter(
                f"page size must be a positive integer, got {page_size!r}")
        if self._max_page_size is not None and page_size > self._max_page_size:
            raise InvalidListingParameter(
                f"page size must not exceed {self._max_page_size}, got {page_size}")


# ---------------------------------------------------------------------------
# Request parsing
# ---------------------------------------------------------------------------

_SEARCH_KEYS = ('filter[search]', 'filter.search', 'search')
_TAG_KEYS = ('filter[tags][]', 'filter[tags]', 'filter.tags[]', 'filter.tags', 'tags')
_DIRECTION_ALIASES = {
    'ascending': Direction.ASCENDING,
    'asc': Direction.ASCENDING,
    'descending': Direction.DESCENDING,
    'desc': Direction.DESCENDING,
}


def _getlist(args, key: str) -> List[str]:
    """Read every value of *key* from a MultiDict or a plain dict."""
    if hasattr(args, 'getlist'):
        return args.getlist(key)
    value = args.get(key)
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def _first(args, keys) -> Optional[str]:
    for key in keys:
        values = _getlist(args, key)
        if values:
            return values[0]
    return None


def _to_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_listing_args(args, default_page_size: int = DEFAULT_PAGE_SIZE) -> ListingQuery:
    """Build a :class:`ListingQuery` from request query parameters.

    Understands ``page``, ``limit``, ``sorting``, ``direction``,
    ``filter[search]`` and ``filter[tags][]`` (dotted and bare spellings are
    accepted too).  Non-numeric ``page``/``limit`` values fall back to the
    defaults, unknown sort keys fall back to the default order and tag ids
    that are not integers are dropped.  Range checks are left to
    :class:`ListingQueryEngine`.
    """
    page = _to_int(_first(args, ('page',)), DEFAULT_PAGE)
    page_size = _to_int(_first(args, ('limit',)), default_page_size)

    sorting = Sorting()
    sort_value = (_first(args, ('sorting',)) or '').strip().lower()
    for key in SortKey:
        if key.value.lower() == sort_value:
            sorting.key = key
    direction_value = (_first(args, ('direction',)) or '').strip().lower()
    sorting.direction = _DIRECTION_ALIASES.get(direction_value)

    search = _first(args, _SEARCH_KEYS) or None
    tags: Set[int] = set()
    for key in _TAG_KEYS:
        for value in _getlist(args, key):
            tag_id = _to_int(value, None)
            if tag_id is not None:
                tags.add(tag_id)
            else:
                logger.debug("Ignoring non-numeric tag id %r", value)

    return ListingQuery(
        filter=ListingFilter(search=search, tags=tags),
        sorting=sorting,
        page=page,
        page_size=page_size,
    )
