"""
Result caches and the pagination windowing shared by every listing.

Windowing:
    For a zero-based page and a page size P:
        lower = page * P
        upper = min(len(items), lower + P)
    A non-empty window [lower, upper) is returned (the last page may be
    short). An empty window means the page lies beyond the known data and
    raises EndOfResults.

Caches:
    TrendingCache  - one global list, filled once, never invalidated
    KeyedCache     - single slot (key, items); a new key or an empty list
                     makes it stale. Used for playlist content, channel
                     videos, and channel playlists.
    SearchCache    - last query, last active category, and one store per
                     category that survives category switches

The caches only hold state and answer staleness questions; the Fetcher
decides when to request and commits responses through the replace/merge
methods. Each commit is a plain synchronous assignment, so it is atomic
with respect to the event loop.
"""

from typing import Generic, Sequence, TypeVar

from tunefetch.core.exceptions import EndOfResults
from tunefetch.invidious.models import SearchCategory

T = TypeVar("T")

ITEM_PER_PAGE = 10


def page_bounds(length: int, page: int, page_size: int = ITEM_PER_PAGE) -> tuple[int, int]:
    """
    Return (lower, upper) of the window for a page over `length` items.

    Raises:
        ValueError: If page is negative or page_size is not positive.
    """
    if page < 0:
        raise ValueError(f"page must be non-negative, got {page}")
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}")
    lower = page * page_size
    upper = min(length, lower + page_size)
    return lower, upper


def paginate(items: Sequence[T], page: int, page_size: int = ITEM_PER_PAGE) -> list[T]:
    """
    Slice one page out of a cached sequence.

    Args:
        items: Cached records in display order.
        page: Zero-based page number.
        page_size: Items per page.

    Returns:
        A new list with min(page_size, len(items) - page * page_size) items.

    Raises:
        EndOfResults: If no cached item falls into the window.
        ValueError: If page is negative.

    Example:
        paginate(list(range(25)), 2)  # [20, 21, 22, 23, 24]
        paginate(list(range(25)), 3)  # raises EndOfResults
    """
    lower, upper = page_bounds(len(items), page, page_size)
    if upper > lower:
        return list(items[lower:upper])
    raise EndOfResults(page, len(items))


class TrendingCache(Generic[T]):
    """Global trending list. None until the first successful fetch."""

    def __init__(self) -> None:
        self.items: list[T] | None = None

    @property
    def is_populated(self) -> bool:
        return self.items is not None

    def replace(self, items: list[T]) -> None:
        self.items = list(items)


class KeyedCache(Generic[T]):
    """
    Single-slot cache holding the items of one key (playlist or channel id).

    State machine: Empty -> Populated(key, items). Populating a different
    key discards the previous items entirely, with no merge.

    Attributes:
        key: Identifier the items belong to, or None while empty.
        items: Cached records for key.
    """

    def __init__(self) -> None:
        self.key: str | None = None
        self.items: list[T] = []

    def is_stale(self, key: str) -> bool:
        """
        True if the cache cannot answer for `key`.

        A differing key is stale. An empty item list is always stale, so a
        listing that came back empty (or never populated) is fetched again
        instead of being treated as complete.
        """
        return key != self.key or not self.items

    def replace(self, key: str, items: list[T]) -> None:
        self.key = key
        self.items = list(items)


class SearchCache:
    """
    Search results for the last query, one store per category.

    Attributes:
        query: Query whose results the stores hold, or None before the
               first successful search.
        category: Category of the most recent search call, or None.
        stores: Mapping category -> cached records, in fetch order.

    Invariant:
        A category store is authoritative only while query equals the
        requested query. Switching category does not touch other stores.
    """

    def __init__(self) -> None:
        self.query: str | None = None
        self.category: SearchCategory | None = None
        self.stores: dict[SearchCategory, list] = {
            category: [] for category in SearchCategory
        }

    def store(self, category: SearchCategory) -> list:
        """Return the cached records for a category."""
        return self.stores[category]

    def is_new_query(self, query: str) -> bool:
        return query != self.query

    def is_new_category(self, category: SearchCategory) -> bool:
        return category != self.category

    def clear(self, category: SearchCategory) -> None:
        """Drop every record of a category, e.g. before fetching a new query."""
        self.stores[category] = []

    def merge(self, category: SearchCategory, query: str, items: list, reset: bool = False) -> int:
        """
        Commit one search response.

        Args:
            category: Category the response belongs to.
            query: Query the response answers.
            items: Decoded records.
            reset: Drop the category's previous records first.

        Returns:
            Number of records actually appended. Records whose id is
            already in the store are skipped, so re-requesting an
            under-filled page never duplicates entries. Repeated ids
            within one response are kept once.
        """
        current = [] if reset else list(self.stores[category])
        seen = {item.id for item in current}
        added = 0
        for item in items:
            if item.id in seen:
                continue
            seen.add(item.id)
            current.append(item)
            added += 1
        self.stores[category] = current
        self.query = query
        return added
