"""
Fetcher: cached, paginated access to the mirror API.

Every public retrieval operation follows the same flow:

    1. Consult the cache slot for the operation
    2. Decide whether a request is needed (cache empty, key changed,
       category switched, or page not yet covered)
    3. Issue the request through the RequestExecutor
    4. Commit the response to the cache (replace or append)
    5. Return the requested page window from the cache

A single fetch can satisfy the requested page and prime the following ones:
playlist, channel, and trending endpoints return the whole collection at
once, and later pages are then served without any request.

Concurrency:
    The caches and the server cursor are shared mutable state. Every
    operation runs under one asyncio.Lock, so concurrent callers on the
    same Fetcher are serialised. Within an operation the response is fully
    decoded before it is committed, and the commit itself contains no
    await, so cancelling a call never leaves a half-merged cache. The only
    change made before a request is clearing an invalidated search store.

Usage:
    async with Fetcher(config.servers) as fetcher:
        page = await fetcher.search_music("chill", 0)
        for unit in page:
            print(unit.title, unit.duration_str, unit.url)
"""

import asyncio
from typing import Any, Awaitable, Callable, Iterable, TypeVar
from urllib.parse import quote

import aiohttp

from tunefetch.core.config import DEFAULT_REGION
from tunefetch.core.exceptions import RetryableError
from tunefetch.core.logger import get_logger
from tunefetch.invidious.cache import (
    ITEM_PER_PAGE,
    KeyedCache,
    SearchCache,
    TrendingCache,
    page_bounds,
    paginate,
)
from tunefetch.invidious.client import REQUEST_PER_SERVER, RequestExecutor
from tunefetch.invidious.models import (
    ArtistUnit,
    MusicUnit,
    PlaylistUnit,
    SearchCategory,
    decode_units,
)
from tunefetch.invidious.servers import ServerPool

logger = get_logger(__name__)

T = TypeVar("T")

# Trending is fetched once per session, so it gets one extra retry
TRENDING_RETRY_BUDGET = 2
DEFAULT_RETRY_BUDGET = 1


def _envelope(key: str) -> Callable[[Any], Any]:
    """Return a function extracting payload[key] from a JSON object."""
    def extract(payload: Any) -> Any:
        if not isinstance(payload, dict):
            raise TypeError(f"Expected JSON object, got {type(payload).__name__}")
        return payload[key]
    return extract


def _channel_videos(payload: Any) -> Any:
    # Older mirrors answer with a bare list, newer ones with {"videos": [...]}
    if isinstance(payload, dict):
        return payload["videos"]
    return payload


class Fetcher:
    """
    Orchestrates caching, request execution, and pagination.

    Attributes:
        pool: Mirrors the requests go to.
        executor: Sends and decodes the requests.
        region: Region code for trending and search.
        page_size: Items per page (10).
        trending: Trending cache.
        playlist_content: Playlist-id -> videos cache.
        channel_videos: Channel-id -> videos cache.
        channel_playlists: Channel-id -> playlists cache.
        search_results: Per-category search cache.

    Retry budget:
        Every operation accepts retry_budget. With budget > 0 a transport
        failure raises RetryableError after rotating the server; with 0 it
        raises FetchFailedError. Looping is up to the caller, see
        fetch_with_failover().
    """

    def __init__(
        self,
        servers: Iterable[str],
        session: aiohttp.ClientSession | None = None,
        region: str = DEFAULT_REGION,
        request_per_server: int = REQUEST_PER_SERVER,
        page_size: int = ITEM_PER_PAGE,
        timeout: float | None = None,
    ) -> None:
        """
        Args:
            servers: Base URLs of equivalent mirrors, e.g. from load_config().
            session: Optional aiohttp session (not closed by the Fetcher).
            region: Region code sent with trending and search requests.
            request_per_server: Requests before periodic server rotation.
            page_size: Items per page.
            timeout: Total request timeout in seconds for an owned session.

        Raises:
            ConfigError: If servers is empty.
        """
        self.pool = ServerPool(servers)
        self.executor = RequestExecutor(
            self.pool,
            session=session,
            request_per_server=request_per_server,
            timeout=timeout,
        )
        self.region = region
        self.page_size = page_size

        self.trending: TrendingCache[MusicUnit] = TrendingCache()
        self.playlist_content: KeyedCache[MusicUnit] = KeyedCache()
        self.channel_videos: KeyedCache[MusicUnit] = KeyedCache()
        self.channel_playlists: KeyedCache[PlaylistUnit] = KeyedCache()
        self.search_results = SearchCache()

        self._lock = asyncio.Lock()

    async def __aenter__(self) -> "Fetcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Release the HTTP session if the Fetcher owns it."""
        await self.executor.close()

    @property
    def active_server(self) -> str:
        """Base URL requests currently go to."""
        return self.pool.active

    def change_server(self) -> str:
        """Rotate to the next mirror manually. Returns the new active URL."""
        return self.pool.rotate()

    # =========================================================================
    # Trending
    # =========================================================================

    async def get_trending_music(
        self,
        page: int,
        retry_budget: int = TRENDING_RETRY_BUDGET
    ) -> list[MusicUnit]:
        """
        Return one page of trending music.

        The whole trending list is fetched on the first call and kept for
        the lifetime of the Fetcher.

        Raises:
            EndOfResults: Page beyond the trending list.
            RetryableError, FetchFailedError: See RequestExecutor.execute().
        """
        async with self._lock:
            if not self.trending.is_populated:
                path = (
                    f"/trending?type=Music&region={quote(self.region)}"
                    f"&fields={SearchCategory.MUSIC.fields}"
                )
                units = await self.executor.execute(
                    path,
                    lambda payload: decode_units(payload, MusicUnit.from_api_result),
                    retry_budget=retry_budget,
                )
                self.trending.replace(units)
                logger.info(f"Cached {len(units)} trending tracks")

            return paginate(self.trending.items, page, self.page_size)

    # =========================================================================
    # Playlist and channel listings
    # =========================================================================

    async def get_playlist_content(
        self,
        playlist_id: str,
        page: int,
        retry_budget: int = DEFAULT_RETRY_BUDGET
    ) -> list[MusicUnit]:
        """Return one page of the videos in a playlist."""
        extract = _envelope("videos")
        return await self._get_keyed(
            self.playlist_content,
            playlist_id,
            page,
            f"/playlists/{quote(playlist_id, safe='')}?fields=videos",
            lambda payload: decode_units(extract(payload), MusicUnit.from_api_result),
            retry_budget,
        )

    async def get_playlist_of_channel(
        self,
        channel_id: str,
        page: int,
        retry_budget: int = DEFAULT_RETRY_BUDGET
    ) -> list[PlaylistUnit]:
        """Return one page of the playlists published by a channel."""
        extract = _envelope("playlists")
        return await self._get_keyed(
            self.channel_playlists,
            channel_id,
            page,
            f"/channels/{quote(channel_id, safe='')}/playlists?fields=playlists",
            lambda payload: decode_units(extract(payload), PlaylistUnit.from_api_result),
            retry_budget,
        )

    async def get_videos_of_channel(
        self,
        channel_id: str,
        page: int,
        retry_budget: int = DEFAULT_RETRY_BUDGET
    ) -> list[MusicUnit]:
        """Return one page of the videos uploaded by a channel."""
        return await self._get_keyed(
            self.channel_videos,
            channel_id,
            page,
            f"/channels/{quote(channel_id, safe='')}/videos",
            lambda payload: decode_units(_channel_videos(payload), MusicUnit.from_api_result),
            retry_budget,
        )

    async def _get_keyed(
        self,
        cache: KeyedCache[T],
        key: str,
        page: int,
        path: str,
        decoder: Callable[[Any], list[T]],
        retry_budget: int,
    ) -> list[T]:
        """
        Serve a page from a single-slot cache, refetching when stale.

        A stale slot (different key, or no items) is replaced wholesale by
        the full collection for key. If the request fails the slot keeps
        its previous key and items.
        """
        async with self._lock:
            if cache.is_stale(key):
                logger.debug(f"Cache miss for {key!r} (cached: {cache.key!r})")
                items = await self.executor.execute(path, decoder, retry_budget=retry_budget)
                cache.replace(key, items)
                logger.info(f"Cached {len(items)} items for {key!r}")

            return paginate(cache.items, page, self.page_size)

    # =========================================================================
    # Search
    # =========================================================================

    async def search(
        self,
        category: SearchCategory,
        query: str,
        page: int,
        retry_budget: int = DEFAULT_RETRY_BUDGET
    ) -> list:
        """
        Return one page of search results for a category.

        A request is sent when the query changed, when the category differs
        from the previous search call, or when the cached store does not
        fill the requested page. On a new query or category the category's
        store is cleared before the request, so a failed switch never
        leaves results of another query behind. The response is then
        appended, skipping records whose id is already stored (including
        repeats within the same response).

        The active category is recorded even if the request fails. A failed
        request leaves the stored query and the other stores untouched.

        The server page is the same number as the requested page, so pages
        must be requested in order from 0: asking a fresh Fetcher for page 1
        stores the server's page 1 at position 0 and raises EndOfResults.

        Args:
            category: Which domain to search.
            query: Search terms.
            page: Zero-based page; also sent to the server as 'page'.
            retry_budget: See class docstring.

        Raises:
            EndOfResults: Page still not covered after fetching.
            RetryableError, FetchFailedError: See RequestExecutor.execute().
        """
        async with self._lock:
            cache = self.search_results
            lower, upper = page_bounds(len(cache.store(category)), page, self.page_size)

            is_new_query = cache.is_new_query(query)
            is_new_category = cache.is_new_category(category)
            insufficient_data = upper - lower < self.page_size

            cache.category = category
            if is_new_query or is_new_category:
                cache.clear(category)
            if is_new_query or is_new_category or insufficient_data:
                path = (
                    f"/search?q={quote(query, safe='')}"
                    f"&type={category.filter_type}"
                    f"&region={quote(self.region)}"
                    f"&page={page}"
                    f"&fields={category.fields}"
                )
                units = await self.executor.execute(
                    path,
                    lambda payload: decode_units(payload, category.unit_class.from_api_result),
                    retry_budget=retry_budget,
                )
                added = cache.merge(category, query, units)
                logger.debug(
                    f"Search {category.value} {query!r} page {page}: "
                    f"{added} new of {len(units)} returned"
                )

            return paginate(cache.store(category), page, self.page_size)

    async def search_music(
        self,
        query: str,
        page: int,
        retry_budget: int = DEFAULT_RETRY_BUDGET
    ) -> list[MusicUnit]:
        return await self.search(SearchCategory.MUSIC, query, page, retry_budget)

    async def search_playlist(
        self,
        query: str,
        page: int,
        retry_budget: int = DEFAULT_RETRY_BUDGET
    ) -> list[PlaylistUnit]:
        return await self.search(SearchCategory.PLAYLIST, query, page, retry_budget)

    async def search_artist(
        self,
        query: str,
        page: int,
        retry_budget: int = DEFAULT_RETRY_BUDGET
    ) -> list[ArtistUnit]:
        return await self.search(SearchCategory.ARTIST, query, page, retry_budget)


async def fetch_with_failover(
    operation: Callable[..., Awaitable[T]],
    *args: Any,
    attempts: int = 3,
) -> T:
    """
    Call a Fetcher operation, re-issuing it while it reports RetryableError.

    The retry budget handed to the operation shrinks with every attempt, so
    the last attempt runs with budget 0 and a transport failure there
    surfaces as FetchFailedError. Each RetryableError has already moved the
    pool to the next server.

    Args:
        operation: Bound Fetcher method, e.g. fetcher.search_music.
        *args: Positional arguments for the operation.
        attempts: Total number of calls allowed (at least 1).

    Returns:
        The operation's result.

    Raises:
        EndOfResults, FetchFailedError: Propagated unchanged.

    Example:
        tracks = await fetch_with_failover(fetcher.search_music, "chill", 0)
    """
    attempts = max(1, attempts)
    for attempt in range(attempts):
        remaining = attempts - attempt - 1
        try:
            return await operation(*args, retry_budget=remaining)
        except RetryableError as e:
            logger.info(f"Attempt {attempt + 1}/{attempts} failed, retrying: {e}")
    # Unreachable: the last attempt runs with budget 0 and cannot raise RetryableError
    raise AssertionError("retry loop exited without a result")
