"""
Mirror API integration for tunefetch.

Components:
    - MusicUnit, PlaylistUnit, ArtistUnit: Result records
    - SearchCategory: Search domains with their filter and projection
    - ServerPool: Ordered mirrors with a rotating cursor
    - RequestExecutor: GET + JSON decoding + failover classification
    - TrendingCache, KeyedCache, SearchCache, paginate: Caching and windowing
    - Fetcher: The cached, paginated retrieval operations
    - fetch_with_failover: Caller-side retry loop over RetryableError

Usage:
    from tunefetch.invidious import Fetcher, fetch_with_failover

    async with Fetcher(["https://invidious.example.org/api/v1"]) as fetcher:
        tracks = await fetch_with_failover(fetcher.get_trending_music, 0)
"""

from tunefetch.invidious.cache import (
    ITEM_PER_PAGE,
    KeyedCache,
    SearchCache,
    TrendingCache,
    page_bounds,
    paginate,
)
from tunefetch.invidious.client import REQUEST_PER_SERVER, USER_AGENT, RequestExecutor
from tunefetch.invidious.fetcher import Fetcher, fetch_with_failover
from tunefetch.invidious.models import (
    ArtistUnit,
    MusicUnit,
    PlaylistUnit,
    SearchCategory,
    decode_units,
)
from tunefetch.invidious.servers import ServerPool

__all__ = [
    # Models
    "MusicUnit",
    "PlaylistUnit",
    "ArtistUnit",
    "SearchCategory",
    "decode_units",
    # Transport
    "ServerPool",
    "RequestExecutor",
    "REQUEST_PER_SERVER",
    "USER_AGENT",
    # Caching
    "ITEM_PER_PAGE",
    "TrendingCache",
    "KeyedCache",
    "SearchCache",
    "page_bounds",
    "paginate",
    # Orchestration
    "Fetcher",
    "fetch_with_failover",
]
