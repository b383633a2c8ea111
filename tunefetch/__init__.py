"""
tunefetch: cached, paginated music metadata from interchangeable API mirrors.

This package retrieves trending music, playlist contents, channel listings,
and search results from a set of mirror servers that expose the same JSON
API. Results are served one fixed-size page at a time from per-category
caches, and a failing server is swapped for the next one in the pool.

Architecture:
    core/       - Configuration, logging, exceptions
    utils/      - Duration display codec
    invidious/  - Records, server pool, request executor, caches, Fetcher
    cli.py      - Command-line interface

Usage:
    Command Line:
        tunefetch trending --page 0
        tunefetch search "chill" --category playlist --all
        tunefetch channel-videos UCJEog_sDzuGyLok8f4p0HRA

    Python API:
        from tunefetch import Fetcher, EndOfResults, load_config

        config = load_config()
        async with Fetcher(config.servers, region=config.region) as fetcher:
            page = 0
            while True:
                try:
                    tracks = await fetcher.search_music("chill", page)
                except EndOfResults:
                    break
                page += 1

Configuration:
    Reads config.yaml from the current directory:

        servers:
          - "https://invidious.example.org/api/v1"

Dependencies:
    - aiohttp: HTTP client
    - click / rich-click: CLI
    - pyyaml, python-dotenv: Configuration
    - tqdm, colorama: Console output
"""

__version__ = "0.1.0"
__author__ = "tunefetch"
__license__ = "MIT"

from tunefetch.core import (
    Config,
    ConfigError,
    EndOfResults,
    FetchError,
    FetchFailedError,
    RetryableError,
    TuneFetchError,
    get_logger,
    load_config,
    setup_logging,
)
from tunefetch.invidious import (
    ArtistUnit,
    Fetcher,
    MusicUnit,
    PlaylistUnit,
    SearchCategory,
    fetch_with_failover,
)

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "setup_logging",
    "get_logger",
    # Exceptions
    "TuneFetchError",
    "ConfigError",
    "EndOfResults",
    "FetchError",
    "RetryableError",
    "FetchFailedError",
    # Models
    "MusicUnit",
    "PlaylistUnit",
    "ArtistUnit",
    "SearchCategory",
    # Fetching
    "Fetcher",
    "fetch_with_failover",
]
