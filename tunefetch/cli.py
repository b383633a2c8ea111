"""
Command-line interface for tunefetch.

This module implements the CLI using Click, exposing every retrieval
operation of the Fetcher as a command. rich-click is used for the output
colors.

Commands:
    tunefetch trending                          Trending music
    tunefetch search <query> [--category c]     Search music/playlist/artist
    tunefetch playlist <playlist-id>            Videos in a playlist
    tunefetch channel-videos <channel-id>       Videos of a channel
    tunefetch channel-playlists <channel-id>    Playlists of a channel

Options (every command):
    --page N        Zero-based page to show (default 0)
    --all           Walk pages from --page until the end of results
    --attempts N    Calls per page before giving up (server failover)

Usage:
    tunefetch trending --page 1
    tunefetch search "Bartika Eam Rai" --all
    tunefetch --config ~/tunefetch.yaml search "chill mix" --category playlist

Configuration:
    The CLI reads config.yaml from the current directory (or --config).
    TUNEFETCH_SERVERS may replace the server list, see core/config.py.
"""

import asyncio
import sys
from pathlib import Path
from typing import Any, Callable, Optional

import rich_click as click
from tqdm import tqdm

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.MAX_WIDTH = 100

from tunefetch import __version__
from tunefetch.core import (
    Config,
    ConfigError,
    EndOfResults,
    FetchError,
    get_logger,
    load_config,
    setup_logging,
    shutdown_logging,
)
from tunefetch.invidious import (
    ArtistUnit,
    Fetcher,
    MusicUnit,
    PlaylistUnit,
    SearchCategory,
    fetch_with_failover,
)

logger = get_logger(__name__)

DEFAULT_ATTEMPTS = 3

# Picks the bound Fetcher operation a command runs
OperationSelector = Callable[[Fetcher], Callable[..., Any]]


def _paging_options(command: Callable) -> Callable:
    """Attach --page, --all and --attempts to a command."""
    command = click.option(
        "--attempts",
        type=click.IntRange(min=1),
        default=DEFAULT_ATTEMPTS,
        show_default=True,
        help="Calls per page before giving up (each retry uses the next server)"
    )(command)
    command = click.option(
        "--all", "walk_all",
        is_flag=True,
        help="Walk pages until the end of results"
    )(command)
    command = click.option(
        "--page",
        type=click.IntRange(min=0),
        default=0,
        show_default=True,
        help="Zero-based page number"
    )(command)
    return command


@click.group()
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml)"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Show debug output on the console"
)
@click.version_option(__version__, prog_name="tunefetch")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool) -> None:
    """
    tunefetch: browse music metadata from API mirrors, one page at a time.

    \b
    EXAMPLES:
        tunefetch trending
        tunefetch search "chill" --category playlist --page 1
        tunefetch channel-videos UCJEog_sDzuGyLok8f4p0HRA --all
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


@cli.command()
@_paging_options
@click.pass_context
def trending(ctx: click.Context, page: int, walk_all: bool, attempts: int) -> None:
    """Show trending music."""
    _run(ctx, lambda fetcher: fetcher.get_trending_music, (), page, walk_all, attempts)


@cli.command()
@click.argument("query")
@click.option(
    "--category", "-c",
    type=click.Choice([category.value for category in SearchCategory]),
    default=SearchCategory.MUSIC.value,
    show_default=True,
    help="What to search for"
)
@_paging_options
@click.pass_context
def search(
    ctx: click.Context,
    query: str,
    category: str,
    page: int,
    walk_all: bool,
    attempts: int
) -> None:
    """Search music, playlists, or artists."""
    selected = SearchCategory(category)
    _run(
        ctx,
        lambda fetcher: fetcher.search,
        (selected, query),
        page,
        walk_all,
        attempts,
        from_start=True,
    )


@cli.command()
@click.argument("playlist_id")
@_paging_options
@click.pass_context
def playlist(ctx: click.Context, playlist_id: str, page: int, walk_all: bool, attempts: int) -> None:
    """Show the videos of a playlist."""
    _run(ctx, lambda fetcher: fetcher.get_playlist_content, (playlist_id,), page, walk_all, attempts)


@cli.command("channel-videos")
@click.argument("channel_id")
@_paging_options
@click.pass_context
def channel_videos(ctx: click.Context, channel_id: str, page: int, walk_all: bool, attempts: int) -> None:
    """Show the videos of a channel."""
    _run(ctx, lambda fetcher: fetcher.get_videos_of_channel, (channel_id,), page, walk_all, attempts)


@cli.command("channel-playlists")
@click.argument("channel_id")
@_paging_options
@click.pass_context
def channel_playlists(ctx: click.Context, channel_id: str, page: int, walk_all: bool, attempts: int) -> None:
    """Show the playlists of a channel."""
    _run(ctx, lambda fetcher: fetcher.get_playlist_of_channel, (channel_id,), page, walk_all, attempts)


def _run(
    ctx: click.Context,
    select: OperationSelector,
    args: tuple,
    page: int,
    walk_all: bool,
    attempts: int,
    from_start: bool = False
) -> None:
    """
    Load configuration, set up logging, fetch, and print the results.

    from_start is set for search: its cache is filled page by page, so the
    pages before `page` are fetched first (and not printed).

    Exit codes:
        0 - results printed (or none available)
        1 - configuration error or fetch failure
    """
    try:
        config = _load_configuration(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    level = "DEBUG" if ctx.obj.get("verbose") else config.logging.level
    setup_logging(config.logging.directory, level=level)

    try:
        pages = asyncio.run(
            _fetch_pages(config, select, args, page, walk_all, attempts, from_start)
        )
    except FetchError as e:
        click.echo(f"Fetch failed: {e.message}", err=True)
        logger.debug(f"Details: {e.details}")
        sys.exit(1)
    finally:
        shutdown_logging()

    if not pages:
        click.echo("No results.")
        return

    for number, items in enumerate(pages, start=page):
        if walk_all:
            click.echo(f"--- page {number} ---")
        for item in items:
            click.echo(format_item(item))


def _load_configuration(config_path: Path | None) -> Config:
    """
    Load and validate configuration.

    Raises:
        ConfigError: If configuration is invalid or missing.
    """
    return load_config(config_path)


async def _fetch_pages(
    config: Config,
    select: OperationSelector,
    args: tuple,
    page: int,
    walk_all: bool,
    attempts: int,
    from_start: bool = False
) -> list[list]:
    """
    Fetch one page, or every page from `page` on when walk_all is set.

    With from_start, pages 0 .. page - 1 are fetched and discarded first.

    Returns:
        List of pages in order. Empty when the first page is already past
        the end of results.
    """
    async with Fetcher(
        config.servers,
        region=config.region,
        request_per_server=config.request_per_server,
    ) as fetcher:
        operation = select(fetcher)

        if from_start:
            for earlier in range(page):
                try:
                    await fetch_with_failover(operation, *args, earlier, attempts=attempts)
                except EndOfResults:
                    return []

        if not walk_all:
            try:
                return [await fetch_with_failover(operation, *args, page, attempts=attempts)]
            except EndOfResults:
                return []

        pages = []
        current = page
        with tqdm(desc="Fetching", unit="page", leave=False) as progress:
            while True:
                try:
                    items = await fetch_with_failover(operation, *args, current, attempts=attempts)
                except EndOfResults:
                    break
                pages.append(items)
                progress.update(1)
                current += 1
        logger.debug(f"Fetched {len(pages)} pages from {fetcher.active_server}")
        return pages


def format_item(item: Any) -> str:
    """
    Render one record as a single output line.

    Examples:
        "Some song title - CHHEWANG [4:31] https://www.youtube.com/watch?v=WNgO6G7uERU"
        "Chill Mix - Some Channel (42 videos) PLN4UKncphTTE0cIHYDQy534mSToKtFlhA"
        "Rachana Dahal (120 videos) UCJEog_sDzuGyLok8f4p0HRA"
    """
    if isinstance(item, MusicUnit):
        return f"{item.title} - {item.artist} [{item.duration_str}] {item.url}"
    if isinstance(item, PlaylistUnit):
        return f"{item.title} - {item.author} ({item.video_count} videos) {item.id}"
    if isinstance(item, ArtistUnit):
        return f"{item.name} ({item.video_count} videos) {item.id}"
    return str(item)


def main() -> None:
    """
    Entry point for the CLI.

    This function is called when running `tunefetch` from the command line.
    """
    cli(obj={})


if __name__ == "__main__":
    main()
