"""Test configuration and fixtures"""

import json
import tempfile
from collections import deque
from pathlib import Path
from typing import Any, Callable
from urllib.parse import parse_qs, urlsplit

import pytest


class FakeResponse:
    """Stands in for aiohttp.ClientResponse inside `async with session.get(...)`."""

    def __init__(self, payload: Any = None, status: int = 200, body: str | None = None) -> None:
        self.payload = payload
        self.status = status
        self.body = body

    async def json(self, content_type: str | None = "application/json") -> Any:
        if self.body is not None:
            return json.loads(self.body)
        return self.payload

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None


class FakeSession:
    """
    Minimal aiohttp.ClientSession replacement.

    `responder` is either a callable url -> outcome, or an iterable of
    outcomes consumed in order. An outcome is a FakeResponse, an exception
    instance (raised from get()), or any other value (served as JSON payload).
    """

    def __init__(self, responder: Callable[[str], Any] | list) -> None:
        if callable(responder):
            self._responder = responder
            self._queue = None
        else:
            self._responder = None
            self._queue = deque(responder)
        self.requests: list[str] = []
        self.headers: list[dict] = []
        self.closed = False

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.requests.append(url)
        self.headers.append(kwargs.get("headers") or {})
        if self._responder is not None:
            outcome = self._responder(url)
        else:
            if not self._queue:
                raise RuntimeError(f"No more responses configured for {url}")
            outcome = self._queue.popleft()
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, FakeResponse):
            return outcome
        return FakeResponse(outcome)

    async def close(self) -> None:
        self.closed = True


def music_items(count: int, prefix: str = "v") -> list[dict]:
    """API video objects with ids <prefix>0, <prefix>1, ..."""
    return [
        {
            "videoId": f"{prefix}{index}",
            "title": f"Song {prefix}{index}",
            "author": f"Artist {prefix}",
            "lengthSeconds": 180 + index,
        }
        for index in range(count)
    ]


def playlist_items(count: int, prefix: str = "pl") -> list[dict]:
    """API playlist objects with ids <prefix>0, <prefix>1, ..."""
    return [
        {
            "playlistId": f"{prefix}{index}",
            "title": f"Playlist {prefix}{index}",
            "author": f"Owner {prefix}",
            "videoCount": index + 1,
        }
        for index in range(count)
    ]


def artist_items(count: int, prefix: str = "ch") -> list[dict]:
    """API channel objects with ids <prefix>0, <prefix>1, ..."""
    return [
        {
            "authorId": f"{prefix}{index}",
            "author": f"Channel {prefix}{index}",
            "videoCount": 10 * index,
        }
        for index in range(count)
    ]


def query_params(url: str) -> dict[str, str]:
    """Flatten the query string of a requested URL."""
    return {key: values[0] for key, values in parse_qs(urlsplit(url).query).items()}


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def servers():
    """Two fabricated mirrors"""
    return ["https://mirror-a.test/api/v1", "https://mirror-b.test/api/v1/"]


@pytest.fixture
def fake_session():
    """Factory for FakeSession instances"""
    return FakeSession


@pytest.fixture
def fake_response():
    """Factory for FakeResponse instances"""
    return FakeResponse


@pytest.fixture
def make_music():
    return music_items


@pytest.fixture
def make_playlists():
    return playlist_items


@pytest.fixture
def make_artists():
    return artist_items


@pytest.fixture
def params():
    return query_params


@pytest.fixture
def sample_video():
    """Sample API video object"""
    return {
        "title": "Some song title",
        "videoId": "WNgO6G7uERU",
        "author": "CHHEWANG",
        "lengthSeconds": 271,
    }
