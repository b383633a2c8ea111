"""
Data models for mirror API results.

This module defines the immutable records returned by every retrieval
operation, plus the search category descriptor that ties a category to
its type filter, field projection, and record class.

Field mapping (API JSON -> record):
    MusicUnit:    videoId -> id, title -> title, author -> artist,
                  lengthSeconds -> duration
    PlaylistUnit: playlistId -> id, title -> title, author -> author,
                  videoCount -> video_count
    ArtistUnit:   authorId -> id, author -> name, videoCount -> video_count

Decoding is strict: a missing or mistyped field raises KeyError, TypeError,
or ValueError, which the request executor reports as a failed fetch.
Unknown extra fields are ignored.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, TypeVar

from tunefetch.utils.duration import encode_duration


# Base URL handed to the playback engine
WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

T = TypeVar("T")


def _require(result: dict[str, Any], key: str, expected: type) -> Any:
    """
    Fetch a required field with the expected type.

    Raises:
        TypeError: If result is not a dict or the value has the wrong type.
        KeyError: If the field is missing.
    """
    if not isinstance(result, dict):
        raise TypeError(f"Expected JSON object, got {type(result).__name__}")
    value = result[key]
    # bool is an int subclass; JSON true/false is never a valid count
    if not isinstance(value, expected) or isinstance(value, bool):
        raise TypeError(
            f"Field '{key}' must be {expected.__name__}, got {type(value).__name__}"
        )
    return value


def _require_count(result: dict[str, Any], key: str) -> int:
    value = _require(result, key, int)
    if value < 0:
        raise ValueError(f"Field '{key}' must be non-negative, got {value}")
    return value


@dataclass(frozen=True)
class MusicUnit:
    """
    A single playable video/song.

    Attributes:
        id: Unique video identifier. Example: "WNgO6G7uERU"
        title: Video title as published.
        artist: Channel/author name.
        duration: Length in seconds.
    """
    id: str
    title: str
    artist: str
    duration: int

    @property
    def duration_str(self) -> str:
        """Duration as "<minutes>:<seconds>", e.g. "4:31"."""
        return encode_duration(self.duration)

    @property
    def url(self) -> str:
        """Stream URL derived from the video id, for the playback engine."""
        return WATCH_URL.format(video_id=self.id)

    @classmethod
    def from_api_result(cls, result: dict[str, Any]) -> "MusicUnit":
        """
        Create a MusicUnit from one API video object.

        Example:
            MusicUnit.from_api_result({
                "title": "Some song title",
                "videoId": "WNgO6G7uERU",
                "author": "CHHEWANG",
                "lengthSeconds": 271,
            })
            # MusicUnit(id='WNgO6G7uERU', ..., duration=271)
        """
        return cls(
            id=_require(result, "videoId", str),
            title=_require(result, "title", str),
            artist=_require(result, "author", str),
            duration=_require_count(result, "lengthSeconds"),
        )


@dataclass(frozen=True)
class PlaylistUnit:
    """
    A playlist listed by search or by a channel.

    Attributes:
        id: Unique playlist identifier.
        title: Playlist title.
        author: Owning channel name.
        video_count: Number of items in the playlist.
    """
    id: str
    title: str
    author: str
    video_count: int

    @classmethod
    def from_api_result(cls, result: dict[str, Any]) -> "PlaylistUnit":
        """Create a PlaylistUnit from one API playlist object."""
        return cls(
            id=_require(result, "playlistId", str),
            title=_require(result, "title", str),
            author=_require(result, "author", str),
            video_count=_require_count(result, "videoCount"),
        )


@dataclass(frozen=True)
class ArtistUnit:
    """
    A channel, presented as an artist.

    Attributes:
        id: Unique channel identifier.
        name: Channel display name.
        video_count: Number of videos on the channel.
    """
    id: str
    name: str
    video_count: int

    @classmethod
    def from_api_result(cls, result: dict[str, Any]) -> "ArtistUnit":
        """Create an ArtistUnit from one API channel object."""
        return cls(
            id=_require(result, "authorId", str),
            name=_require(result, "author", str),
            video_count=_require_count(result, "videoCount"),
        )


def decode_units(payload: Any, parse: Callable[[dict[str, Any]], T]) -> list[T]:
    """
    Decode a JSON array of objects with the given record parser.

    Raises:
        TypeError: If payload is not a list.
        KeyError, ValueError: Propagated from the parser.
    """
    if not isinstance(payload, list):
        raise TypeError(f"Expected JSON array, got {type(payload).__name__}")
    return [parse(item) for item in payload]


class SearchCategory(Enum):
    """
    The three search domains.

    Each category knows the 'type' filter the API expects, the field
    projection matching its record shape, and the record class to decode.
    """
    MUSIC = "music"
    PLAYLIST = "playlist"
    ARTIST = "artist"

    @property
    def filter_type(self) -> str:
        """Value of the search 'type' query parameter."""
        return _FILTER_TYPES[self]

    @property
    def fields(self) -> str:
        """Value of the 'fields' projection query parameter."""
        return _FIELDS[self]

    @property
    def unit_class(self) -> type:
        """Record class produced by searches in this category."""
        return _UNIT_CLASSES[self]


_FILTER_TYPES = {
    SearchCategory.MUSIC: "music",
    SearchCategory.PLAYLIST: "playlist",
    SearchCategory.ARTIST: "channel",
}

_FIELDS = {
    SearchCategory.MUSIC: "videoId,title,author,lengthSeconds",
    SearchCategory.PLAYLIST: "title,playlistId,author,videoCount",
    SearchCategory.ARTIST: "author,authorId,videoCount",
}

_UNIT_CLASSES = {
    SearchCategory.MUSIC: MusicUnit,
    SearchCategory.PLAYLIST: PlaylistUnit,
    SearchCategory.ARTIST: ArtistUnit,
}
