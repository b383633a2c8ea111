"""
Ordered pool of equivalent mirror servers with a rotating cursor.

All servers in the pool expose the same API, so any of them can answer any
request. The pool only tracks which one is active; the request executor
decides when to rotate.
"""

from typing import Iterable

from tunefetch.core.exceptions import ConfigError


class ServerPool:
    """
    Ordered list of API base URLs plus the index of the active one.

    Attributes:
        servers: Tuple of base URLs, e.g. "https://host/api/v1".
        index: Position of the active server in servers.

    Example:
        pool = ServerPool(["https://a/api/v1", "https://b/api/v1"])
        pool.build_url("/trending")  # "https://a/api/v1/trending"
        pool.rotate()
        pool.active                  # "https://b/api/v1"
    """

    def __init__(self, servers: Iterable[str], index: int = 0) -> None:
        """
        Args:
            servers: Base URLs in preference order. Must not be empty.
            index: Initial active position (wrapped into range).

        Raises:
            ConfigError: If no servers are given.
        """
        self.servers = tuple(servers)
        if not self.servers:
            raise ConfigError(
                "Server pool needs at least one server",
                details={"servers": []}
            )
        self.index = index % len(self.servers)

    def __len__(self) -> int:
        return len(self.servers)

    def __repr__(self) -> str:
        return f"ServerPool(servers={self.servers!r}, index={self.index})"

    @property
    def active(self) -> str:
        """Base URL of the active server."""
        return self.servers[self.index]

    def rotate(self) -> str:
        """
        Advance to the next server, wrapping around.

        With a single server this is a no-op.

        Returns:
            The new active base URL.
        """
        self.index = (self.index + 1) % len(self.servers)
        return self.active

    def build_url(self, path: str) -> str:
        """Join the active base URL with an absolute API path."""
        return self.active.rstrip("/") + "/" + path.lstrip("/")
