"""
Exception classes for tunefetch.

This module defines the outcome taxonomy surfaced by every retrieval
operation. Callers distinguish three situations:

    - the requested page lies beyond the data currently known (EndOfResults)
    - a transport failure happened and the server has already been rotated,
      so the same call may be re-issued (RetryableError)
    - the attempt failed for good: retry budget exhausted, or a response
      that could not be decoded (FetchFailedError)

Exception Hierarchy:
    TuneFetchError (base)
        ConfigError - Configuration file issues
        EndOfResults - No items at or after the requested page
        FetchError - A retrieval attempt produced no data
            RetryableError - Transport failure, retry budget left
            FetchFailedError - Budget exhausted or undecodable response
"""


class TuneFetchError(Exception):
    """
    Base exception for all tunefetch errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (server, path, ...).

    Example:
        try:
            tracks = await fetcher.get_trending_music(0)
        except TuneFetchError as e:
            logger.error(f"Fetch failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'server': Base URL of the server that was contacted
                     - 'path': API path that was requested
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(TuneFetchError):
    """
    Raised when there's an issue with the configuration.

    This is a CRITICAL error that should stop program execution.

    Common causes:
        - config.yaml not found
        - config.yaml has invalid YAML syntax
        - The server list is missing or empty
        - Invalid field values (e.g., non-positive request_per_server)

    Example:
        raise ConfigError(
            "Missing required field 'servers' in config.yaml",
            details={'file_path': '/path/to/config.yaml', 'missing_field': 'servers'}
        )
    """
    pass


class EndOfResults(TuneFetchError):
    """
    Raised when the requested page lies beyond the currently known data.

    This is NOT a failure. It is the terminal state of a paginated listing:
    no items exist at or after the requested window for the given key.
    A front end should stop requesting further pages when it sees this.

    Example:
        page = 0
        while True:
            try:
                items = await fetcher.search_music("chill", page)
            except EndOfResults:
                break
            render(items)
            page += 1
    """

    def __init__(self, page: int, available: int) -> None:
        """
        Args:
            page: The zero-based page that was requested.
            available: Number of items currently cached for the key.
        """
        super().__init__(
            f"No results for page {page} ({available} items known)",
            details={"page": page, "available": available}
        )
        self.page = page
        self.available = available


class FetchError(TuneFetchError):
    """
    Base class for failed retrieval attempts.

    A FetchError never leaves a cache half-updated: whatever was cached
    before the attempt is still cached afterwards.
    """
    pass


class RetryableError(FetchError):
    """
    Raised on a transport-level failure while retry budget remained.

    The server pool has ALREADY been rotated when this is raised, so
    re-issuing the same call targets the next server. The core never
    loops on its own; see fetch_with_failover() for the caller-side loop.

    Common causes:
        - Connection refused or reset
        - DNS resolution failure
        - Timeout
    """
    pass


class FetchFailedError(FetchError):
    """
    Raised when a retrieval attempt failed for good.

    Common causes:
        - Transport failure with no retry budget left
        - Response body is not JSON
        - JSON does not match the expected shape (missing/mistyped fields)

    Decoding failures are never retried within the same call: a malformed
    payload will not improve by switching servers mid-request.
    """
    pass
