"""
Request executor for the mirror API.

All requests are sent from RequestExecutor.execute(). It is responsible for:
    - Building the URL from the active server of the pool
    - Sending a GET with a browser-like User-Agent and compression enabled
    - Decoding the JSON body into typed records
    - Classifying failures into retryable and permanent ones
    - Rotating the pool on transport failure and every few requests

Failure classification:
    Transport failure (connection refused, DNS, timeout, body cut short):
        retry_budget > 0  -> rotate pool, raise RetryableError
        retry_budget <= 0 -> raise FetchFailedError
    Body is not JSON, or JSON does not have the expected shape:
        raise FetchFailedError (never retried)

The executor never loops on its own. A RetryableError means "no data this
round, the next call goes to another server".

Request counting:
    Every request increments a counter, whatever its outcome. Once the
    counter exceeds request_per_server, the pool rotates after each
    request. The counter is never reset, so after the first rotation every
    following request moves on to the next server.
"""

import asyncio
from typing import Any, Callable, TypeVar

import aiohttp

from tunefetch.core.exceptions import FetchFailedError, RetryableError
from tunefetch.core.logger import get_logger, log_server_failure
from tunefetch.invidious.servers import ServerPool

logger = get_logger(__name__)

T = TypeVar("T")

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/92.0.4515.131 Safari/537.36"
)

DEFAULT_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept-Encoding": "gzip, deflate",
}

REQUEST_PER_SERVER = 10

# Exceptions raised by aiohttp while connecting or sending
TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError)


class RequestExecutor:
    """
    Sends GET requests to the active mirror and decodes the JSON response.

    Attributes:
        pool: The ServerPool used for endpoint selection.
        request_per_server: Counter threshold for periodic rotation.
        request_sent: Number of requests sent so far (never reset).

    Session ownership:
        An injected session is used as-is and never closed by the executor.
        Without one, a session is created lazily on the first request and
        closed by close().

    Example:
        executor = RequestExecutor(ServerPool(servers))
        units = await executor.execute(
            "/trending?type=Music",
            lambda payload: decode_units(payload, MusicUnit.from_api_result),
            retry_budget=2,
        )
        await executor.close()
    """

    def __init__(
        self,
        pool: ServerPool,
        session: aiohttp.ClientSession | None = None,
        request_per_server: int = REQUEST_PER_SERVER,
        timeout: float | None = None,
    ) -> None:
        """
        Args:
            pool: Mirrors to send requests to.
            session: Optional session to use instead of an owned one.
            request_per_server: Requests after which the pool starts rotating.
            timeout: Total timeout in seconds for an owned session. None keeps
                     aiohttp's default.
        """
        self.pool = pool
        self.request_per_server = request_per_server
        self.request_sent = 0
        self._session = session
        self._session_owner = session is None
        self._timeout = timeout

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            kwargs: dict[str, Any] = {"headers": DEFAULT_HEADERS}
            if self._timeout is not None:
                kwargs["timeout"] = aiohttp.ClientTimeout(total=self._timeout)
            self._session = aiohttp.ClientSession(**kwargs)
            self._session_owner = True
        return self._session

    async def close(self) -> None:
        """Close the session if the executor created it."""
        if self._session_owner and self._session is not None and not self._session.closed:
            await self._session.close()

    def _count_request(self) -> None:
        self.request_sent += 1
        if self.request_sent > self.request_per_server:
            previous = self.pool.active
            self.pool.rotate()
            logger.debug(
                f"Request count {self.request_sent} over {self.request_per_server}, "
                f"rotated server {previous} -> {self.pool.active}"
            )

    async def execute(
        self,
        path: str,
        decoder: Callable[[Any], T],
        retry_budget: int = 1,
    ) -> T:
        """
        Send one GET request and decode its JSON body.

        Args:
            path: Absolute API path including the query string.
            decoder: Callable turning the parsed JSON into the typed result.
                     It signals a shape mismatch by raising KeyError,
                     TypeError, or ValueError.
            retry_budget: Remaining retries the caller is willing to make.

        Returns:
            Whatever decoder returns.

        Raises:
            RetryableError: Transport failure with retry_budget > 0. The pool
                            has already rotated to the next server.
            FetchFailedError: Transport failure with no budget left, or a
                              body that could not be decoded.
        """
        server = self.pool.active
        url = self.pool.build_url(path)
        session = await self._ensure_session()
        logger.debug(f"GET {url}")

        try:
            async with session.get(url, headers=DEFAULT_HEADERS) as response:
                payload = await self._read_json(response, server, path)
        except TRANSPORT_ERRORS as e:
            log_server_failure(logger, server, path, e)
            details = {"server": server, "path": path, "original_error": str(e)}
            if retry_budget > 0:
                self.pool.rotate()
                raise RetryableError(
                    f"Request to {server} failed, switched to {self.pool.active}",
                    details=details
                ) from e
            logger.error(f"Request to {server} failed with no retries left: {e}")
            raise FetchFailedError(
                f"Request to {server} failed: {e}",
                details=details
            ) from e
        finally:
            self._count_request()

        try:
            return decoder(payload)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Unexpected response shape from {server}{path}: {e}")
            raise FetchFailedError(
                f"Unexpected response from {server}: {e}",
                details={"server": server, "path": path, "original_error": str(e)}
            ) from e

    @staticmethod
    async def _read_json(response: aiohttp.ClientResponse, server: str, path: str) -> Any:
        """
        Read and parse the response body.

        A connection lost while reading (aiohttp.ClientError) is a transport
        failure and propagates to execute().

        Raises:
            FetchFailedError: If the body is not JSON.
        """
        try:
            return await response.json(content_type=None)
        except ValueError as e:
            logger.error(f"Undecodable response from {server}{path} (HTTP {response.status}): {e}")
            raise FetchFailedError(
                f"Undecodable response from {server}: {e}",
                details={
                    "server": server,
                    "path": path,
                    "status": response.status,
                    "original_error": str(e),
                }
            ) from e
