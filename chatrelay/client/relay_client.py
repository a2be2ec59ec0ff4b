"""HTTP client for a chatrelay server.

Handles retries with exponential backoff for transient failures.
"""

import asyncio
import logging
from typing import Any

import httpx

from ..errors import RelayUnavailable
from ..service import FetchResult
from ..store import SENTINEL

logger = logging.getLogger(__name__)


class RelayClient:
    """Client for the relay's JSON API.

    Transport errors, timeouts and server errors are retried with
    exponential backoff. Client errors (4xx) and undecodable responses are
    raised immediately. Every failure surfaces as RelayUnavailable.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        max_retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: Base URL of the server (e.g., "http://127.0.0.1:8000").
            timeout: Request timeout in seconds.
            max_retries: Maximum attempts per request.
            transport: Optional httpx transport, mainly for tests.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self._transport = transport

    async def _request_with_retry(
        self,
        method: str,
        path: str,
        json_data: Any = None,
    ) -> Any:
        """Make HTTP request with exponential backoff retry.

        Args:
            method: HTTP method (GET, POST).
            path: URL path to append to base_url.
            json_data: Optional JSON body.

        Returns:
            Decoded JSON response.

        Raises:
            RelayUnavailable: On a client error or when retries run out.
        """
        url = f"{self.base_url}{path}"
        backoff = 1.0
        last_error = "no attempts made"

        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport
        ) as client:
            for attempt in range(self.max_retries):
                try:
                    if method == "GET":
                        response = await client.get(url)
                    elif method == "POST":
                        response = await client.post(url, json=json_data)
                    else:
                        raise ValueError(f"Unsupported method: {method}")

                except httpx.TimeoutException:
                    last_error = "Request timeout"
                    logger.warning(
                        f"Request timeout, attempt {attempt + 1}/{self.max_retries}"
                    )
                except httpx.ConnectError:
                    last_error = "Connection failed"
                    logger.warning(
                        f"Connection failed, attempt {attempt + 1}/{self.max_retries}"
                    )
                except httpx.TransportError as e:
                    # Dropped connections, protocol errors and the like
                    last_error = f"Transport error ({type(e).__name__})"
                    logger.warning(
                        f"{last_error}, attempt {attempt + 1}/{self.max_retries}"
                    )

                else:
                    if response.status_code == 200:
                        return self._decode(response)

                    if response.status_code < 500:
                        # Client error, don't retry
                        raise RelayUnavailable(
                            f"HTTP {response.status_code}: {response.text}",
                            status_code=response.status_code,
                        )

                    last_error = f"HTTP {response.status_code}"
                    logger.warning(
                        f"Server error {response.status_code}, "
                        f"attempt {attempt + 1}/{self.max_retries}"
                    )

                if attempt < self.max_retries - 1:
                    await asyncio.sleep(backoff)
                    backoff *= 2

        raise RelayUnavailable(
            f"{last_error} after {self.max_retries} attempts to {url}"
        )

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        """Decode a successful response, which must be a JSON object."""
        try:
            data = response.json()
        except ValueError:
            raise RelayUnavailable(
                f"Invalid JSON in response from {response.url}",
                status_code=response.status_code,
            )

        if not isinstance(data, dict):
            raise RelayUnavailable(
                f"Unexpected response body from {response.url}",
                status_code=response.status_code,
            )

        return data

    async def post_message(self, text: str) -> None:
        """Post a message to the shared channel."""
        await self._request_with_retry(
            "POST", "/api/postMessage", {"message": text}
        )

    async def get_messages(self, index: int = SENTINEL) -> FetchResult:
        """Fetch every message after an index.

        Args:
            index: Last position seen, or SENTINEL for all messages.

        Returns:
            FetchResult with new messages, oldest first, and the id of the
            log they were read from.
        """
        data = await self._request_with_retry(
            "POST", "/api/getMessages", {"index": index}
        )

        try:
            return FetchResult.from_dict(data)
        except (KeyError, TypeError) as e:
            raise RelayUnavailable(f"Malformed getMessages response: {e}")

    async def get_stats(self) -> dict[str, Any]:
        """Get server log statistics."""
        return await self._request_with_retry("GET", "/api/stats")
