"""
Location: python/propstream/client.py

Summary:
    PropStreamClient opens text/event-stream responses over HTTP and
    decodes them into JSON values with the SSE decoder, retrying the
    request when it cannot be opened.

Usage:
    The primary entry point for consuming a component stream over HTTP.
    Decoded values are handed to the caller, who routes component deltas
    to a ComponentStreamRouter.

Example:
    from propstream import PropStreamClient, ComponentStreamRouter

    async with PropStreamClient("https://api.example.com") as client:
        async for value in client.stream("/v1/runs", body={"prompt": "Hi"}):
            print(value)
"""

from contextlib import aclosing, asynccontextmanager
from typing import Any, AsyncIterator, Callable, Optional

import httpx

from .stream import iter_sse_json
from .types import StreamConfig


class PropStreamClient:
    """
    HTTP client for SSE component streams.

    Attributes:
        base_url: Base URL for API requests
        config: Retry and size limits used when decoding
        timeout: Request timeout in seconds
        default_headers: Headers to include on all requests
    """

    def __init__(
        self,
        base_url: str,
        *,
        config: Optional[StreamConfig] = None,
        timeout: float = 120.0,
        headers: Optional[dict[str, str]] = None,
    ):
        """
        Initialize the PropStreamClient.

        Args:
            base_url: Base URL for API requests (trailing slash removed)
            config: Optional StreamConfig (defaults apply when omitted)
            timeout: Request timeout in seconds (default 120)
            headers: Optional default headers for all requests
        """
        self.base_url = base_url.rstrip("/")
        self.config = config or StreamConfig()
        self.timeout = timeout
        self.default_headers = headers or {}

        self._http = httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """
        Close the HTTP client and release resources.

        Should be called when done with the client, or use
        the async context manager pattern.
        """
        await self._http.aclose()

    async def __aenter__(self) -> "PropStreamClient":
        """Enter async context manager."""
        return self

    async def __aexit__(self, *args) -> None:
        """Exit async context manager and close resources."""
        await self.close()

    async def stream(
        self,
        endpoint: str,
        *,
        method: str = "POST",
        body: Optional[dict] = None,
        headers: Optional[dict[str, str]] = None,
        transform: Optional[Callable[[Any], Any]] = None,
    ) -> AsyncIterator[Any]:
        """
        Make a streaming request and decode its SSE body.

        Connection errors and non-2xx responses while opening are retried
        up to config.max_request_retries times. The response is closed
        when iteration ends, fails, or is abandoned.

        Args:
            endpoint: API endpoint path (appended to base_url)
            method: HTTP method (default POST)
            body: Optional JSON body
            headers: Optional headers for this request
            transform: Optional function applied to each decoded value

        Yields:
            Decoded JSON values, in arrival order

        Raises:
            httpx.HTTPError: If the request cannot be opened after retries
            StreamRemoteError: If the server sends an "error: " line
            StreamParseError: If an event never becomes valid JSON
        """
        url = f"{self.base_url}{endpoint}"
        req_headers = {
            "Accept": "text/event-stream",
            **self.default_headers,
            **(headers or {}),
        }

        @asynccontextmanager
        async def open_stream():
            async with self._http.stream(method, url, json=body, headers=req_headers) as response:
                response.raise_for_status()
                yield response.aiter_bytes()

        values = iter_sse_json(open_stream, transform=transform, config=self.config)
        async with aclosing(values):
            async for value in values:
                yield value


__all__ = ["PropStreamClient"]
