"""
Location: python/propstream/stream.py

Summary:
    Server-Sent Events (SSE) decoding for component streams. Turns a raw,
    chunked text/event-stream byte feed into a lazy sequence of whole JSON
    values, tolerating values split across chunks and events that need a
    few more chunks before they parse.

Usage:
    Used by client.py to decode streaming responses. SSEDecoder holds the
    per-stream session state and can be fed bytes directly; iter_sse_json
    drives it from any opener that yields an async byte iterable.

Example:
    from contextlib import aclosing
    from propstream.stream import iter_sse_json

    async with aclosing(iter_sse_json(open_stream)) as values:
        async for value in values:
            print(value)
"""

import codecs
import json
import logging
from contextlib import AsyncExitStack
from typing import (
    Any,
    AsyncContextManager,
    AsyncIterable,
    AsyncIterator,
    Callable,
    Iterator,
    Optional,
)

from .types import StreamConfig

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
ERROR_PREFIX = "error: "
DONE_LINE = "data: DONE"
DONE_PAYLOAD = "DONE"

StreamOpener = Callable[[], AsyncContextManager[AsyncIterable[bytes]]]


class StreamError(Exception):
    """Exception raised when a component stream cannot be decoded."""
    pass


class StreamParseError(StreamError):
    """
    Exception raised when an event payload never becomes valid JSON.

    Attributes:
        payload: The concatenated data that failed to parse
    """

    def __init__(self, message: str, payload: str = ""):
        super().__init__(message)
        self.payload = payload


class StreamRemoteError(StreamError):
    """
    Exception raised when the server sends an "error: " line.

    Attributes:
        message: The remainder of the error line
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SSEDecoder:
    """
    Incremental decoder for one open SSE stream.

    Keeps the carry-over UTF-8 state, the partial line buffer, the pending
    data lines of the current event and the chunk-retry counter. An
    instance belongs to a single stream and is discarded with it.

    Attributes:
        max_chunk_retries: Failed parses tolerated for a pending event
    """

    def __init__(self, max_chunk_retries: int = 5):
        self.max_chunk_retries = max_chunk_retries
        self._text_decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._pending: list[str] = []
        self._chunk_retries = 0

    @property
    def chunk_retries(self) -> int:
        """Consecutive failed parse attempts for the pending event."""
        return self._chunk_retries

    @property
    def pending(self) -> str:
        """Data accumulated for the event that has not parsed yet."""
        return "".join(self._pending)

    def feed(self, chunk: bytes) -> Iterator[Any]:
        """
        Consume one chunk of bytes.

        Values are yielded lazily, in arrival order, as complete events
        are found in the chunk.

        Args:
            chunk: Raw bytes from the upstream source

        Yields:
            Parsed JSON values

        Raises:
            StreamRemoteError: If an "error: " line is reached
            StreamParseError: If the chunk-retry bound is exceeded
        """
        self._buffer += self._text_decoder.decode(chunk)
        yield from self._drain_lines()

    def flush(self) -> Iterator[Any]:
        """
        Handle end of stream.

        Flushes carried-over bytes, treats leftover text as a final line
        and forces a parse of any pending event.

        Yields:
            The last parsed JSON values, if any

        Raises:
            StreamRemoteError: If the final line is an "error: " line
            StreamParseError: If the pending event does not parse
        """
        self._buffer += self._text_decoder.decode(b"", final=True)
        yield from self._drain_lines()
        if self._buffer:
            line, self._buffer = self._buffer, ""
            yield from self._handle_line(line.removesuffix("\r"))
        if self._pending:
            yield from self._parse_pending(final=True)

    def _drain_lines(self) -> Iterator[Any]:
        while True:
            newline = self._buffer.find("\n")
            if newline < 0:
                return
            line = self._buffer[:newline].removesuffix("\r")
            self._buffer = self._buffer[newline + 1:]
            yield from self._handle_line(line)

    def _handle_line(self, line: str) -> Iterator[Any]:
        if not line:
            if self._pending:
                yield from self._parse_pending(final=False)
            return

        if line == DONE_LINE:
            self._reset_event()
            return

        if line.startswith(ERROR_PREFIX):
            raise StreamRemoteError(line[len(ERROR_PREFIX):])

        if line.startswith(DATA_PREFIX):
            content = line[len(DATA_PREFIX):]
            if content.startswith(" "):
                content = content[1:]
            self._pending.append(content)
            return

        logger.debug("Ignoring SSE line %r", line)

    def _parse_pending(self, final: bool) -> Iterator[Any]:
        payload = "".join(self._pending)
        body = payload.strip()

        if body == DONE_PAYLOAD:
            self._reset_event()
            return

        if not body:
            logger.debug("Discarding SSE event with an empty payload")
            self._pending.clear()
            return

        try:
            value = json.loads(payload)
        except json.JSONDecodeError as exc:
            if final:
                raise StreamParseError(
                    "Failed to parse JSON after multiple chunks", payload=payload
                ) from exc

            self._chunk_retries += 1
            if self._chunk_retries > self.max_chunk_retries:
                logger.warning(
                    "Giving up on SSE event after %d failed parse attempts",
                    self._chunk_retries,
                )
                raise StreamParseError(
                    "Failed to parse JSON after multiple chunks", payload=payload
                ) from exc

            logger.debug(
                "Incomplete SSE event, waiting for more data (attempt %d/%d)",
                self._chunk_retries,
                self.max_chunk_retries,
            )
            return

        self._reset_event()
        yield value

    def _reset_event(self) -> None:
        self._pending.clear()
        self._chunk_retries = 0


async def iter_sse_json(
    open_stream: StreamOpener,
    *,
    transform: Optional[Callable[[Any], Any]] = None,
    config: Optional[StreamConfig] = None,
) -> AsyncIterator[Any]:
    """
    Decode an SSE byte stream into JSON values.

    The opener is entered (and retried when entering fails) before any
    bytes are read. The opened source is released on every exit path,
    including when the consumer closes the generator early.

    Args:
        open_stream: Zero-argument callable returning an async context
                     manager that yields an async iterable of bytes
        transform: Optional function applied to every decoded value
        config: Retry bounds; defaults to StreamConfig()

    Yields:
        Decoded (and transformed) JSON values in arrival order

    Raises:
        StreamRemoteError: If the server sends an "error: " line
        StreamParseError: If an event never becomes valid JSON
        Exception: Whatever the opener raised, once retries are exhausted

    Example:
        @asynccontextmanager
        async def open_stream():
            async with http.stream("GET", url) as response:
                response.raise_for_status()
                yield response.aiter_bytes()

        async for value in iter_sse_json(open_stream):
            handle(value)
    """
    config = config or StreamConfig()

    async with AsyncExitStack() as stack:
        source = await _open_with_retry(stack, open_stream, config.max_request_retries)
        decoder = SSEDecoder(max_chunk_retries=config.max_chunk_retries)

        async for chunk in source:
            for value in decoder.feed(chunk):
                yield transform(value) if transform else value

        for value in decoder.flush():
            yield transform(value) if transform else value


async def _open_with_retry(
    stack: AsyncExitStack,
    open_stream: StreamOpener,
    max_retries: int,
) -> AsyncIterable[bytes]:
    """
    Enter the opener's context, retrying immediately on failure.

    Args:
        stack: Exit stack that will own the opened context
        open_stream: The opener to call
        max_retries: Attempts allowed after the first failure

    Returns:
        The async byte iterable produced by the opener
    """
    attempt = 0
    while True:
        try:
            source = await stack.enter_async_context(open_stream())
        except Exception as exc:
            if attempt >= max_retries:
                raise
            attempt += 1
            logger.warning(
                "Opening stream failed (%s), retrying (%d/%d)", exc, attempt, max_retries
            )
            continue

        aclose = getattr(source, "aclose", None)
        if aclose is not None:
            stack.push_async_callback(aclose)
        return source
