"""
Test helpers shared by the propstream test modules: fake upstream byte
sources, a scripted tolerant parser and small async utilities.
"""

from contextlib import asynccontextmanager
from typing import Any, Iterable, Optional

import httpx


class FakeByteSource:
    """
    Upstream byte source standing in for an HTTP response body.

    Records how often it was opened and closed and how many chunks the
    decoder actually pulled.
    """

    def __init__(
        self,
        chunks: Iterable[bytes],
        fail_opens: int = 0,
        fail_after: Optional[int] = None,
    ):
        self.chunks = list(chunks)
        self.fail_opens = fail_opens
        self.fail_after = fail_after
        self.open_attempts = 0
        self.opened = 0
        self.closed = 0
        self.chunks_read = 0

    @asynccontextmanager
    async def open(self):
        self.open_attempts += 1
        if self.open_attempts <= self.fail_opens:
            raise httpx.ConnectError("connection refused")
        self.opened += 1
        try:
            yield self._iterate()
        finally:
            self.closed += 1

    async def _iterate(self):
        for index, chunk in enumerate(self.chunks):
            if self.fail_after is not None and index >= self.fail_after:
                raise httpx.ReadError("connection reset")
            self.chunks_read += 1
            yield chunk


class ScriptedParser:
    """
    Tolerant parser returning a fixed sequence of results.

    Each call pops the next result; exceptions in the script are raised.
    The last result repeats once the script runs out.
    """

    def __init__(self, *results: Any):
        self.results = list(results)
        self.calls: list[str] = []

    def __call__(self, text: str) -> Any:
        self.calls.append(text)
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


def split_every(data: bytes, size: int) -> list[bytes]:
    """Split bytes into fixed-size chunks."""
    return [data[i:i + size] for i in range(0, len(data), size)]


async def collect(values) -> list:
    """Drain an async iterator into a list."""
    return [value async for value in values]
