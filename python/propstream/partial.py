"""
Location: python/propstream/partial.py

Summary:
    Tolerant partial-JSON parsing. Defines the PartialJsonParser protocol
    the tracker depends on and a default implementation backed by the
    partial-json-parser library.

Usage:
    Used by tracker.py to read a growing prefix of property JSON. Any
    callable that takes the text and returns a value, raising ValueError
    when the prefix is not recoverable yet, can be injected instead.

Example:
    from propstream.partial import parse_partial_json

    parse_partial_json('{"title": "hel')   # {"title": "hel"}
"""

from typing import Any, Protocol, runtime_checkable

from partial_json_parser import loads


class PartialJSONError(ValueError):
    """Raised when a JSON prefix cannot be recovered into a value yet."""
    pass


@runtime_checkable
class PartialJsonParser(Protocol):
    """
    Protocol for tolerant JSON parsers.

    Given a prefix of JSON text, a parser returns the best-effort value
    obtained by virtually closing open strings, arrays and objects.
    """

    def __call__(self, text: str) -> Any:
        """
        Parse a JSON prefix.

        Args:
            text: Accumulated JSON text, possibly truncated

        Returns:
            The recovered value

        Raises:
            ValueError: If the prefix is not recoverable yet
        """
        ...


def parse_partial_json(text: str) -> Any:
    """
    Parse a JSON prefix with partial-json-parser.

    Args:
        text: Accumulated JSON text, possibly truncated

    Returns:
        The recovered value

    Raises:
        PartialJSONError: If the text is blank or cannot be recovered
    """
    if not text or not text.strip():
        raise PartialJSONError("No JSON text to parse")
    try:
        return loads(text)
    except Exception as exc:
        raise PartialJSONError(str(exc)) from exc
