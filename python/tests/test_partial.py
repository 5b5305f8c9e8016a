"""
Tests for propstream.partial module.

Tests the default tolerant parser adapter and the parser protocol.
"""

from unittest.mock import patch

import pytest

from propstream.partial import PartialJSONError, PartialJsonParser, parse_partial_json


class TestParsePartialJson:
    """Tests for parse_partial_json."""

    def test_complete_json(self):
        """Test that complete JSON parses normally."""
        assert parse_partial_json('{"a": [1, 2], "b": null}') == {"a": [1, 2], "b": None}

    def test_truncated_string(self):
        """Test that an open string is virtually closed."""
        assert parse_partial_json('{"title": "hel') == {"title": "hel"}

    def test_truncated_array(self):
        """Test that open arrays and objects are virtually closed."""
        assert parse_partial_json('{"items": ["a", "b"') == {"items": ["a", "b"]}

    def test_blank_text_raises(self):
        """Test that there is nothing to recover from blank text."""
        for text in ["", "   ", "\n"]:
            with pytest.raises(PartialJSONError):
                parse_partial_json(text)

    def test_library_failure_wrapped(self):
        """Test that parser library errors surface as PartialJSONError."""
        with patch("propstream.partial.loads", side_effect=RuntimeError("malformed")):
            with pytest.raises(PartialJSONError, match="malformed") as exc_info:
                parse_partial_json("{")
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_error_is_value_error(self):
        """Test that callers can catch ValueError."""
        assert issubclass(PartialJSONError, ValueError)


class TestPartialJsonParserProtocol:
    """Tests for the PartialJsonParser protocol."""

    def test_default_parser_conforms(self):
        assert isinstance(parse_partial_json, PartialJsonParser)

    def test_custom_callable_conforms(self):
        class Strict:
            def __call__(self, text):
                return {}

        assert isinstance(Strict(), PartialJsonParser)
