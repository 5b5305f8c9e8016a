"""
Shared pytest fixtures for propstream tests.

This module provides sample SSE payloads and component props used across
the test files. Fakes live in helpers.py.
"""

import pytest


@pytest.fixture
def sample_sse_bytes():
    """SSE body with comments, CRLF endings, multi-line data and non-ASCII text."""
    return (
        ": keep-alive\n"
        "event: message\n"
        "id: 1\n"
        'data: {"type": "start", "componentId": "c1"}\n'
        "\n"
        'data: {"type": "delta",\r\n'
        'data:  "text": "Grüße ✓ 東京"}\r\n'
        "\r\n"
        "data: [1, 2, 3]\n"
        "\n"
        "data: DONE\n"
        "\n"
    ).encode("utf-8")


@pytest.fixture
def sample_sse_values():
    """Values decoded from sample_sse_bytes."""
    return [
        {"type": "start", "componentId": "c1"},
        {"type": "delta", "text": "Grüße ✓ 東京"},
        [1, 2, 3],
    ]


@pytest.fixture
def sample_props_json():
    """A complete props object for a component."""
    return (
        '{"title": "Weather in Oslo", "temperature": -3.5, "sunny": false, '
        '"forecast": [{"day": "Mon", "high": 1}, {"day": "Tue", "high": null}], '
        '"units": {"temp": "C", "wind": "m/s"}}'
    )
