"""
Location: python/propstream/__init__.py

Summary:
    Main package initialization for propstream. Exports the SSE decoder,
    the component stream tracker and router, the HTTP client and the
    event models.

Usage:
    from propstream import PropStreamClient, ComponentStreamRouter

    # Or import specific modules
    from propstream.stream import SSEDecoder, iter_sse_json
    from propstream.tracker import ComponentStreamTracker

Version: 0.1.0
"""

from .client import PropStreamClient
from .types import (
    StreamConfig,
    JsonPatchOperation,
    PropStreamingStatus,
    ComponentStartEvent,
    ComponentPropsDeltaEvent,
    ComponentEndEvent,
    ComponentEvent,
    parse_component_event,
)
from .partial import PartialJsonParser, PartialJSONError, parse_partial_json
from .stream import (
    SSEDecoder,
    iter_sse_json,
    StreamError,
    StreamParseError,
    StreamRemoteError,
)
from .tracker import (
    ComponentStreamTracker,
    TrackerError,
    PropsTooLargeError,
    TrackerFinalizedError,
)
from .router import (
    ComponentStreamRouter,
    UnknownComponentError,
    is_component_tool,
    extract_component_name,
)

__version__ = "0.1.0"

__all__ = [
    # Main client
    "PropStreamClient",
    # Types
    "StreamConfig",
    "JsonPatchOperation",
    "PropStreamingStatus",
    "ComponentStartEvent",
    "ComponentPropsDeltaEvent",
    "ComponentEndEvent",
    "ComponentEvent",
    "parse_component_event",
    # Tolerant parsing
    "PartialJsonParser",
    "PartialJSONError",
    "parse_partial_json",
    # SSE decoding
    "SSEDecoder",
    "iter_sse_json",
    # Component tracking
    "ComponentStreamTracker",
    "ComponentStreamRouter",
    "is_component_tool",
    "extract_component_name",
    # Exceptions
    "StreamError",
    "StreamParseError",
    "StreamRemoteError",
    "TrackerError",
    "PropsTooLargeError",
    "TrackerFinalizedError",
    "UnknownComponentError",
]
