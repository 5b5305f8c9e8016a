"""
Location: python/propstream/tracker.py

Summary:
    Per-component streaming state machine. Accumulates the raw JSON text of
    one component's props, re-parses it tolerantly after every delta and
    emits start / props_delta / end events with root-level JSON Patch
    operations and a per-property streaming status.

Usage:
    One ComponentStreamTracker per component instance, usually owned by a
    ComponentStreamRouter keyed by component id. Instances share no state.

Example:
    from propstream.tracker import ComponentStreamTracker

    tracker = ComponentStreamTracker("c1", "WeatherCard")
    tracker.process_delta('{"city": ')        # [ComponentStartEvent]
    tracker.process_delta('"Oslo"}')          # [ComponentPropsDeltaEvent]
    tracker.finalize()                        # [ComponentEndEvent]
"""

import copy
import logging
from typing import Any, Optional

from .partial import PartialJsonParser, parse_partial_json
from .types import (
    DEFAULT_MAX_JSON_SIZE,
    ComponentEndEvent,
    ComponentEvent,
    ComponentPropsDeltaEvent,
    ComponentStartEvent,
    JsonPatchOperation,
    PropStreamingStatus,
)

logger = logging.getLogger(__name__)


class TrackerError(Exception):
    """Exception raised when a tracker is used incorrectly."""
    pass


class PropsTooLargeError(TrackerError):
    """Exception raised when accumulated props text exceeds the size limit."""
    pass


class TrackerFinalizedError(TrackerError):
    """Exception raised when a finalized tracker receives more input."""
    pass


def json_pointer_path(key: str) -> str:
    """
    Build a single-segment JSON Pointer for a top-level key.

    Escapes "~" and "/" per RFC 6901 so the key stays one segment.
    """
    return "/" + key.replace("~", "~0").replace("/", "~1")


def is_value_complete(value: Any) -> bool:
    """
    Heuristic completeness check for a parsed property value.

    Scalars (strings and None included) are always complete; arrays and
    objects are complete when all of their members are. A string that
    happens to parse may still grow with later deltas.
    """
    if isinstance(value, list):
        return all(is_value_complete(item) for item in value)
    if isinstance(value, dict):
        return all(is_value_complete(item) for item in value.values())
    return True


def deep_equal(a: Any, b: Any) -> bool:
    """
    Structural equality for JSON values.

    Unlike ==, booleans never equal numbers and lists never equal dicts.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    if isinstance(a, dict):
        if not isinstance(b, dict) or a.keys() != b.keys():
            return False
        return all(deep_equal(a[key], b[key]) for key in a)
    if isinstance(a, list):
        if not isinstance(b, list) or len(a) != len(b):
            return False
        return all(deep_equal(x, y) for x, y in zip(a, b))
    if isinstance(b, (dict, list)):
        return False
    return a == b


class ComponentStreamTracker:
    """
    Tracks incremental JSON streaming for a single component's props.

    Attributes:
        component_id: Opaque id of the component instance
        component_name: Registered name of the component
        message_id: Optional id of the message carrying the component
        max_json_size: Ceiling on the accumulated text, in characters
    """

    def __init__(
        self,
        component_id: str,
        component_name: str,
        *,
        message_id: Optional[str] = None,
        parser: Optional[PartialJsonParser] = None,
        max_json_size: int = DEFAULT_MAX_JSON_SIZE,
    ):
        """
        Initialize the tracker.

        Args:
            component_id: Opaque id of the component instance
            component_name: Registered name of the component
            message_id: Optional id of the owning message, echoed on start
            parser: Tolerant JSON parser (defaults to parse_partial_json)
            max_json_size: Ceiling on the accumulated text, in characters
        """
        self.component_id = component_id
        self.component_name = component_name
        self.message_id = message_id
        self.max_json_size = max_json_size
        self._parser = parser or parse_partial_json

        self._accumulated_json = ""
        self._previous_props: dict[str, Any] = {}
        self._streaming_status: dict[str, PropStreamingStatus] = {}
        self._started = False
        self._finalized = False

    @property
    def accumulated_json(self) -> str:
        return self._accumulated_json

    @property
    def props(self) -> dict[str, Any]:
        """Copy of the last successfully parsed props."""
        return copy.deepcopy(self._previous_props)

    @property
    def streaming_status(self) -> dict[str, PropStreamingStatus]:
        return dict(self._streaming_status)

    @property
    def started(self) -> bool:
        return self._started

    @property
    def finalized(self) -> bool:
        return self._finalized

    def process_delta(self, text: str) -> list[ComponentEvent]:
        """
        Append a JSON delta and return the events it produces.

        An unparseable or non-object prefix is not an error: the tracker
        simply waits for more text.

        Args:
            text: Next raw slice of the props JSON

        Returns:
            Zero or more events: start (first call only), then at most one
            props_delta

        Raises:
            TrackerFinalizedError: If finalize() was already called
            PropsTooLargeError: If the text would exceed max_json_size
        """
        if self._finalized:
            raise TrackerFinalizedError(
                f"Component {self.component_id} has already been finalized"
            )
        if len(self._accumulated_json) + len(text) > self.max_json_size:
            raise PropsTooLargeError(
                f"Component {self.component_id} props exceed maximum size of "
                f"{self.max_json_size} characters"
            )

        events: list[ComponentEvent] = []

        if not self._started:
            events.append(
                ComponentStartEvent(
                    component_id=self.component_id,
                    component_name=self.component_name,
                    message_id=self.message_id,
                )
            )
            self._started = True
            logger.debug("Component %s (%s) started", self.component_id, self.component_name)

        self._accumulated_json += text

        try:
            current_props = self._parser(self._accumulated_json)
        except ValueError:
            return events

        if not isinstance(current_props, dict):
            return events

        patches = self._diff_props(self._previous_props, current_props)
        if patches:
            events.append(
                ComponentPropsDeltaEvent(
                    component_id=self.component_id,
                    patch=patches,
                    streaming_status=dict(self._streaming_status),
                )
            )

        self._previous_props = copy.deepcopy(current_props)
        return events

    def finalize(self) -> list[ComponentEvent]:
        """
        Close the stream and return the end event.

        Re-parses the accumulated text; if that fails the last good
        snapshot is used. Every tracked property is marked done.

        Returns:
            A list holding exactly one ComponentEndEvent

        Raises:
            TrackerFinalizedError: If finalize() was already called
        """
        if self._finalized:
            raise TrackerFinalizedError(
                f"Component {self.component_id} has already been finalized"
            )

        try:
            final_props = self._parser(self._accumulated_json)
        except ValueError:
            final_props = None

        if not isinstance(final_props, dict):
            logger.debug(
                "Component %s final props unparseable, using last snapshot",
                self.component_id,
            )
            final_props = copy.deepcopy(self._previous_props)

        for key in self._streaming_status:
            self._streaming_status[key] = "done"

        self._finalized = True
        logger.debug("Component %s finalized", self.component_id)

        return [
            ComponentEndEvent(
                component_id=self.component_id,
                final_props=final_props,
                final_state=None,
            )
        ]

    def _diff_props(
        self,
        previous: dict[str, Any],
        current: dict[str, Any],
    ) -> list[JsonPatchOperation]:
        """
        Compare two top-level props objects, updating statuses in place.

        Returns:
            Patch operations in key order: adds/replaces first, then removes
        """
        patches: list[JsonPatchOperation] = []

        for key, value in current.items():
            path = json_pointer_path(key)
            complete = is_value_complete(value)

            if key not in previous:
                patches.append(JsonPatchOperation(op="add", path=path, value=value))
                self._streaming_status[key] = "done" if complete else "started"
            elif not deep_equal(previous[key], value):
                patches.append(JsonPatchOperation(op="replace", path=path, value=value))
                self._streaming_status[key] = "done" if complete else "streaming"
            elif self._streaming_status.get(key) == "streaming" and complete:
                self._streaming_status[key] = "done"

        for key in previous:
            if key not in current:
                patches.append(JsonPatchOperation(op="remove", path=json_pointer_path(key)))
                self._streaming_status.pop(key, None)

        return patches
