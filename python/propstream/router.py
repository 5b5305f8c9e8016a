"""
Location: python/propstream/router.py

Summary:
    Routes raw props deltas to per-component trackers. Owns the map of
    component id to ComponentStreamTracker for one model response and
    removes trackers once their end event has been produced.

Usage:
    Used by callers that read decoded stream values, pick out component
    tool-call deltas and forward the resulting events to a renderer.

Example:
    from propstream.router import ComponentStreamRouter, is_component_tool

    router = ComponentStreamRouter()
    if is_component_tool(tool_name):
        events = router.process_delta(
            call_id, delta, component_name=extract_component_name(tool_name)
        )
    ...
    events = router.finalize(call_id)
"""

import logging
from typing import Optional

from .partial import PartialJsonParser
from .tracker import ComponentStreamTracker, TrackerError
from .types import ComponentEvent, StreamConfig

logger = logging.getLogger(__name__)

COMPONENT_TOOL_PREFIX = "show_component_"


class UnknownComponentError(TrackerError, KeyError):
    """Exception raised when a component id has no open tracker."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


def is_component_tool(tool_name: str) -> bool:
    """Check whether a tool call renders a component."""
    return tool_name.startswith(COMPONENT_TOOL_PREFIX)


def extract_component_name(tool_name: str) -> str:
    """Strip the component tool prefix from a tool name."""
    return tool_name.removeprefix(COMPONENT_TOOL_PREFIX)


class ComponentStreamRouter:
    """
    Caller-owned registry of component trackers.

    Trackers are created on the first delta for a component id and
    dropped when finalized. They never see each other's input, so deltas
    for different components may be interleaved in any order.
    """

    def __init__(
        self,
        *,
        parser: Optional[PartialJsonParser] = None,
        config: Optional[StreamConfig] = None,
    ):
        """
        Initialize the router.

        Args:
            parser: Tolerant JSON parser handed to every tracker
            config: Supplies max_json_size for new trackers
        """
        self._parser = parser
        self._config = config or StreamConfig()
        self._trackers: dict[str, ComponentStreamTracker] = {}

    def __contains__(self, component_id: object) -> bool:
        return component_id in self._trackers

    def __len__(self) -> int:
        return len(self._trackers)

    @property
    def active_ids(self) -> list[str]:
        """Ids of components still streaming, in arrival order."""
        return list(self._trackers)

    def get(self, component_id: str) -> Optional[ComponentStreamTracker]:
        return self._trackers.get(component_id)

    def process_delta(
        self,
        component_id: str,
        text: str,
        *,
        component_name: Optional[str] = None,
        message_id: Optional[str] = None,
    ) -> list[ComponentEvent]:
        """
        Forward a props delta to the tracker for a component.

        Args:
            component_id: Opaque id of the component instance
            text: Next raw slice of the props JSON
            component_name: Required on the first delta for an id
            message_id: Optional owning message id, used on creation

        Returns:
            Events produced by the tracker

        Raises:
            UnknownComponentError: If the id is new and no name was given
        """
        tracker = self._trackers.get(component_id)
        if tracker is None:
            if component_name is None:
                raise UnknownComponentError(
                    f"No tracker for component {component_id} and no component name given"
                )
            tracker = ComponentStreamTracker(
                component_id,
                component_name,
                message_id=message_id,
                parser=self._parser,
                max_json_size=self._config.max_json_size,
            )
            self._trackers[component_id] = tracker
            logger.debug("Tracking component %s (%s)", component_id, component_name)

        return tracker.process_delta(text)

    def finalize(self, component_id: str) -> list[ComponentEvent]:
        """
        Finalize a component and stop tracking it.

        Args:
            component_id: Opaque id of the component instance

        Returns:
            The tracker's end event

        Raises:
            UnknownComponentError: If the id has no open tracker
        """
        tracker = self._trackers.pop(component_id, None)
        if tracker is None:
            raise UnknownComponentError(f"No tracker for component {component_id}")
        return tracker.finalize()

    def finalize_all(self) -> list[ComponentEvent]:
        """
        Finalize every open component, in arrival order.

        Returns:
            One end event per component that was still streaming
        """
        events: list[ComponentEvent] = []
        for component_id in list(self._trackers):
            events.extend(self.finalize(component_id))
        return events
