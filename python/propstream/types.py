"""
Location: python/propstream/types.py

Summary:
    Pydantic models for propstream. Defines the stream configuration,
    the root-level JSON Patch operation, and the three component protocol
    events (start, props_delta, end) emitted by the tracker.

Usage:
    These models are imported by stream.py, tracker.py, router.py and
    client.py. Attributes are snake_case; serialisation uses the camelCase
    wire names via aliases.

Example:
    from propstream.types import ComponentStartEvent, parse_component_event

    event = ComponentStartEvent(component_id="c1", component_name="Card")
    wire = event.model_dump(by_alias=True, mode="json")
    assert parse_component_event(wire) == event
"""

import time
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, model_serializer

PropStreamingStatus = Literal["started", "streaming", "done"]

DEFAULT_MAX_JSON_SIZE = 10 * 1024 * 1024


def _now_ms() -> int:
    return int(time.time() * 1000)


class StreamConfig(BaseModel):
    """
    Tunables for decoding and tracking a component stream.

    Attributes:
        max_chunk_retries: Failed parse attempts tolerated for one pending
                           event before the stream is abandoned
        max_request_retries: Extra attempts to open the upstream stream
                             after the first one fails
        max_json_size: Ceiling on the accumulated property text of a
                       single component, in characters
    """
    max_chunk_retries: int = Field(5, ge=0, alias="maxChunkRetries")
    max_request_retries: int = Field(2, ge=0, alias="maxRequestRetries")
    max_json_size: int = Field(DEFAULT_MAX_JSON_SIZE, gt=0, alias="maxJsonSize")

    model_config = {"populate_by_name": True}


class JsonPatchOperation(BaseModel):
    """
    A single RFC 6902 operation against a component's props.

    Paths are always one root-level segment ("/title"); nested changes are
    expressed by replacing the whole top-level value.

    Attributes:
        op: "add", "replace" or "remove"
        path: JSON Pointer with exactly one segment
        value: New value for add/replace; absent from remove when serialised
    """
    op: Literal["add", "replace", "remove"]
    path: str
    value: Any = None

    @model_serializer(mode="wrap")
    def serialize_operation(self, handler):
        data = handler(self)
        if self.op == "remove":
            data.pop("value", None)
        return data


class ComponentStartEvent(BaseModel):
    """
    Emitted once, before anything else, when a component begins streaming.

    Attributes:
        component_id: Opaque id of the component instance
        component_name: Registered name of the component
        message_id: Optional id of the message carrying the component
        timestamp: Unix epoch milliseconds
    """
    type: Literal["component.start"] = "component.start"
    component_id: str = Field(alias="componentId")
    component_name: str = Field(alias="componentName")
    message_id: Optional[str] = Field(None, alias="messageId")
    timestamp: int = Field(default_factory=_now_ms)

    model_config = {"populate_by_name": True}


class ComponentPropsDeltaEvent(BaseModel):
    """
    Bundles every patch produced by one delta together with the full
    streaming status map as it stands after that delta.

    Attributes:
        component_id: Opaque id of the component instance
        patch: Root-level patch operations, in emission order
        streaming_status: Status of every tracked top-level property
        timestamp: Unix epoch milliseconds
    """
    type: Literal["component.props_delta"] = "component.props_delta"
    component_id: str = Field(alias="componentId")
    patch: list[JsonPatchOperation]
    streaming_status: dict[str, PropStreamingStatus] = Field(alias="streamingStatus")
    timestamp: int = Field(default_factory=_now_ms)

    model_config = {"populate_by_name": True}


class ComponentEndEvent(BaseModel):
    """
    Emitted once when the component's props are final.

    Attributes:
        component_id: Opaque id of the component instance
        final_props: The resolved props object
        final_state: Associated UI state; never populated at this layer
        timestamp: Unix epoch milliseconds
    """
    type: Literal["component.end"] = "component.end"
    component_id: str = Field(alias="componentId")
    final_props: dict[str, Any] = Field(alias="finalProps")
    final_state: Optional[dict[str, Any]] = Field(None, alias="finalState")
    timestamp: int = Field(default_factory=_now_ms)

    model_config = {"populate_by_name": True}


ComponentEvent = Annotated[
    Union[ComponentStartEvent, ComponentPropsDeltaEvent, ComponentEndEvent],
    Field(discriminator="type"),
]

_component_event_adapter = TypeAdapter(ComponentEvent)


def parse_component_event(data: dict) -> ComponentEvent:
    """
    Validate a wire dict into the matching event model.

    Args:
        data: Event dict using either camelCase or snake_case keys

    Returns:
        ComponentStartEvent, ComponentPropsDeltaEvent or ComponentEndEvent

    Raises:
        pydantic.ValidationError: If the type tag or fields are invalid
    """
    return _component_event_adapter.validate_python(data)
