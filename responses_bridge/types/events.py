"""Streaming events emitted on the /v1/responses event stream.

Each event tag is its own frozen dataclass so an event only carries the
fields that belong to it. ``StreamEvent`` is the closed union of all of them.
"""

from dataclasses import asdict, dataclass
from typing import Any, ClassVar, Union

from .responses import (
    EVENT_CONTENT_PART_ADDED,
    EVENT_CONTENT_PART_DONE,
    EVENT_ERROR,
    EVENT_OUTPUT_ITEM_ADDED,
    EVENT_OUTPUT_ITEM_DONE,
    EVENT_OUTPUT_TEXT_DELTA,
    EVENT_OUTPUT_TEXT_DONE,
    EVENT_RESPONSE_COMPLETED,
    EVENT_RESPONSE_CREATED,
    EVENT_RESPONSE_DONE,
    EVENT_RESPONSE_IN_PROGRESS,
    OutputMessage,
    OutputText,
    ResponseObject,
)


@dataclass(frozen=True)
class _Event:
    type: ClassVar[str]

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON payload of the event, ``type`` first."""
        return {"type": self.type, **asdict(self)}


# =============================================================================
# Lifecycle events (carry the whole response object)
# =============================================================================


@dataclass(frozen=True)
class ResponseCreatedEvent(_Event):
    """response.created - Emitted once before the first upstream read."""
    type: ClassVar[str] = EVENT_RESPONSE_CREATED
    response: ResponseObject


@dataclass(frozen=True)
class ResponseInProgressEvent(_Event):
    """response.in_progress - Emitted right after response.created."""
    type: ClassVar[str] = EVENT_RESPONSE_IN_PROGRESS
    response: ResponseObject


@dataclass(frozen=True)
class ResponseCompletedEvent(_Event):
    """response.completed - Full synthesized response."""
    type: ClassVar[str] = EVENT_RESPONSE_COMPLETED
    response: ResponseObject


@dataclass(frozen=True)
class ResponseDoneEvent(_Event):
    """response.done - Authoritative terminal event, same payload as completed."""
    type: ClassVar[str] = EVENT_RESPONSE_DONE
    response: ResponseObject


# =============================================================================
# Output item / content part events
# =============================================================================


@dataclass(frozen=True)
class OutputItemAddedEvent(_Event):
    type: ClassVar[str] = EVENT_OUTPUT_ITEM_ADDED
    output_index: int
    item: OutputMessage


@dataclass(frozen=True)
class ContentPartAddedEvent(_Event):
    type: ClassVar[str] = EVENT_CONTENT_PART_ADDED
    item_id: str
    output_index: int
    content_index: int
    part: OutputText


@dataclass(frozen=True)
class OutputTextDeltaEvent(_Event):
    type: ClassVar[str] = EVENT_OUTPUT_TEXT_DELTA
    item_id: str
    output_index: int
    content_index: int
    delta: str


@dataclass(frozen=True)
class OutputTextDoneEvent(_Event):
    type: ClassVar[str] = EVENT_OUTPUT_TEXT_DONE
    item_id: str
    output_index: int
    content_index: int
    text: str


@dataclass(frozen=True)
class ContentPartDoneEvent(_Event):
    type: ClassVar[str] = EVENT_CONTENT_PART_DONE
    item_id: str
    output_index: int
    content_index: int
    part: OutputText


@dataclass(frozen=True)
class OutputItemDoneEvent(_Event):
    type: ClassVar[str] = EVENT_OUTPUT_ITEM_DONE
    output_index: int
    item: OutputMessage


# =============================================================================
# Failure
# =============================================================================


@dataclass(frozen=True)
class ErrorEvent(_Event):
    """error - Terminal on its own; no response.done follows it."""
    type: ClassVar[str] = EVENT_ERROR
    code: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "error": {"code": self.code, "message": self.message},
        }


StreamEvent = Union[
    ResponseCreatedEvent,
    ResponseInProgressEvent,
    OutputItemAddedEvent,
    ContentPartAddedEvent,
    OutputTextDeltaEvent,
    OutputTextDoneEvent,
    ContentPartDoneEvent,
    OutputItemDoneEvent,
    ResponseCompletedEvent,
    ResponseDoneEvent,
    ErrorEvent,
]
"""Union of all streaming event types."""
