"""Types for the Responses API spoken by the consuming agent.

These types define the request/response format of the /v1/responses
endpoint and the wire names of the streaming events.
"""

from typing import Any, Literal, Union
from typing_extensions import NotRequired, TypedDict


# =============================================================================
# Role / Status Types
# =============================================================================

Role = Literal["user", "assistant", "system"]
"""Roles accepted in ``input`` turns."""

ItemStatus = Literal["in_progress", "completed"]
"""Status lifecycle for an output message."""

ResponseStatus = Literal["completed", "failed", "in_progress", "cancelled"]
"""Status lifecycle for the overall response.

- in_progress: Model processing (streaming lifecycle events)
- completed: Finished successfully
- failed: Error occurred or content was filtered
- cancelled: Reserved for aborted exchanges
"""


# =============================================================================
# Input Types
# =============================================================================

class InputText(TypedDict):
    """Plain text input content."""
    type: Literal["input_text"]
    text: str


class InputImage(TypedDict, total=False):
    """Image input content."""
    type: Literal["input_image"]
    image_url: str  # URL or data URI
    detail: Literal["low", "high", "auto"]


InputContent = Union[InputText, InputImage]


class InputMessage(TypedDict):
    """A single turn in a list ``input``."""
    role: Role
    content: Union[str, list[InputContent]]


# =============================================================================
# Tool Declarations
# =============================================================================

class FunctionSpec(TypedDict, total=False):
    """Nested function schema of a function tool."""
    name: str
    description: str
    parameters: dict[str, Any]


class ResponsesTool(TypedDict, total=False):
    """A tool declaration tagged by capability type.

    Function tools carry their schema either nested under ``function`` or
    flat on the declaration itself. Built-in capabilities such as
    ``web_search_preview`` carry no schema.
    """
    type: str
    function: FunctionSpec
    name: str
    description: str
    parameters: dict[str, Any]


# =============================================================================
# Request
# =============================================================================

class ResponsesRequest(TypedDict, total=False):
    """Full request body for POST /v1/responses."""
    # Required
    model: str
    input: Union[str, list[InputMessage]]

    instructions: str

    # Sampling
    temperature: float
    top_p: float
    max_output_tokens: int
    presence_penalty: float
    frequency_penalty: float
    stop: Union[str, list[str]]

    # Tools
    tools: list[ResponsesTool]
    tool_choice: Any

    stream: bool

    # Accepted for compatibility, not acted upon
    store: bool
    previous_response_id: str
    metadata: dict[str, str]


# =============================================================================
# Output Types
# =============================================================================

class OutputText(TypedDict):
    """Text output content."""
    type: Literal["output_text"]
    text: str
    annotations: list[Any]


class OutputMessage(TypedDict):
    """A message item in ``output``."""
    type: Literal["message"]
    id: str
    role: Literal["assistant"]
    status: ItemStatus
    content: list[OutputText]


class ResponseUsage(TypedDict):
    """Token usage information for a response."""
    input_tokens: int
    output_tokens: int
    total_tokens: int


class ResponseError(TypedDict):
    """Structured error object."""
    code: str
    message: str


class ResponseObject(TypedDict):
    """Full response object from POST /v1/responses."""
    id: str
    object: Literal["response"]
    created_at: int
    model: str
    status: ResponseStatus
    output: list[OutputMessage]
    usage: ResponseUsage
    error: NotRequired[ResponseError]


# =============================================================================
# Event Type Constants
# =============================================================================

# Lifecycle events
EVENT_RESPONSE_CREATED = "response.created"
EVENT_RESPONSE_IN_PROGRESS = "response.in_progress"
EVENT_RESPONSE_COMPLETED = "response.completed"
EVENT_RESPONSE_DONE = "response.done"

# Item / content events
EVENT_OUTPUT_ITEM_ADDED = "response.output_item.added"
EVENT_CONTENT_PART_ADDED = "response.content_part.added"
EVENT_OUTPUT_TEXT_DELTA = "response.output_text.delta"
EVENT_OUTPUT_TEXT_DONE = "response.output_text.done"
EVENT_CONTENT_PART_DONE = "response.content_part.done"
EVENT_OUTPUT_ITEM_DONE = "response.output_item.done"

# Failure
EVENT_ERROR = "error"

TERMINAL_EVENTS = frozenset({EVENT_RESPONSE_DONE, EVENT_ERROR})
