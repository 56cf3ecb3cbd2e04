"""Type definitions for the bridge."""

from .chat import (
    ChatCompletionChunk,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    ChatTool,
    Choice,
    ContentPart,
    Delta,
    StreamChoice,
    UpstreamErrorBody,
    UpstreamErrorDetail,
    Usage,
)
from .events import (
    ContentPartAddedEvent,
    ContentPartDoneEvent,
    ErrorEvent,
    OutputItemAddedEvent,
    OutputItemDoneEvent,
    OutputTextDeltaEvent,
    OutputTextDoneEvent,
    ResponseCompletedEvent,
    ResponseCreatedEvent,
    ResponseDoneEvent,
    ResponseInProgressEvent,
    StreamEvent,
)
from .responses import (
    OutputMessage,
    OutputText,
    ResponseObject,
    ResponsesRequest,
    ResponsesTool,
    ResponseUsage,
)

__all__ = [
    "ChatCompletionChunk",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "ChatMessage",
    "ChatTool",
    "Choice",
    "ContentPart",
    "ContentPartAddedEvent",
    "ContentPartDoneEvent",
    "Delta",
    "ErrorEvent",
    "OutputItemAddedEvent",
    "OutputItemDoneEvent",
    "OutputMessage",
    "OutputText",
    "OutputTextDeltaEvent",
    "OutputTextDoneEvent",
    "ResponseCompletedEvent",
    "ResponseCreatedEvent",
    "ResponseDoneEvent",
    "ResponseInProgressEvent",
    "ResponseObject",
    "ResponsesRequest",
    "ResponsesTool",
    "ResponseUsage",
    "StreamChoice",
    "StreamEvent",
    "UpstreamErrorBody",
    "UpstreamErrorDetail",
    "Usage",
]
