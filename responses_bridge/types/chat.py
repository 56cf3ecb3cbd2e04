"""Types for the upstream Chat Completions format.

These are the shapes sent to and received from the upstream completion
service: the outbound request body, the non-streaming completion and the
streamed ``chat.completion.chunk`` frames.
"""

from typing import Any, Literal, Optional
from typing_extensions import TypedDict


FinishReason = Literal["stop", "length", "tool_calls", "content_filter"]
"""Completion reasons reported in ``choices[].finish_reason``.

``None`` is used until the final chunk of a stream.
"""


class ImageUrl(TypedDict, total=False):
    """Image reference inside an ``image_url`` content part."""
    url: str
    detail: str


class ContentPart(TypedDict, total=False):
    """A content part for multi-modal messages.

    Attributes:
        type: "text" or "image_url".
        text: Text content (for "text" parts).
        image_url: Image reference (for "image_url" parts).
    """
    type: str
    text: str
    image_url: ImageUrl


class ChatMessage(TypedDict, total=False):
    """A message in a chat conversation.

    Attributes:
        role: "system", "user", "assistant" (or "tool" in upstream replies).
        content: Plain text, a list of content parts, or None when the
            assistant replied with tool calls only.
        tool_calls: Tool calls requested by the assistant.
    """
    role: str
    content: str | list[ContentPart] | None
    tool_calls: list[dict[str, Any]]


class FunctionDefinition(TypedDict, total=False):
    """Callable function schema."""
    name: str
    description: str
    parameters: dict[str, Any]


class ChatTool(TypedDict):
    """A function tool declaration."""
    type: Literal["function"]
    function: FunctionDefinition


class ChatCompletionRequest(TypedDict, total=False):
    """Outbound request body for ``POST /chat/completions``."""
    model: str
    messages: list[ChatMessage]
    temperature: float
    top_p: float
    max_tokens: int
    presence_penalty: float
    frequency_penalty: float
    stop: str | list[str]
    stream: bool
    tools: list[ChatTool]
    tool_choice: Any


class Usage(TypedDict, total=False):
    """Token usage counters.

    Attributes:
        prompt_tokens: Tokens in the prompt.
        completion_tokens: Tokens in the completion.
        total_tokens: Sum of the two.
    """
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class Choice(TypedDict, total=False):
    """A single completion choice."""
    index: int
    message: ChatMessage
    finish_reason: Optional[str]


class ChatCompletionResponse(TypedDict, total=False):
    """Non-streaming completion returned by the upstream service."""
    id: str
    object: str
    created: int
    model: str
    choices: list[Choice]
    usage: Usage


class Delta(TypedDict, total=False):
    """A streamed delta of a choice.

    Attributes:
        role: Usually "assistant" on the first chunk only.
        content: Incremental text, possibly empty.
    """
    role: str
    content: Optional[str]


class StreamChoice(TypedDict, total=False):
    """A choice inside a streamed chunk."""
    index: int
    delta: Delta
    finish_reason: Optional[str]


class ChatCompletionChunk(TypedDict, total=False):
    """One ``chat.completion.chunk`` frame from an upstream stream."""
    id: str
    object: str
    created: int
    model: str
    choices: list[StreamChoice]
    usage: Usage


class UpstreamErrorDetail(TypedDict, total=False):
    """Error detail as sent by the upstream service."""
    message: str
    type: str
    code: str | int


class UpstreamErrorBody(TypedDict):
    """Error envelope ``{"error": {...}}`` sent by the upstream service."""
    error: UpstreamErrorDetail
