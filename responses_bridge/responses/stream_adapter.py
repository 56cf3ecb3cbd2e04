"""Stream adapter for converting Chat Completions chunks to Responses API events.

Synthesizes the strictly ordered Responses API event sequence from the
token-by-token chunks of an upstream Chat Completions stream.

Chat Completion Events:
    data: {"choices":[{"delta":{"role":"assistant"},"index":0}]}
    data: {"choices":[{"delta":{"content":"Hello"},"index":0}]}
    data: {"choices":[{"delta":{},"finish_reason":"stop","index":0}]}
    data: [DONE]

Responses API Events:
    event: response.created
    event: response.in_progress
    event: response.output_item.added
    event: response.content_part.added
    event: response.output_text.delta      (once per non-empty delta)
    event: response.output_text.done
    event: response.content_part.done
    event: response.output_item.done
    event: response.completed
    event: response.done

A failure before ``response.done`` replaces the remaining sequence with a
single ``error`` event.
"""

import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Any, AsyncIterable, AsyncIterator, Optional

from ..core.exceptions import MalformedChunkError
from ..core.sse import format_sse
from ..types.chat import ChatCompletionChunk
from ..types.events import (
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
from ..types.responses import OutputText, ResponseObject, ResponseStatus
from .translator import (
    CONTENT_FILTER_MESSAGE,
    build_output_message,
    generate_message_id,
    generate_response_id,
    map_finish_reason_to_status,
)

logger = logging.getLogger("responses-bridge")

STREAM_ERROR_CODE = "stream_error"


class StreamState(enum.Enum):
    NOT_STARTED = "not_started"
    OUTPUT_OPENED = "output_opened"
    CONTENT_OPENED = "content_opened"
    TERMINATED = "terminated"


@dataclass
class SynthesisContext:
    """Mutable state of one streaming exchange."""

    model: str = ""
    response_id: str = field(default_factory=generate_response_id)
    message_id: str = field(default_factory=generate_message_id)
    created_at: int = field(default_factory=lambda: int(time.time()))
    text: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    output_started: bool = False
    content_part_opened: bool = False
    terminated: bool = False

    @property
    def state(self) -> StreamState:
        if self.terminated:
            return StreamState.TERMINATED
        if self.content_part_opened:
            return StreamState.CONTENT_OPENED
        if self.output_started:
            return StreamState.OUTPUT_OPENED
        return StreamState.NOT_STARTED

    def record_usage(self, usage: Any) -> None:
        if not isinstance(usage, dict):
            return
        self.input_tokens = usage.get("prompt_tokens") or 0
        self.output_tokens = usage.get("completion_tokens") or 0
        self.total_tokens = usage.get("total_tokens") or 0


def _text_part(text: str) -> OutputText:
    return {"type": "output_text", "text": text, "annotations": []}


def build_response_object(
    ctx: SynthesisContext,
    status: ResponseStatus,
    include_output: bool = True,
) -> ResponseObject:
    """Snapshot of the response for lifecycle events."""
    response: ResponseObject = {
        "id": ctx.response_id,
        "object": "response",
        "created_at": ctx.created_at,
        "model": ctx.model,
        "status": status,
        "output": [build_output_message(ctx.message_id, ctx.text)] if include_output else [],
        "usage": {
            "input_tokens": ctx.input_tokens,
            "output_tokens": ctx.output_tokens,
            "total_tokens": ctx.total_tokens,
        },
    }
    if status == "failed":
        response["error"] = {"code": "content_filter", "message": CONTENT_FILTER_MESSAGE}
    return response


def start_events(ctx: SynthesisContext) -> list[StreamEvent]:
    """``response.created`` and ``response.in_progress`` with an empty output."""
    snapshot = build_response_object(ctx, "in_progress", include_output=False)
    return [ResponseCreatedEvent(response=snapshot), ResponseInProgressEvent(response=snapshot)]


def _open_output(ctx: SynthesisContext) -> list[StreamEvent]:
    events: list[StreamEvent] = []
    if not ctx.output_started:
        ctx.output_started = True
        item = build_output_message(ctx.message_id, "", status="in_progress")
        item["content"] = []
        events.append(OutputItemAddedEvent(output_index=0, item=item))
    if not ctx.content_part_opened:
        ctx.content_part_opened = True
        events.append(
            ContentPartAddedEvent(
                item_id=ctx.message_id,
                output_index=0,
                content_index=0,
                part=_text_part(""),
            )
        )
    return events


def finish_events(ctx: SynthesisContext, finish_reason: str) -> list[StreamEvent]:
    """Close any open item and emit the terminal sequence exactly once."""
    if ctx.terminated:
        return []

    events = _open_output(ctx)
    text = ctx.text
    events.append(
        OutputTextDoneEvent(item_id=ctx.message_id, output_index=0, content_index=0, text=text)
    )
    events.append(
        ContentPartDoneEvent(
            item_id=ctx.message_id, output_index=0, content_index=0, part=_text_part(text)
        )
    )
    events.append(
        OutputItemDoneEvent(output_index=0, item=build_output_message(ctx.message_id, text))
    )

    final = build_response_object(ctx, map_finish_reason_to_status(finish_reason))
    events.append(ResponseCompletedEvent(response=final))
    events.append(ResponseDoneEvent(response=final))

    ctx.terminated = True
    logger.debug(
        "StreamAdapter: Terminated with finish_reason=%s (%d chars)", finish_reason, len(text)
    )
    return events


def error_event(ctx: SynthesisContext, message: str) -> list[StreamEvent]:
    """The single ``error`` event replacing the rest of the sequence."""
    if ctx.terminated:
        return []
    ctx.terminated = True
    return [ErrorEvent(code=STREAM_ERROR_CODE, message=message)]


def translate_stream_chunk(chunk: ChatCompletionChunk, ctx: SynthesisContext) -> list[StreamEvent]:
    """Process one upstream chunk and return the events it produces.

    Only the first choice is considered. Chunks after termination produce
    nothing.

    Raises:
        MalformedChunkError: If the chunk does not have the chunk shape.
    """
    if ctx.terminated:
        return []
    if not isinstance(chunk, dict):
        raise MalformedChunkError(f"chunk is not an object: {chunk!r}")

    ctx.record_usage(chunk.get("usage"))

    choices = chunk.get("choices") or []
    if not isinstance(choices, list):
        raise MalformedChunkError("chunk 'choices' is not an array")
    if not choices:
        return []

    choice = choices[0]
    if not isinstance(choice, dict):
        raise MalformedChunkError("chunk choice is not an object")
    delta = choice.get("delta") or {}
    if not isinstance(delta, dict):
        raise MalformedChunkError("chunk delta is not an object")

    events: list[StreamEvent] = []
    content = delta.get("content")
    if isinstance(content, str) and content:
        events.extend(_open_output(ctx))
        ctx.text += content
        events.append(
            OutputTextDeltaEvent(
                item_id=ctx.message_id, output_index=0, content_index=0, delta=content
            )
        )

    finish_reason = choice.get("finish_reason")
    if finish_reason is not None:
        events.extend(finish_events(ctx, str(finish_reason)))

    return events


class ChatToResponsesStreamAdapter:
    """Drives a ``SynthesisContext`` over an async stream of upstream chunks.

    The adapter owns the context for one streaming request. It guarantees the
    sequence ends with ``response.done`` or a single ``error`` event:
    - an upstream that ends without a finish reason is closed as ``stop``
    - a malformed chunk is dropped with a warning
    - an exception from the upstream iterator becomes an ``error`` event
    """

    def __init__(self, model: str, context: Optional[SynthesisContext] = None):
        self.context = context or SynthesisContext(model=model)
        self.context.model = model
        self.sequence_number = 0

    @property
    def response_id(self) -> str:
        return self.context.response_id

    def process_chunk(self, chunk: ChatCompletionChunk) -> list[StreamEvent]:
        try:
            return translate_stream_chunk(chunk, self.context)
        except MalformedChunkError as exc:
            logger.warning("StreamAdapter: Dropping malformed chunk: %s", exc)
            return []

    async def adapt_stream(
        self,
        chunks: AsyncIterable[ChatCompletionChunk],
    ) -> AsyncIterator[StreamEvent]:
        """Transform upstream chunks into Responses API events.

        Args:
            chunks: Parsed Chat Completions chunks in wire order

        Yields:
            Responses API events
        """
        for event in start_events(self.context):
            yield event

        try:
            async for chunk in chunks:
                for event in self.process_chunk(chunk):
                    yield event
        except Exception as exc:
            if self.context.terminated:
                logger.warning("StreamAdapter: Upstream failed after completion: %s", exc)
                return
            logger.error("StreamAdapter: Upstream stream failed: %s", exc)
            for event in error_event(self.context, str(exc) or exc.__class__.__name__):
                yield event
            return

        if not self.context.terminated:
            logger.info("StreamAdapter: Upstream ended without finish_reason, closing as stop")
            for event in finish_events(self.context, "stop"):
                yield event

    def encode(self, event: StreamEvent) -> bytes:
        """Frame an event as SSE with a monotonically increasing sequence number."""
        payload = event.to_dict()
        payload["sequence_number"] = self.sequence_number
        self.sequence_number += 1
        return format_sse(event.type, payload)

    async def adapt_to_sse(
        self,
        chunks: AsyncIterable[ChatCompletionChunk],
    ) -> AsyncIterator[bytes]:
        async for event in self.adapt_stream(chunks):
            yield self.encode(event)
