"""Fake upstream ASGI app for simulating deterministic responses."""

from __future__ import annotations

import asyncio
import json
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Iterable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse

from ..core.sse import SSEEvent
from .response_builders import build_chat_completion, build_chat_stream_chunks


@dataclass
class UpstreamResponse:
    """A queued response to return from the fake upstream.

    Standard fields:
        status_code: HTTP status code (default 200)
        headers: Response headers
        json_body: JSON response body (for non-streaming)
        body: Raw bytes/string body
        stream: Force streaming mode (None = follow request)
        stream_events: List of SSE events for streaming (dicts, str or raw bytes)
        media_type: Response content type
        add_done: Add [DONE] sentinel at end of stream
        chunk_delay_s: Delay between stream chunks

    Chunk fragmentation fields:
        fragment_events: Split every SSE event in two network chunks

    Malformed data injection:
        inject_malformed_at: Event index to inject bad data
        malformed_data: The malformed data to inject

    Dynamic response:
        response_fn: Callable that receives the request JSON and returns UpstreamResponse
    """

    status_code: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    json_body: dict[str, Any] | None = None
    body: bytes | str | None = None
    stream: bool | None = None
    stream_events: list[Any] | None = None
    media_type: str | None = None
    add_done: bool = True
    chunk_delay_s: float | None = None

    fragment_events: bool = False

    inject_malformed_at: int | None = None
    malformed_data: bytes | None = None

    response_fn: Callable[[Any], "UpstreamResponse"] | None = None

    def resolve_stream(self, request_stream: bool) -> bool:
        if self.stream is None:
            return request_stream
        return bool(self.stream)


def _encode_sse_event(event: Any) -> bytes:
    if isinstance(event, bytes):
        return event
    if isinstance(event, str):
        data = event
    else:
        data = json.dumps(event, ensure_ascii=False)
    return SSEEvent(data=data).encode()


class FakeUpstream:
    """ASGI app that replies with queued responses for /chat/completions.

    Supports:
    - Deterministic response queueing
    - Request tracking/inspection
    - Streaming with SSE events, heartbeats and in-band error frames
    - Chunk fragmentation for edge case testing
    - Malformed data injection
    - Dynamic responses based on request content
    """

    def __init__(
        self,
        responses: Optional[Iterable[UpstreamResponse]] = None,
        *,
        route: str = "/api/v1/chat/completions",
    ) -> None:
        self.app = FastAPI(title="FakeUpstream")
        self._queue: Deque[UpstreamResponse] = deque(responses or [])
        self.received: list[dict[str, Any]] = []
        self.route = route
        self.app.post(route)(self._handle_chat)

    def enqueue(self, response: UpstreamResponse) -> None:
        """Add a response to the queue."""
        self._queue.append(response)

    def clear(self) -> None:
        """Clear all queued responses and received requests."""
        self._queue.clear()
        self.received.clear()

    @property
    def last_request(self) -> dict[str, Any]:
        assert self.received, "FakeUpstream received no requests"
        return self.received[-1]

    # -------------------------------------------------------------------------
    # Convenience methods for common response types
    # -------------------------------------------------------------------------

    def enqueue_chat_response(
        self,
        content: Any,
        *,
        finish_reason: str | None = "stop",
        usage: dict[str, int] | None = None,
        model: str = "openai/fake-model",
    ) -> None:
        """Enqueue a non-streaming Chat Completions response."""
        self.enqueue(
            UpstreamResponse(
                json_body=build_chat_completion(
                    content, finish_reason=finish_reason, usage=usage, model=model
                )
            )
        )

    def enqueue_chat_stream(
        self,
        pieces: list[str],
        *,
        finish_reason: str | None = "stop",
        usage: dict[str, int] | None = None,
        model: str = "openai/fake-model",
        chunk_delay_s: float | None = None,
        fragment_events: bool = False,
    ) -> None:
        """Enqueue a streamed Chat Completions response, one delta per piece."""
        self.enqueue(
            UpstreamResponse(
                stream=True,
                stream_events=build_chat_stream_chunks(
                    pieces, finish_reason=finish_reason, usage=usage, model=model
                ),
                chunk_delay_s=chunk_delay_s,
                fragment_events=fragment_events,
            )
        )

    def enqueue_error_response(
        self,
        status_code: int,
        error_type: str,
        message: str,
        *,
        code: Any = None,
    ) -> None:
        """Enqueue an upstream error in the ``{"error": {...}}`` format."""
        error: dict[str, Any] = {"type": error_type, "message": message}
        if code is not None:
            error["code"] = code
        self.enqueue(UpstreamResponse(status_code=status_code, json_body={"error": error}))

    def enqueue_mid_stream_error(
        self,
        pieces: list[str],
        *,
        message: str = "Upstream overloaded",
        code: str = "server_error",
    ) -> None:
        """Queue a stream that sends ``pieces`` and then an in-band error frame."""
        events: list[Any] = build_chat_stream_chunks(pieces, finish_reason=None)
        events.append({"error": {"message": message, "code": code}})
        self.enqueue(UpstreamResponse(stream=True, stream_events=events, add_done=False))

    # -------------------------------------------------------------------------
    # Request handling
    # -------------------------------------------------------------------------

    async def _handle_chat(self, request: Request) -> Response:
        payload: Any = None
        try:
            payload = await request.json()
        except ValueError:
            payload = None

        self.received.append(
            {
                "path": request.url.path,
                "query": request.url.query,
                "headers": dict(request.headers),
                "json": payload,
            }
        )

        if not self._queue:
            return JSONResponse(
                {"error": {"message": "No upstream responses queued"}},
                status_code=500,
            )

        response = self._queue.popleft()

        if response.response_fn is not None:
            response = response.response_fn(payload)

        request_stream = (
            bool(payload.get("stream")) if isinstance(payload, dict) else False
        )
        is_stream = response.resolve_stream(request_stream)

        if is_stream and response.status_code < 400:
            return StreamingResponse(
                self._stream_events(response),
                status_code=response.status_code,
                headers=response.headers,
                media_type=response.media_type or "text/event-stream",
            )

        return Response(
            content=self._build_body(response),
            status_code=response.status_code,
            headers=response.headers,
            media_type=response.media_type or "application/json",
        )

    async def _stream_events(self, response: UpstreamResponse):
        """Generate SSE events with fragmentation and injection support."""
        events = response.stream_events or []

        for i, event in enumerate(events):
            if response.inject_malformed_at is not None and i == response.inject_malformed_at:
                yield response.malformed_data or b"data: {invalid json\n\n"

            encoded = _encode_sse_event(event)
            if response.fragment_events:
                mid = len(encoded) // 2
                yield encoded[:mid]
                if response.chunk_delay_s:
                    await asyncio.sleep(response.chunk_delay_s)
                yield encoded[mid:]
            else:
                yield encoded

            if response.chunk_delay_s:
                await asyncio.sleep(response.chunk_delay_s)

        if response.add_done:
            yield b"data: [DONE]\n\n"

    @staticmethod
    def _build_body(response: UpstreamResponse) -> bytes:
        if response.json_body is not None:
            return json.dumps(response.json_body, ensure_ascii=False).encode("utf-8")
        if isinstance(response.body, str):
            return response.body.encode("utf-8")
        if isinstance(response.body, bytes):
            return response.body
        return b""
