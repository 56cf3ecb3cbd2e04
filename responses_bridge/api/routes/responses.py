"""Responses API endpoint handler.

Implements the POST /v1/responses endpoint:
- Validation: malformed requests are rejected before any network call
- Translation: Responses API request -> Chat Completions request
- Non-streaming: one upstream call, translated into one response object
- Streaming: upstream chunks synthesized into Responses API events
"""

import json
import logging
from typing import Any, AsyncIterator

from fastapi import Request, Response
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.requests import ClientDisconnect

from ...core.exceptions import InvalidRequestError, UpstreamError
from ...core.registry import get_model_resolver, get_upstream_client
from ...responses import (
    ChatToResponsesStreamAdapter,
    chat_completion_to_response,
    normalize_error,
    translate_request,
    validate_request,
)
from ...types.chat import ChatCompletionRequest
from ...types.responses import ResponsesRequest

logger = logging.getLogger("responses-bridge")

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _status_for(exc: BaseException) -> int:
    """HTTP status for a failure surfaced before streaming began."""
    if isinstance(exc, InvalidRequestError):
        return 400
    if isinstance(exc, UpstreamError) and exc.status_code and exc.status_code >= 400:
        return exc.status_code
    return 500


def _failure(exc: BaseException) -> JSONResponse:
    return JSONResponse(normalize_error(exc), status_code=_status_for(exc))


async def responses_endpoint(request: Request) -> Response:
    """POST /v1/responses - Responses API endpoint.

    Args:
        request: The FastAPI request object

    Returns:
        JSONResponse for non-streaming, StreamingResponse for streaming
    """
    logger.info("Received Responses API request")

    try:
        body = await request.body()
        payload: Any = json.loads(body) if body else None
    except ClientDisconnect:
        logger.warning("Client disconnected before request body was fully read")
        return Response(status_code=499)  # Client Closed Request
    except json.JSONDecodeError as exc:
        logger.error(f"Invalid JSON in Responses request: {exc}")
        return _failure(InvalidRequestError("Invalid JSON payload", code="invalid_json"))

    try:
        responses_request = validate_request(payload)
    except InvalidRequestError as exc:
        logger.warning(f"Rejected Responses request: {exc.message}")
        return _failure(exc)

    chat_request = translate_request(responses_request, get_model_resolver())
    authorization = request.headers.get("authorization")
    is_stream = bool(responses_request.get("stream", False))

    logger.info(
        f"Responses request: model={responses_request['model']} -> "
        f"{chat_request['model']}, stream={is_stream}"
    )

    if is_stream:
        return await _handle_streaming(responses_request, chat_request, authorization)
    return await _handle_non_streaming(responses_request, chat_request, authorization)


async def _handle_non_streaming(
    responses_request: ResponsesRequest,
    chat_request: ChatCompletionRequest,
    authorization: str | None,
) -> Response:
    client = get_upstream_client()
    try:
        completion = await client.create_completion(chat_request, authorization=authorization)
        response = chat_completion_to_response(completion, responses_request["model"])
    except Exception as exc:
        logger.error(f"Responses request failed: {exc}")
        return _failure(exc)

    logger.info(f"Responses request {response['id']} finished with status {response['status']}")
    return JSONResponse(response)


async def _handle_streaming(
    responses_request: ResponsesRequest,
    chat_request: ChatCompletionRequest,
    authorization: str | None,
) -> Response:
    """Open the upstream stream, then hand it to the event synthesizer.

    Failures while opening happen before any byte is committed to the caller
    and are returned as failure documents. Failures afterwards become a single
    ``error`` event on the stream.
    """
    client = get_upstream_client()
    try:
        upstream = await client.open_stream(chat_request, authorization=authorization)
    except Exception as exc:
        logger.error(f"Failed to start upstream stream: {exc}")
        return _failure(exc)

    adapter = ChatToResponsesStreamAdapter(model=responses_request["model"])

    async def event_stream() -> AsyncIterator[bytes]:
        try:
            async for frame in adapter.adapt_to_sse(upstream):
                yield frame
        finally:
            await upstream.aclose()
            logger.info(
                f"Responses stream {adapter.response_id} closed "
                f"({adapter.context.state.value})"
            )

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
