"""Bidirectional translation between Responses API and Chat Completions.

This module handles:
1. Validating and converting Responses API requests to Chat Completions format
2. Converting Chat Completions responses to Responses API format
3. Tool declaration filtering
4. Usage statistics translation
5. Normalizing any failure into a failed Responses API object
"""

import json
import logging
import time
from typing import Any, Optional
from uuid import uuid4

from ..core.exceptions import EmptyChoicesError, InvalidRequestError, UpstreamError
from ..types.chat import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    ChatTool,
    ContentPart,
)
from ..types.responses import (
    OutputMessage,
    ResponseError,
    ResponseObject,
    ResponseStatus,
    ResponsesRequest,
    ResponseUsage,
)
from .models import ModelNameResolver, resolve_model_name, strip_namespace

logger = logging.getLogger("responses-bridge")

# Built-in capability tools the upstream cannot execute
UNSUPPORTED_TOOL_TYPES = frozenset({"web_search_preview", "file_search", "code_interpreter"})

# Fields forwarded unchanged when present
PASSTHROUGH_PARAMS = ("presence_penalty", "frequency_penalty", "stop")

CONTENT_FILTER_MESSAGE = "Response filtered by content policy."


def generate_response_id() -> str:
    """Generate a unique response ID."""
    return f"resp_{uuid4().hex[:32]}"


def generate_message_id() -> str:
    """Generate a unique message ID."""
    return f"msg_{uuid4().hex[:24]}"


# =============================================================================
# Validation
# =============================================================================


def validate_request(payload: Any) -> ResponsesRequest:
    """Check the mandatory shape of an inbound request.

    Raises:
        InvalidRequestError: If the payload is not an object, ``model`` is not
            a non-empty string, or ``input`` is neither a string nor a list.
    """
    if not isinstance(payload, dict):
        raise InvalidRequestError("Request body must be a JSON object")

    model = payload.get("model")
    if not isinstance(model, str) or not model:
        raise InvalidRequestError("Missing required field: model")

    input_ = payload.get("input")
    if input_ is None:
        raise InvalidRequestError("Missing required field: input")
    if not isinstance(input_, (str, list)):
        raise InvalidRequestError("Field 'input' must be a string or an array")

    return payload  # type: ignore[return-value]


# =============================================================================
# Responses API → Chat Completions
# =============================================================================


def translate_request(
    request: ResponsesRequest,
    resolver: Optional[ModelNameResolver] = None,
) -> ChatCompletionRequest:
    """Convert a validated Responses API request to Chat Completions format.

    Args:
        request: The inbound request (see ``validate_request``)
        resolver: Model name resolver; the built-in table when omitted

    Returns:
        Chat Completions request body
    """
    model = request["model"]
    resolved = resolver.resolve(model) if resolver else resolve_model_name(model)

    messages: list[ChatMessage] = []
    instructions = request.get("instructions")
    if instructions:
        messages.append({"role": "system", "content": instructions})

    input_ = request["input"]
    if isinstance(input_, str):
        messages.append({"role": "user", "content": input_})
    else:
        for turn in input_:
            message = _convert_turn(turn)
            if message is not None:
                messages.append(message)

    chat_request: ChatCompletionRequest = {
        "model": resolved,
        "messages": messages,
    }

    if request.get("temperature") is not None:
        chat_request["temperature"] = request["temperature"]
    if request.get("top_p") is not None:
        chat_request["top_p"] = request["top_p"]
    if request.get("max_output_tokens") is not None:
        chat_request["max_tokens"] = request["max_output_tokens"]
    for key in PASSTHROUGH_PARAMS:
        if request.get(key) is not None:
            chat_request[key] = request[key]  # type: ignore[literal-required]

    tools = request.get("tools")
    if tools:
        converted = _convert_tools(tools)
        if converted:
            chat_request["tools"] = converted

    if "tool_choice" in request:
        chat_request["tool_choice"] = request["tool_choice"]

    if request.get("stream") is not None:
        chat_request["stream"] = bool(request["stream"])

    if request.get("previous_response_id") or request.get("store"):
        logger.warning(
            "Translator: previous_response_id/store are not supported; "
            "conversation state is not kept between requests"
        )

    logger.debug(
        "Translator: %d message(s) for model %s (requested %s)",
        len(messages),
        resolved,
        model,
    )
    return chat_request


def _convert_turn(turn: Any) -> Optional[ChatMessage]:
    """Convert one ``input`` turn to a Chat Completions message."""
    if not isinstance(turn, dict):
        logger.warning("Translator: Skipping non-object input item: %r", turn)
        return None

    role = turn.get("role") or "user"
    content = turn.get("content")

    if isinstance(content, str):
        return {"role": role, "content": content}

    if isinstance(content, list):
        parts: list[ContentPart] = []
        for part in content:
            converted = _convert_part(part)
            if converted is not None:
                parts.append(converted)
        return {"role": role, "content": parts}

    logger.warning("Translator: Skipping %s turn without usable content", role)
    return None


def _convert_part(part: Any) -> Optional[ContentPart]:
    part_type = part.get("type") if isinstance(part, dict) else None

    if part_type in ("input_text", "output_text", "text"):
        return {"type": "text", "text": part.get("text", "")}

    if part_type == "input_image":
        image_url: dict[str, Any] = {"url": part.get("image_url", "")}
        if part.get("detail"):
            image_url["detail"] = part["detail"]
        return {"type": "image_url", "image_url": image_url}  # type: ignore[typeddict-item]

    logger.warning("Translator: Dropping unsupported content part: %s", part_type)
    return None


def _convert_tools(tools: list[dict[str, Any]]) -> list[ChatTool]:
    """Keep function tools; drop built-in capabilities the upstream lacks."""
    unsupported = [
        tool.get("type") for tool in tools
        if isinstance(tool, dict) and tool.get("type") != "function"
    ]
    if unsupported:
        logger.warning(
            "Translator: Unsupported tools will be ignored: %s",
            ", ".join(str(t) for t in unsupported),
        )

    converted: list[ChatTool] = []
    for tool in tools:
        if not isinstance(tool, dict) or tool.get("type") != "function":
            continue
        # Schema nested under "function" or flat on the declaration
        decl = tool.get("function") if isinstance(tool.get("function"), dict) else tool
        if not decl.get("name"):
            logger.warning("Translator: Dropping function tool without a name")
            continue
        function = {
            key: decl[key]
            for key in ("name", "description", "parameters")
            if decl.get(key) is not None
        }
        converted.append({"type": "function", "function": function})  # type: ignore[typeddict-item]
    return converted


# =============================================================================
# Chat Completions → Responses API
# =============================================================================


def map_finish_reason_to_status(finish_reason: Optional[str]) -> ResponseStatus:
    """Map a Chat Completions finish reason to a Responses API status.

    Unrecognized reasons count as completed.
    """
    if finish_reason == "content_filter":
        return "failed"
    return "completed"


def convert_usage(usage: Optional[dict[str, Any]]) -> ResponseUsage:
    """Rename Chat Completions token counters; missing counters become 0."""
    usage = usage or {}
    return {
        "input_tokens": usage.get("prompt_tokens") or 0,
        "output_tokens": usage.get("completion_tokens") or 0,
        "total_tokens": usage.get("total_tokens") or 0,
    }


def content_to_text(content: Any) -> str:
    """Upstream message content as text: str as-is, None empty, else JSON."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    return json.dumps(content)


def build_output_message(
    message_id: str, text: str, status: str = "completed"
) -> OutputMessage:
    return {
        "type": "message",
        "id": message_id,
        "role": "assistant",
        "status": status,  # type: ignore[typeddict-item]
        "content": [{"type": "output_text", "text": text, "annotations": []}],
    }


def chat_completion_to_response(
    completion: ChatCompletionResponse,
    original_model: Optional[str] = None,
) -> ResponseObject:
    """Convert a Chat Completions response to Responses API format.

    Only the first choice is translated.

    Args:
        completion: The Chat Completions response
        original_model: Model id the caller asked for, echoed back when given

    Returns:
        Responses API response object

    Raises:
        EmptyChoicesError: If the completion carries no choices.
    """
    choices = completion.get("choices") or []
    if not choices:
        raise EmptyChoicesError()
    if len(choices) > 1:
        logger.info("Translator: Using first of %d choices", len(choices))

    choice = choices[0]
    message = choice.get("message") or {}
    text = content_to_text(message.get("content"))
    if message.get("tool_calls"):
        logger.warning(
            "Translator: Dropping %d tool call(s) from upstream response",
            len(message["tool_calls"]),
        )

    finish_reason = choice.get("finish_reason")
    status = map_finish_reason_to_status(finish_reason)

    model = original_model or strip_namespace(completion.get("model") or "")
    response: ResponseObject = {
        "id": generate_response_id(),
        "object": "response",
        "created_at": completion.get("created") or int(time.time()),
        "model": model,
        "status": status,
        "output": [build_output_message(generate_message_id(), text)],
        "usage": convert_usage(completion.get("usage")),  # type: ignore[arg-type]
    }

    if status == "failed":
        response["error"] = {
            "code": "content_filter",
            "message": CONTENT_FILTER_MESSAGE,
        }

    return response


# =============================================================================
# Failures
# =============================================================================


def _extract_error(raw: Any) -> ResponseError:
    if isinstance(raw, UpstreamError) and raw.payload is not None:
        raw = raw.payload

    if isinstance(raw, dict) and isinstance(raw.get("error"), dict):
        error = raw["error"]
        return {
            "code": str(error.get("code") or error.get("type") or "api_error"),
            "message": str(error.get("message") or "Unknown error occurred"),
        }

    if isinstance(raw, BaseException):
        code = getattr(raw, "code", None)
        return {
            "code": code if isinstance(code, str) and code else "internal_error",
            "message": str(raw) or raw.__class__.__name__,
        }

    return {"code": "internal_error", "message": "Unknown error occurred"}


def normalize_error(raw: Any) -> ResponseObject:
    """Turn any failure into a failed Responses API object.

    Handles upstream error bodies (``{"error": {...}}``), ``UpstreamError``
    carrying such a body, and arbitrary exceptions.
    """
    return {
        "id": generate_response_id(),
        "object": "response",
        "created_at": int(time.time()),
        "model": "unknown",
        "status": "failed",
        "output": [],
        "usage": {"input_tokens": 0, "output_tokens": 0, "total_tokens": 0},
        "error": _extract_error(raw),
    }
