"""Responses API support for the bridge.

This package provides the translation engine behind the /v1/responses
endpoint, which converts to and from the upstream Chat Completions format.

Key components:
- models: Short model name -> fully qualified upstream id
- translator: Request/response translation, validation and error normalization
- stream_adapter: Convert chat completion chunks to Responses API events
"""

from .models import MODEL_MAP, ModelNameResolver, resolve_model_name
from .stream_adapter import (
    ChatToResponsesStreamAdapter,
    StreamState,
    SynthesisContext,
    translate_stream_chunk,
)
from .translator import (
    chat_completion_to_response,
    convert_usage,
    map_finish_reason_to_status,
    normalize_error,
    translate_request,
    validate_request,
)

__all__ = [
    "MODEL_MAP",
    "ModelNameResolver",
    "resolve_model_name",
    "ChatToResponsesStreamAdapter",
    "StreamState",
    "SynthesisContext",
    "translate_stream_chunk",
    "chat_completion_to_response",
    "convert_usage",
    "map_finish_reason_to_status",
    "normalize_error",
    "translate_request",
    "validate_request",
]
