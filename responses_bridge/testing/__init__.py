"""Testing utilities for in-process bridge simulations."""

from .assertions import (
    COMPLETED_SEQUENCE,
    assert_responses_api_valid,
    assert_responses_output_text_equals,
    assert_responses_sse_valid,
    assert_sse_event_sequence_valid,
    event_types,
    output_text,
    parse_sse_events,
)
from .fake_upstream import FakeUpstream, UpstreamResponse
from .proxy_harness import ProxyHarness
from .response_builders import (
    build_chat_completion,
    build_chat_stream_chunks,
    build_responses_request,
    build_upstream_error,
)

__all__ = [
    # Core simulation classes
    "FakeUpstream",
    "UpstreamResponse",
    "ProxyHarness",
    # Payload builders
    "build_chat_completion",
    "build_chat_stream_chunks",
    "build_responses_request",
    "build_upstream_error",
    # Assertions and parsing
    "COMPLETED_SEQUENCE",
    "assert_responses_api_valid",
    "assert_responses_output_text_equals",
    "assert_responses_sse_valid",
    "assert_sse_event_sequence_valid",
    "event_types",
    "output_text",
    "parse_sse_events",
]
