"""Tests for Chat Completions -> Responses translation and error normalization."""

import logging
import time

import pytest

from responses_bridge.core.exceptions import (
    EmptyChoicesError,
    InvalidRequestError,
    UpstreamError,
)
from responses_bridge.responses.translator import (
    chat_completion_to_response,
    convert_usage,
    map_finish_reason_to_status,
    normalize_error,
)
from responses_bridge.testing import (
    assert_responses_api_valid,
    assert_responses_output_text_equals,
    build_chat_completion,
    build_upstream_error,
)


class TestChatCompletionToResponse:
    """Tests for non-streaming response translation."""

    def test_stop_is_completed_with_consistent_usage(self):
        completion = build_chat_completion(
            "Hello!",
            usage={"prompt_tokens": 12, "completion_tokens": 3, "total_tokens": 15},
        )
        response = chat_completion_to_response(completion, "gpt-4o")

        assert_responses_api_valid(response)
        assert response["status"] == "completed"
        assert response["model"] == "gpt-4o"
        assert response["created_at"] == 1700000000
        assert response["usage"] == {"input_tokens": 12, "output_tokens": 3, "total_tokens": 15}
        assert_responses_output_text_equals(response, "Hello!")
        message = response["output"][0]
        assert message["status"] == "completed"
        assert message["content"][0]["annotations"] == []

    def test_model_falls_back_to_upstream_model_without_namespace(self):
        completion = build_chat_completion("x", model="anthropic/claude-3-haiku")
        assert chat_completion_to_response(completion)["model"] == "claude-3-haiku"

    def test_none_content_becomes_empty_text(self):
        response = chat_completion_to_response(build_chat_completion(None))
        assert_responses_output_text_equals(response, "")

    def test_structured_content_is_serialized(self):
        content = [{"type": "text", "text": "a"}]
        response = chat_completion_to_response(build_chat_completion(content))
        assert_responses_output_text_equals(response, '[{"type": "text", "text": "a"}]')

    def test_content_filter_fails_with_error(self):
        response = chat_completion_to_response(
            build_chat_completion("", finish_reason="content_filter")
        )
        assert_responses_api_valid(response)
        assert response["status"] == "failed"
        assert response["error"] == {
            "code": "content_filter",
            "message": "Response filtered by content policy.",
        }

    def test_missing_usage_and_created_default(self):
        completion = build_chat_completion("x", created=None)
        completion["usage"] = None
        before = int(time.time())
        response = chat_completion_to_response(completion)
        assert response["usage"] == {"input_tokens": 0, "output_tokens": 0, "total_tokens": 0}
        assert response["created_at"] >= before

    def test_empty_choices_raise(self):
        completion = build_chat_completion("x")
        completion["choices"] = []
        with pytest.raises(EmptyChoicesError):
            chat_completion_to_response(completion)

    def test_only_first_choice_is_used(self):
        completion = build_chat_completion("first", extra_choices=2)
        response = chat_completion_to_response(completion)
        assert len(response["output"]) == 1
        assert_responses_output_text_equals(response, "first")

    def test_fresh_ids_per_call(self):
        completion = build_chat_completion("x")
        first = chat_completion_to_response(completion)
        second = chat_completion_to_response(completion)
        assert first["id"] != second["id"]
        assert first["output"][0]["id"] != second["output"][0]["id"]
        assert first["id"].startswith("resp_")
        assert first["output"][0]["id"].startswith("msg_")

    def test_tool_calls_are_dropped_with_warning(self, caplog):
        completion = build_chat_completion(
            None,
            finish_reason="tool_calls",
            tool_calls=[
                {"id": "call_1", "type": "function", "function": {"name": "f", "arguments": "{}"}}
            ],
        )
        with caplog.at_level(logging.WARNING, logger="responses-bridge"):
            response = chat_completion_to_response(completion)
        assert response["status"] == "completed"
        assert any("tool call" in r.getMessage() for r in caplog.records)


@pytest.mark.parametrize(
    ("reason", "status"),
    [
        ("stop", "completed"),
        ("length", "completed"),
        ("tool_calls", "completed"),
        ("content_filter", "failed"),
        ("something_new", "completed"),
        (None, "completed"),
    ],
)
def test_map_finish_reason_to_status(reason, status):
    assert map_finish_reason_to_status(reason) == status


def test_convert_usage_defaults_missing_counters():
    assert convert_usage({"prompt_tokens": 4}) == {
        "input_tokens": 4,
        "output_tokens": 0,
        "total_tokens": 0,
    }
    assert convert_usage(None) == {"input_tokens": 0, "output_tokens": 0, "total_tokens": 0}


class TestNormalizeError:
    """Tests for the failure envelope."""

    def _assert_envelope(self, response):
        assert_responses_api_valid(response)
        assert response["status"] == "failed"
        assert response["output"] == []
        assert response["model"] == "unknown"
        assert response["usage"] == {"input_tokens": 0, "output_tokens": 0, "total_tokens": 0}

    def test_upstream_error_body(self):
        response = normalize_error(build_upstream_error("Rate limited", code="rate_limit"))
        self._assert_envelope(response)
        assert response["error"] == {"code": "rate_limit", "message": "Rate limited"}

    def test_upstream_error_body_falls_back_to_type(self):
        response = normalize_error(build_upstream_error("Bad key", error_type="auth_error"))
        assert response["error"]["code"] == "auth_error"

    def test_upstream_error_exception_uses_payload(self):
        exc = UpstreamError(
            "Bad key",
            status_code=401,
            payload=build_upstream_error("No auth credentials found", code=401),
        )
        response = normalize_error(exc)
        assert response["error"] == {"code": "401", "message": "No auth credentials found"}

    def test_generic_exception(self):
        response = normalize_error(RuntimeError("boom"))
        self._assert_envelope(response)
        assert response["error"] == {"code": "internal_error", "message": "boom"}

    def test_exception_code_attribute_is_kept(self):
        response = normalize_error(InvalidRequestError("Invalid JSON payload", code="invalid_json"))
        assert response["error"] == {"code": "invalid_json", "message": "Invalid JSON payload"}

    @pytest.mark.parametrize("raw", [None, "oops", 42, {"message": "no envelope"}])
    def test_unknown_values(self, raw):
        response = normalize_error(raw)
        self._assert_envelope(response)
        assert response["error"] == {"code": "internal_error", "message": "Unknown error occurred"}
