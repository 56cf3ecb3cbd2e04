"""SSE (Server-Sent Events) decoding, encoding and chunk parsing."""

import codecs
import json
from dataclasses import dataclass, field
from typing import Any, Optional

from .exceptions import MalformedChunkError

DONE_SENTINEL = "[DONE]"


@dataclass
class SSEEvent:
    data: Optional[str]
    other_lines: list[str] = field(default_factory=list)

    @property
    def is_comment(self) -> bool:
        """True for heartbeat/comment-only events (``: keep-alive``)."""
        return self.data is None and all(
            not line or line.startswith(":") for line in self.other_lines
        )

    def encode(self) -> bytes:
        lines: list[str] = []
        lines.extend(self.other_lines)
        if self.data is not None:
            for item in self.data.split("\n"):
                if item:
                    lines.append(f"data: {item}")
                else:
                    lines.append("data:")
        text = "\n".join(lines) + "\n\n"
        return text.encode("utf-8")


class SSEDecoder:
    """Incremental decoder turning raw stream bytes into SSE events.

    Events may be split across network reads; incomplete events stay
    buffered until their terminating blank line arrives. Multi-byte UTF-8
    characters and ``\\r\\n`` pairs split across reads are reassembled.
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending_cr = False

    def feed(self, chunk: bytes) -> list[SSEEvent]:
        if not chunk:
            return []
        self._append(self._utf8.decode(chunk))
        return self._drain()

    def flush(self) -> list[SSEEvent]:
        """Return any trailing event that was not terminated by a blank line."""
        self._append(self._utf8.decode(b"", final=True), final=True)
        events = self._drain()
        leftover = self._buffer
        self._buffer = ""
        if leftover.strip():
            events.append(self._parse_event(leftover.rstrip("\n")))
        return events

    def _append(self, text: str, final: bool = False) -> None:
        if self._pending_cr:
            text = "\r" + text
            self._pending_cr = False
        # A trailing CR may be the first half of a CRLF pair
        if text.endswith("\r") and not final:
            text = text[:-1]
            self._pending_cr = True
        self._buffer += text.replace("\r\n", "\n").replace("\r", "\n")

    def _drain(self) -> list[SSEEvent]:
        events: list[SSEEvent] = []
        while True:
            sep_index = self._buffer.find("\n\n")
            if sep_index == -1:
                break
            raw_event = self._buffer[:sep_index]
            self._buffer = self._buffer[sep_index + 2:]
            if not raw_event.strip():
                continue
            events.append(self._parse_event(raw_event))
        return events

    @staticmethod
    def _parse_event(raw: str) -> SSEEvent:
        data_lines: list[str] = []
        other_lines: list[str] = []
        for line in raw.split("\n"):
            if line.startswith("data:"):
                data_lines.append(line[5:].lstrip())
            else:
                other_lines.append(line)
        data = "\n".join(data_lines) if data_lines else None
        return SSEEvent(data=data, other_lines=other_lines)


def parse_chunk_data(data: str) -> dict[str, Any]:
    """Parse the ``data:`` payload of one upstream chunk.

    Raises:
        MalformedChunkError: If the payload is not a JSON object.
    """
    try:
        parsed = json.loads(data)
    except json.JSONDecodeError as exc:
        raise MalformedChunkError(f"unparsable chunk: {data[:100]}") from exc
    if not isinstance(parsed, dict):
        raise MalformedChunkError(f"chunk is not an object: {data[:100]}")
    return parsed


def extract_stream_error(chunk: dict[str, Any]) -> Optional[dict[str, Any]]:
    """Return the error body if an upstream chunk is an in-band error frame.

    Detects patterns like:
    - {"error": {"message": ..., "code": ...}}
    - {"type": "error", "error": {...}}
    """
    error_obj = chunk.get("error")
    if isinstance(error_obj, dict):
        return {"error": error_obj}
    if chunk.get("type") == "error":
        return {"error": {"message": "unknown error"}}
    return None


def format_sse(event_type: str, payload: dict[str, Any]) -> bytes:
    """Frame one event as ``event: <tag>\\ndata: <json>\\n\\n``."""
    json_str = json.dumps(payload, ensure_ascii=False)
    return f"event: {event_type}\ndata: {json_str}\n\n".encode("utf-8")
