"""HTTP client for the upstream Chat Completions service.

``UpstreamClient`` performs the two outbound calls the bridge needs: a
non-streaming completion and a streaming completion whose SSE body is decoded
into chunk dicts. Failures surface as ``UpstreamError`` so they can be
normalized by the caller.
"""

from __future__ import annotations

import contextlib
import json
import logging
from typing import AsyncIterator, Optional
from urllib.parse import urlparse

import httpx

from ..types.chat import (
    ChatCompletionChunk,
    ChatCompletionRequest,
    ChatCompletionResponse,
    UpstreamErrorBody,
)
from .exceptions import MalformedChunkError, UpstreamError
from .sse import DONE_SENTINEL, SSEDecoder, SSEEvent, extract_stream_error, parse_chunk_data

logger = logging.getLogger("responses-bridge")

DEFAULT_UPSTREAM_URL = "https://openrouter.ai/api/v1"
DEFAULT_APP_NAME = "responses-bridge"
DEFAULT_SITE_URL = "https://github.com/responses-bridge"
DEFAULT_TIMEOUT = 600.0


# =============================================================================
# Per-host transports (test/in-process upstreams)
# =============================================================================

_TRANSPORTS: dict[str, httpx.AsyncBaseTransport] = {}


def register_upstream_transport(host: str, transport: httpx.AsyncBaseTransport) -> None:
    """Route requests for ``host`` (netloc, e.g. 'upstream.local') to ``transport``."""
    if not host:
        raise ValueError("host is required")
    _TRANSPORTS[host.strip().lower()] = transport
    logger.debug("Registered upstream transport for host '%s'", host)


def clear_upstream_transports() -> None:
    """Forget every registered transport."""
    _TRANSPORTS.clear()


def get_upstream_transport(url: str) -> Optional[httpx.AsyncBaseTransport]:
    """Return the transport registered for the URL's netloc, if any."""
    host = urlparse(url).netloc if url else ""
    if not host:
        return None
    return _TRANSPORTS.get(host.strip().lower())


# =============================================================================
# Helpers
# =============================================================================


def format_httpx_error(exc: httpx.HTTPError, url: str, timeout: Optional[float] = None) -> str:
    """Produce a readable description of an httpx error."""
    parts = [exc.__class__.__name__]
    message = str(exc).strip()
    if message:
        parts.append(message)
    parts.append(f"url={url}")
    if isinstance(exc, httpx.TimeoutException) and timeout:
        parts.append(f"timeout={timeout}s")
    return "; ".join(parts)


def build_upstream_headers(
    api_key: str,
    app_name: str,
    site_url: str,
    authorization: Optional[str] = None,
) -> dict[str, str]:
    """Build outbound headers, preferring the configured key over the caller's."""
    headers = {
        "Content-Type": "application/json",
        "HTTP-Referer": site_url,
        "X-Title": app_name,
    }
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    elif authorization:
        headers["Authorization"] = authorization
    return headers


def _error_from_status(status_code: int, body: bytes) -> UpstreamError:
    text = body.decode("utf-8", errors="replace")
    payload: UpstreamErrorBody
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        parsed = None
    if isinstance(parsed, dict) and isinstance(parsed.get("error"), dict):
        payload = parsed  # type: ignore[assignment]
    else:
        payload = {"error": {"message": text, "type": "api_error"}}
    message = str(payload["error"].get("message") or f"upstream returned status {status_code}")
    return UpstreamError(message, status_code=status_code, payload=payload)


# =============================================================================
# Streaming body
# =============================================================================


class UpstreamStream:
    """An opened upstream stream whose HTTP status was already accepted.

    Iterating yields parsed chunk dicts in wire order. Heartbeat/comment lines
    and malformed chunks are skipped; ``[DONE]`` ends the iteration. The
    underlying response and client are closed when iteration stops for any
    reason, including cancellation.
    """

    def __init__(self, client: httpx.AsyncClient, response: httpx.Response, url: str) -> None:
        self._client = client
        self._response = response
        self._url = url
        self._closed = False

    @property
    def status_code(self) -> int:
        return self._response.status_code

    def __aiter__(self) -> AsyncIterator[ChatCompletionChunk]:
        return self.chunks()

    async def chunks(self) -> AsyncIterator[ChatCompletionChunk]:
        try:
            async with contextlib.aclosing(self._events()) as events:
                async for event in events:
                    if event.is_comment:
                        continue
                    if not event.data or not event.data.strip():
                        continue
                    if event.data.strip() == DONE_SENTINEL:
                        logger.debug("Upstream stream complete")
                        return
                    try:
                        chunk = parse_chunk_data(event.data)
                    except MalformedChunkError as exc:
                        logger.warning("Dropping malformed upstream chunk: %s", exc)
                        continue
                    error_body = extract_stream_error(chunk)
                    if error_body is not None:
                        message = str(error_body["error"].get("message") or "upstream stream error")
                        logger.error("Upstream sent an error frame: %s", message)
                        raise UpstreamError(message, payload=error_body)
                    yield chunk  # type: ignore[misc]
        except httpx.HTTPError as exc:
            detail = format_httpx_error(exc, self._url)
            logger.error("Upstream stream failed: %s", detail)
            raise UpstreamError(detail) from exc
        finally:
            await self.aclose()

    async def _events(self) -> AsyncIterator[SSEEvent]:
        decoder = SSEDecoder()
        async for raw in self._response.aiter_bytes():
            for event in decoder.feed(raw):
                yield event
        for event in decoder.flush():
            yield event

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        logger.debug("Closing upstream stream for %s", self._url)
        await self._response.aclose()
        await self._client.aclose()


# =============================================================================
# Client
# =============================================================================


class UpstreamClient:
    """Calls ``POST {base_url}/chat/completions`` on the upstream service."""

    def __init__(
        self,
        base_url: str = DEFAULT_UPSTREAM_URL,
        api_key: str = "",
        *,
        app_name: str = DEFAULT_APP_NAME,
        site_url: str = DEFAULT_SITE_URL,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.app_name = app_name
        self.site_url = site_url
        self.timeout = timeout

    @property
    def completions_url(self) -> str:
        return f"{self.base_url}/chat/completions"

    def _headers(self, authorization: Optional[str], *, stream: bool) -> dict[str, str]:
        headers = build_upstream_headers(
            self.api_key, self.app_name, self.site_url, authorization
        )
        if stream:
            headers["Accept"] = "text/event-stream"
        return headers

    async def create_completion(
        self,
        request: ChatCompletionRequest,
        *,
        authorization: Optional[str] = None,
    ) -> ChatCompletionResponse:
        """Make a non-streaming completion request.

        Raises:
            UpstreamError: On transport failure, non-2xx status or a body
                that is not a JSON object.
        """
        url = self.completions_url
        body = {**request, "stream": False}
        logger.info("Calling %s with model: %s", url, request.get("model"))

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=get_upstream_transport(url),
                follow_redirects=True,
            ) as client:
                resp = await client.post(
                    url, headers=self._headers(authorization, stream=False), json=body
                )
        except httpx.HTTPError as exc:
            detail = format_httpx_error(exc, url, self.timeout)
            logger.error("Upstream request failed: %s", detail)
            raise UpstreamError(detail) from exc

        if resp.status_code >= 400:
            logger.error("Upstream error %s: %s", resp.status_code, resp.text[:500])
            raise _error_from_status(resp.status_code, resp.content)

        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamError("Failed to parse upstream response", status_code=502) from exc
        if not isinstance(data, dict):
            raise UpstreamError("Upstream response is not a JSON object", status_code=502)

        usage = data.get("usage") or {}
        logger.info("Upstream success. Tokens used: %s", usage.get("total_tokens", "unknown"))
        return data  # type: ignore[return-value]

    async def open_stream(
        self,
        request: ChatCompletionRequest,
        *,
        authorization: Optional[str] = None,
    ) -> UpstreamStream:
        """Start a streaming completion and return it once the status is accepted.

        Raises:
            UpstreamError: If the request cannot be sent or the upstream
                answers with a non-2xx status. Nothing has been streamed yet.
        """
        url = self.completions_url
        body = {**request, "stream": True}
        logger.info("Streaming call to %s with model: %s", url, request.get("model"))

        stream_timeout = httpx.Timeout(
            connect=self.timeout, read=None, write=self.timeout, pool=self.timeout
        )
        client = httpx.AsyncClient(
            timeout=stream_timeout,
            transport=get_upstream_transport(url),
            follow_redirects=True,
        )
        try:
            outbound = client.build_request(
                "POST", url, headers=self._headers(authorization, stream=True), json=body
            )
            resp = await client.send(outbound, stream=True)
        except httpx.HTTPError as exc:
            await client.aclose()
            detail = format_httpx_error(exc, url, self.timeout)
            logger.error("Failed to open upstream stream: %s", detail)
            raise UpstreamError(detail) from exc
        except Exception:
            await client.aclose()
            raise

        if resp.status_code >= 400:
            data = await resp.aread()
            await resp.aclose()
            await client.aclose()
            logger.error("Upstream stream error %s: %s", resp.status_code, data[:500])
            raise _error_from_status(resp.status_code, data)

        return UpstreamStream(client, resp, url)

    async def stream_completion(
        self,
        request: ChatCompletionRequest,
        *,
        authorization: Optional[str] = None,
    ) -> AsyncIterator[ChatCompletionChunk]:
        """Open a stream and yield its chunks; a fresh upstream call per invocation."""
        stream = await self.open_stream(request, authorization=authorization)
        async for chunk in stream:
            yield chunk
