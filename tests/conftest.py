"""Pytest configuration and fixtures for testing."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Generator

import pytest

# Make the package importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent))


# =============================================================================
# Registry Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clear_transport_registry() -> Generator[None, None, None]:
    """Clear upstream transports and the runtime registry after each test."""
    from responses_bridge.core.registry import set_model_resolver, set_upstream_client
    from responses_bridge.core.upstream import clear_upstream_transports

    yield
    clear_upstream_transports()
    set_upstream_client(None)
    set_model_resolver(None)


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of config and settings tests."""
    for name in (
        "RESPONSES_BRIDGE_CONFIG",
        "RESPONSES_BRIDGE_HOST",
        "RESPONSES_BRIDGE_PORT",
        "RESPONSES_BRIDGE_UPSTREAM_URL",
        "OPENROUTER_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)


# =============================================================================
# Harness Fixtures
# =============================================================================


@pytest.fixture
def upstream() -> Any:
    """A fresh FakeUpstream."""
    from responses_bridge.testing import FakeUpstream

    return FakeUpstream()


@pytest.fixture
def bridge(upstream: Any) -> Generator[Any, None, None]:
    """A ProxyHarness routed to the ``upstream`` fixture.

    Usage:
        async def test_x(upstream, bridge):
            upstream.enqueue_chat_response("Hi")
            async with bridge.make_async_client() as client:
                ...
    """
    from responses_bridge.testing import ProxyHarness

    with ProxyHarness(upstream) as harness:
        yield harness


# =============================================================================
# Stream Helpers
# =============================================================================


class StubStream:
    """Async iterator over scripted chunks that may raise partway through."""

    def __init__(self, chunks: list[Any], error: BaseException | None = None) -> None:
        self.chunks = list(chunks)
        self.error = error
        self.closed = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error

    async def aclose(self) -> None:
        self.closed = True


class StubUpstreamClient:
    """Upstream client double returning scripted results."""

    def __init__(
        self,
        *,
        completion: Any = None,
        stream: StubStream | None = None,
        error: BaseException | None = None,
    ) -> None:
        self.completion = completion
        self.stream = stream
        self.error = error
        self.requests: list[dict[str, Any]] = []
        self.authorizations: list[str | None] = []

    async def create_completion(self, request, *, authorization=None):
        self.requests.append(request)
        self.authorizations.append(authorization)
        if self.error is not None:
            raise self.error
        return self.completion

    async def open_stream(self, request, *, authorization=None):
        self.requests.append(request)
        self.authorizations.append(authorization)
        if self.error is not None:
            raise self.error
        return self.stream


@pytest.fixture
def stub_stream_cls() -> type[StubStream]:
    return StubStream


@pytest.fixture
def stub_client_cls() -> type[StubUpstreamClient]:
    return StubUpstreamClient
