"""Core module initialization."""

from .exceptions import (
    ConfigurationError,
    EmptyChoicesError,
    InvalidRequestError,
    MalformedChunkError,
    ProxyError,
    UpstreamError,
)
from .registry import (
    get_model_resolver,
    get_upstream_client,
    set_model_resolver,
    set_upstream_client,
)
from .sse import SSEDecoder, format_sse
from .upstream import (
    UpstreamClient,
    UpstreamStream,
    clear_upstream_transports,
    register_upstream_transport,
)

__all__ = [
    "ConfigurationError",
    "EmptyChoicesError",
    "InvalidRequestError",
    "MalformedChunkError",
    "ProxyError",
    "SSEDecoder",
    "UpstreamClient",
    "UpstreamError",
    "UpstreamStream",
    "clear_upstream_transports",
    "format_sse",
    "get_model_resolver",
    "get_upstream_client",
    "register_upstream_transport",
    "set_model_resolver",
    "set_upstream_client",
]
