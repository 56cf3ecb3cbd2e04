"""Core exceptions for the bridge."""

from typing import Any, Mapping, Optional


class ProxyError(Exception):
    """Base exception for bridge errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(ProxyError):
    """Raised when there's an issue with the configuration."""
    pass


class InvalidRequestError(ProxyError):
    """Raised when an incoming request is invalid."""

    def __init__(self, message: str, code: str = "invalid_request") -> None:
        super().__init__(message)
        self.code = code


class UpstreamError(ProxyError):
    """Non-2xx reply or transport failure from the upstream service.

    ``payload`` holds the upstream error body (``{"error": {...}}``) when one
    was received, so it can be normalized without losing the upstream code.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class EmptyChoicesError(ProxyError):
    """Raised when the upstream completion carries no choices."""

    def __init__(self, message: str = "No choices in response from upstream") -> None:
        super().__init__(message)
        self.code = "empty_choices"


class MalformedChunkError(ProxyError):
    """Raised for a single unusable streaming fragment."""
    pass
