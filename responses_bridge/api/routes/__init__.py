"""API routes for the bridge."""

from .health import health, shutdown
from .responses import responses_endpoint

__all__ = [
    "health",
    "responses_endpoint",
    "shutdown",
]
