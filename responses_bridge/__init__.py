"""responses-bridge - Responses API to Chat Completions bridge

A small local server that lets agents speaking the Responses API talk to an
upstream service that only speaks Chat Completions (OpenRouter by default).

This module provides:
- create_app: FastAPI application exposing POST /v1/responses and GET /health
- Translators between the two protocols, including streaming events
- UpstreamClient: httpx client for the upstream service

Example:
    >>> from responses_bridge import create_app
    >>> import uvicorn
    >>> uvicorn.run(create_app(), host="127.0.0.1", port=8000)
"""

__version__ = "1.0.0"

from .main import create_app
from .config_loader import load_config
from .core import UpstreamClient
from .logging import logger, setup_logging
from .settings import BridgeSettings, load_settings

__all__ = [
    "__version__",
    "BridgeSettings",
    "create_app",
    "load_config",
    "load_settings",
    "logger",
    "setup_logging",
    "UpstreamClient",
]
