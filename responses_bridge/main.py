"""FastAPI application for the responses bridge."""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .api.routes import health, responses_endpoint, shutdown
from .core.registry import set_model_resolver, set_upstream_client
from .core.upstream import UpstreamClient
from .logging import setup_logging
from .responses.models import ModelNameResolver
from .settings import BridgeSettings, load_settings

logger = logging.getLogger("responses-bridge")


def build_upstream_client(settings: BridgeSettings) -> UpstreamClient:
    upstream = settings.upstream
    return UpstreamClient(
        upstream.base_url,
        upstream.api_key,
        app_name=upstream.app_name,
        site_url=upstream.site_url,
        timeout=upstream.timeout_seconds,
    )


def create_app(
    settings: Optional[BridgeSettings] = None,
    client: Any = None,
) -> FastAPI:
    """Factory function to create the FastAPI application.

    Args:
        settings: Runtime settings; loaded from config and environment if omitted.
        client: Upstream client; built from ``settings.upstream`` if omitted.
            Anything with ``create_completion`` and ``open_stream`` works.

    Returns:
        The configured FastAPI application instance.
    """
    setup_logging()
    settings = settings or load_settings()
    client = client or build_upstream_client(settings)

    set_upstream_client(client)
    set_model_resolver(
        ModelNameResolver(
            aliases=settings.models.aliases,
            default_namespace=settings.models.default_namespace,
        )
    )

    app = FastAPI(title="Responses Bridge", version=__version__)
    app.state.settings = settings
    app.state.request_shutdown = None

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(f"{request.method} {request.url.path}")
        return await call_next(request)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(
                {
                    "error": {
                        "message": f"Endpoint not found: {request.method} {request.url.path}",
                        "type": "not_found",
                    }
                },
                status_code=404,
            )
        return JSONResponse({"detail": exc.detail}, status_code=exc.status_code)

    # Register routes
    app.post("/v1/responses")(responses_endpoint)
    app.get("/health")(health)

    if settings.server.enable_shutdown:
        app.get("/shutdown")(shutdown)
        logger.info("HTTP shutdown endpoint enabled")

    logger.info(
        f"Responses bridge {__version__} created, upstream: {settings.upstream.base_url}"
    )
    return app


__all__ = ["build_upstream_client", "create_app"]
