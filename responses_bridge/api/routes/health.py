"""Health and remote shutdown endpoints."""

import logging
import os
import signal

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.background import BackgroundTask

from ... import __version__

logger = logging.getLogger("responses-bridge")

SERVICE_NAME = "responses-bridge"


async def health() -> dict:
    """GET /health - Fixed status document."""
    return {"status": "ok", "version": __version__, "name": SERVICE_NAME}


def signal_self_termination() -> None:
    """Ask the running process to stop as if it received SIGTERM."""
    os.kill(os.getpid(), signal.SIGTERM)


async def shutdown(request: Request) -> JSONResponse:
    """GET /shutdown - Reply, then stop the server once the reply is sent.

    The stop action is ``app.state.request_shutdown``; the CLI points it at the
    running server, otherwise the process signals itself.
    """
    logger.info("Shutdown requested via HTTP")
    stop = getattr(request.app.state, "request_shutdown", None) or signal_self_termination
    return JSONResponse({"status": "shutting_down"}, background=BackgroundTask(stop))
