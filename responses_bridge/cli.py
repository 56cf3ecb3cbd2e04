"""Command line entry point: ``responses-bridge``.

Usage:
    echo "$OPENROUTER_API_KEY" | responses-bridge --port 0 --server-info info.json
"""

from __future__ import annotations

import argparse
import getpass
import json
import logging
import os
import socket
import sys
from pathlib import Path
from typing import Optional, TextIO

import uvicorn

from .core.exceptions import ConfigurationError
from .logging import mask_secret, setup_logging
from .main import create_app
from .settings import BridgeSettings, load_settings

logger = logging.getLogger("responses-bridge")


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="responses-bridge",
        description="Serve the Responses API on top of a Chat Completions upstream",
    )
    parser.add_argument("--config", help="Path to a YAML config file")
    parser.add_argument("--host", help="Bind address (default from config: 127.0.0.1)")
    parser.add_argument("--port", type=int, help="Port to listen on, 0 for a random free port")
    parser.add_argument(
        "--server-info",
        help="Write {\"port\": ..., \"pid\": ...} JSON to this file once bound",
    )
    parser.add_argument("--upstream-url", help="Base URL of the Chat Completions upstream")
    parser.add_argument(
        "--http-shutdown",
        action="store_true",
        help="Enable GET /shutdown",
    )
    parser.add_argument(
        "--api-key",
        help="Upstream API key (discouraged: visible in process listings; prefer stdin)",
    )
    return parser.parse_args(argv)


def read_api_key(stream: TextIO) -> str:
    """Read the API key from ``stream``, prompting when it is a terminal."""
    if stream.isatty():
        return getpass.getpass("Enter OpenRouter API key: ").strip()
    return stream.readline().strip()


def write_server_info(path: str, port: int) -> None:
    info = {"port": port, "pid": os.getpid()}
    Path(path).write_text(json.dumps(info), encoding="utf-8")
    logger.info(f"Server info written to {path}")


def bind_socket(host: str, port: int) -> socket.socket:
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    sock.bind((host, port))
    sock.set_inheritable(True)
    return sock


def build_settings(args: argparse.Namespace, stdin: TextIO) -> BridgeSettings:
    """Merge config, environment and flags; flags win.

    Raises:
        ConfigurationError: On an invalid port or when no API key is available.
    """
    settings = load_settings(args.config)

    if args.host:
        settings.server.host = args.host
    if args.port is not None:
        if not 0 <= args.port <= 65535:
            raise ConfigurationError(f"Invalid port: {args.port}")
        settings.server.port = args.port
    if args.upstream_url:
        settings.upstream.base_url = args.upstream_url
    if args.http_shutdown:
        settings.server.enable_shutdown = True

    if args.api_key:
        logger.warning(
            "Passing the API key with --api-key exposes it in process listings; "
            "pipe it on stdin instead"
        )
        settings.upstream.api_key = args.api_key
    elif not settings.upstream.api_key:
        settings.upstream.api_key = read_api_key(stdin)

    if not settings.upstream.api_key:
        raise ConfigurationError("No API key provided")

    logger.info(f"Using API key {mask_secret(settings.upstream.api_key)}")
    return settings


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the bridge server."""
    if argv is None:
        argv = sys.argv[1:]
    args = parse_args(argv)
    setup_logging()

    try:
        settings = build_settings(args, sys.stdin)
    except ConfigurationError as exc:
        logger.error(str(exc))
        return 1

    app = create_app(settings)
    try:
        sock = bind_socket(settings.server.host, settings.server.port)
    except OSError as exc:
        logger.error(f"Failed to bind {settings.server.host}:{settings.server.port}: {exc}")
        return 1

    port = sock.getsockname()[1]
    logger.info(f"Responses bridge listening on http://{settings.server.host}:{port}")
    logger.info(f"Upstream: {settings.upstream.base_url}")
    if args.server_info:
        write_server_info(args.server_info, port)

    server = uvicorn.Server(uvicorn.Config(app, log_level="info"))
    app.state.request_shutdown = lambda: setattr(server, "should_exit", True)
    try:
        server.run(sockets=[sock])
    finally:
        sock.close()
    logger.info("Responses bridge stopped")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
