"""Typed runtime settings built from the YAML config and the environment."""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .config_loader import load_config
from .core.exceptions import ConfigurationError
from .core.upstream import (
    DEFAULT_APP_NAME,
    DEFAULT_SITE_URL,
    DEFAULT_TIMEOUT,
    DEFAULT_UPSTREAM_URL,
)
from .responses.models import DEFAULT_NAMESPACE

logger = logging.getLogger("responses-bridge")

# Environment overrides (take priority over the config file)
ENV_HOST = "RESPONSES_BRIDGE_HOST"
ENV_PORT = "RESPONSES_BRIDGE_PORT"
ENV_UPSTREAM_URL = "RESPONSES_BRIDGE_UPSTREAM_URL"
ENV_API_KEY = "OPENROUTER_API_KEY"


@dataclass
class ServerSettings:
    host: str = "127.0.0.1"
    port: int = 0
    enable_shutdown: bool = False


@dataclass
class UpstreamSettings:
    base_url: str = DEFAULT_UPSTREAM_URL
    api_key: str = ""
    app_name: str = DEFAULT_APP_NAME
    site_url: str = DEFAULT_SITE_URL
    timeout_seconds: Optional[float] = DEFAULT_TIMEOUT


@dataclass
class ModelSettings:
    default_namespace: str = DEFAULT_NAMESPACE
    aliases: dict[str, str] = field(default_factory=dict)


@dataclass
class BridgeSettings:
    server: ServerSettings = field(default_factory=ServerSettings)
    upstream: UpstreamSettings = field(default_factory=UpstreamSettings)
    models: ModelSettings = field(default_factory=ModelSettings)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "BridgeSettings":
        """Build settings from a parsed config mapping; missing keys keep defaults."""
        server_cfg = _section(config, "server")
        upstream_cfg = _section(config, "upstream")
        models_cfg = _section(config, "models")

        server = ServerSettings(
            host=str(server_cfg.get("host") or ServerSettings.host),
            port=_parse_port(server_cfg.get("port", ServerSettings.port)),
            enable_shutdown=bool(server_cfg.get("enable_shutdown", False)),
        )

        timeout = upstream_cfg.get("timeout_seconds", DEFAULT_TIMEOUT)
        try:
            timeout = float(timeout) if timeout is not None else None
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid upstream.timeout_seconds: {timeout!r}") from exc

        upstream = UpstreamSettings(
            base_url=str(upstream_cfg.get("base_url") or DEFAULT_UPSTREAM_URL),
            api_key=str(upstream_cfg.get("api_key") or ""),
            app_name=str(upstream_cfg.get("app_name") or DEFAULT_APP_NAME),
            site_url=str(upstream_cfg.get("site_url") or DEFAULT_SITE_URL),
            timeout_seconds=timeout,
        )

        aliases = models_cfg.get("aliases") or {}
        if not isinstance(aliases, dict):
            raise ConfigurationError("models.aliases must be a mapping")
        models = ModelSettings(
            default_namespace=str(models_cfg.get("default_namespace") or DEFAULT_NAMESPACE),
            aliases={str(k): str(v) for k, v in aliases.items()},
        )

        return cls(server=server, upstream=upstream, models=models)


def _section(config: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = config.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"Config section '{name}' must be a mapping")
    return value


def _parse_port(value: Any) -> int:
    try:
        port = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid port: {value!r}") from exc
    if not 0 <= port <= 65535:
        raise ConfigurationError(f"Invalid port: {port}")
    return port


def apply_env_overrides(settings: BridgeSettings) -> BridgeSettings:
    """Apply RESPONSES_BRIDGE_* and OPENROUTER_API_KEY environment overrides."""
    host = os.getenv(ENV_HOST)
    if host:
        settings.server.host = host

    port = os.getenv(ENV_PORT)
    if port:
        try:
            settings.server.port = _parse_port(port)
        except ConfigurationError:
            logger.warning(f"Ignoring invalid {ENV_PORT}={port!r}")

    upstream_url = os.getenv(ENV_UPSTREAM_URL)
    if upstream_url:
        settings.upstream.base_url = upstream_url

    api_key = os.getenv(ENV_API_KEY)
    if api_key and not settings.upstream.api_key:
        settings.upstream.api_key = api_key

    return settings


def load_settings(path: Optional[str] = None) -> BridgeSettings:
    """Load the config file (if any) and apply environment overrides."""
    settings = BridgeSettings.from_config(load_config(path))
    return apply_env_overrides(settings)
