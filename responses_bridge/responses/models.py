"""Short model name resolution.

Agents usually send bare ids such as ``gpt-4o``; the upstream router expects
namespaced ids such as ``openai/gpt-4o``.
"""

import logging
from typing import Mapping, Optional

logger = logging.getLogger("responses-bridge")

DEFAULT_NAMESPACE = "openai"

MODEL_MAP: dict[str, str] = {
    # OpenAI
    "gpt-4o": "openai/gpt-4o",
    "gpt-4o-mini": "openai/gpt-4o-mini",
    "gpt-4-turbo": "openai/gpt-4-turbo",
    "gpt-4": "openai/gpt-4",
    "gpt-3.5-turbo": "openai/gpt-3.5-turbo",
    "o1": "openai/o1",
    "o1-mini": "openai/o1-mini",
    "o1-preview": "openai/o1-preview",
    "o3-mini": "openai/o3-mini",
    # Anthropic
    "claude-3-5-sonnet": "anthropic/claude-3.5-sonnet",
    "claude-3.5-sonnet": "anthropic/claude-3.5-sonnet",
    "claude-3-opus": "anthropic/claude-3-opus",
    "claude-3-sonnet": "anthropic/claude-3-sonnet",
    "claude-3-haiku": "anthropic/claude-3-haiku",
    # Meta
    "llama-3.1-70b": "meta-llama/llama-3.1-70b-instruct",
    "llama-3.1-8b": "meta-llama/llama-3.1-8b-instruct",
    "llama-3.2-90b": "meta-llama/llama-3.2-90b-vision-instruct",
    # Google
    "gemini-pro": "google/gemini-pro",
    "gemini-1.5-pro": "google/gemini-pro-1.5",
    "gemini-1.5-flash": "google/gemini-flash-1.5",
    # Mistral
    "mistral-large": "mistralai/mistral-large",
    "mistral-medium": "mistralai/mistral-medium",
    "mixtral-8x7b": "mistralai/mixtral-8x7b-instruct",
}


class ModelNameResolver:
    """Maps model ids to fully qualified upstream ids.

    Args:
        aliases: Extra short-name entries merged over ``MODEL_MAP``.
        default_namespace: Prefix used for names found in neither table.
    """

    def __init__(
        self,
        aliases: Optional[Mapping[str, str]] = None,
        default_namespace: str = DEFAULT_NAMESPACE,
    ) -> None:
        self.table = dict(MODEL_MAP)
        for short, full in (aliases or {}).items():
            self.table[str(short).lower()] = str(full)
        self.default_namespace = default_namespace.strip("/") or DEFAULT_NAMESPACE

    def resolve(self, model: str) -> str:
        if "/" in model:
            return model

        mapped = self.table.get(model.lower())
        if mapped:
            logger.debug("Model '%s' resolved to '%s'", model, mapped)
            return mapped

        qualified = f"{self.default_namespace}/{model}"
        logger.warning(
            "Unknown model '%s', assuming %s namespace: %s",
            model,
            self.default_namespace,
            qualified,
        )
        return qualified


_default_resolver = ModelNameResolver()


def resolve_model_name(model: str) -> str:
    """Resolve ``model`` with the built-in table and the ``openai`` namespace."""
    return _default_resolver.resolve(model)


def strip_namespace(model: str) -> str:
    """``openai/gpt-4o`` -> ``gpt-4o``; ids without a namespace are unchanged."""
    return model.split("/", 1)[1] if "/" in model else model
