"""Runtime registry for breaking circular imports.

This module holds the upstream client and model resolver so that routes can
import them without causing circular imports with the main module.
"""

# Global instances - set by main.create_app during initialization
upstream_client = None
model_resolver = None


def set_upstream_client(client):
    """Set the global upstream client instance."""
    global upstream_client
    upstream_client = client


def get_upstream_client():
    """Get the global upstream client instance."""
    if upstream_client is None:
        raise RuntimeError("Upstream client not initialized. Did you call set_upstream_client?")
    return upstream_client


def set_model_resolver(resolver):
    """Set the global model name resolver."""
    global model_resolver
    model_resolver = resolver


def get_model_resolver():
    """Get the global model name resolver, or None for the built-in table."""
    return model_resolver
