"""OpenAPI documentation setup for cheesepants-py."""

from __future__ import annotations

from litestar.openapi import OpenAPIConfig
from litestar.openapi.plugins import ScalarRenderPlugin, SwaggerRenderPlugin


def create_openapi_config(version: str) -> OpenAPIConfig:
    """Create the OpenAPI configuration.

    Endpoints (relative to /schema):
        - / - Scalar UI (default)
        - /swagger - Swagger UI
        - /openapi.json - OpenAPI schema

    Args:
        version: The application version shown in the docs.

    Returns:
        The OpenAPI configuration.
    """
    return OpenAPIConfig(
        title="Cheese Pants API",
        version=version,
        description=(
            "Collaborative sentence game. Rooms are played over the WebSocket "
            "endpoint at /ws/game; the HTTP API exposes rooms and their statistics."
        ),
        path="/schema",
        render_plugins=[
            ScalarRenderPlugin(path="/"),
            SwaggerRenderPlugin(path="/swagger"),
        ],
    )
