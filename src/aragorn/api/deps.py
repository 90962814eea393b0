"""Shared FastAPI dependencies for the schema registry and envelope builder."""

from fastapi import Request

from aragorn.serialization.envelope import EnvelopeBuilder
from aragorn.serialization.registry import SchemaRegistry


async def get_registry(request: Request) -> SchemaRegistry:
    """Return the frozen schema registry stored on app state.

    The registry is built during the application lifespan and stored on
    ``request.app.state.registry``.
    """
    return request.app.state.registry


async def get_envelope_builder(request: Request) -> EnvelopeBuilder:
    """Return the envelope builder stored on ``request.app.state.envelope_builder``."""
    return request.app.state.envelope_builder
