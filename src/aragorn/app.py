"""FastAPI application factory with an async lifespan for the schema registry."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from aragorn.api.errors import register_error_handlers
from aragorn.api.v1.router import v1_router
from aragorn.config import get_settings
from aragorn.models import build_registry
from aragorn.serialization.envelope import EnvelopeBuilder

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle.

    On startup: declare every entity type, freeze the registry and build the
    envelope builder shared by all requests.
    On shutdown: clear the registry.
    """
    settings = get_settings()

    registry = build_registry()
    app.state.registry = registry
    app.state.envelope_builder = EnvelopeBuilder(registry, settings)
    logger.info("Serving %d entity types under %s", len(registry), settings.base_uri)

    yield

    app.state.registry.clear()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    This is the app factory. Uvicorn calls it with the --factory flag:
        uvicorn aragorn.app:create_app --factory
    """
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    app = FastAPI(
        title="Aragorn",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
    )

    register_error_handlers(app)
    app.include_router(v1_router, prefix=settings.api_prefix)

    return app
