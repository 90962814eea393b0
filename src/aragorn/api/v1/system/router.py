"""System router providing health check and operational endpoints."""

import logging

from fastapi import APIRouter, Depends

from aragorn.api.deps import get_envelope_builder, get_registry
from aragorn.api.responses import JSONAPIResponse
from aragorn.serialization.envelope import EnvelopeBuilder
from aragorn.serialization.registry import SchemaRegistry

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_class=JSONAPIResponse)
async def health_check(
    registry: SchemaRegistry = Depends(get_registry),
    builder: EnvelopeBuilder = Depends(get_envelope_builder),
) -> JSONAPIResponse:
    """Return system health as a ``system-health`` resource with id ``current``.

    The status is ``healthy`` once the schema registry is frozen with at
    least one entity type, ``degraded`` otherwise.
    """
    ready = registry.frozen and len(registry) > 0
    if not ready:
        logger.warning("Schema registry is not ready (%d entity types)", len(registry))

    document = builder.document()
    document.add_datum(
        "current",
        {
            "status": "healthy" if ready else "degraded",
            "entityTypes": sorted(schema.path for schema in registry),
        },
        type="system-health",
    )
    return JSONAPIResponse(content=builder.serialize(document, exclude_self_link=True))
