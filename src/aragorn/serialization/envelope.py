"""Building and reading whole wire documents for declared entity types."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Collection, Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from aragorn.config import Settings, get_settings
from aragorn.serialization.codec import AttributeCodec
from aragorn.serialization.document import JSONAPIRequest, JSONAPIResource, WireDocument
from aragorn.serialization.entity import Entity
from aragorn.serialization.errors import (
    InboundFormatError,
    SchemaError,
    SerializationError,
    WireFormatError,
)
from aragorn.serialization.fields import EntityTypeSchema
from aragorn.serialization.pagination import apply_pagination
from aragorn.serialization.registry import EntityType, SchemaRegistry

logger = logging.getLogger(__name__)

# Looks up an existing entity by id; returns None when there is none
Resolver = Callable[[EntityTypeSchema, str], Entity | None]


class EnvelopeBuilder:
    """Converts entities to wire documents and wire payloads to entities.

    Args:
        registry: Registry holding the schemas of every entity type served.
        settings: Source of the base URI, JSON:API version and page sizes;
            defaults to the cached application settings.
    """

    def __init__(self, registry: SchemaRegistry, settings: Settings | None = None) -> None:
        self.registry = registry
        self.settings = settings or get_settings()
        self.codec = AttributeCodec(registry)

    def document(self, resource: EntityTypeSchema | None = None, **options: Any) -> WireDocument:
        """Return an empty document bound to the configured base URI and version."""
        options.setdefault("base_uri", self.settings.base_uri)
        options.setdefault("version", self.settings.json_api_version)
        return WireDocument(resource, **options)

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def from_wire(
        self,
        entity_type: EntityType,
        raw: str | bytes | Mapping[str, Any],
        *,
        resolver: Resolver | None = None,
        all_fields: bool = False,
    ) -> Entity | list[Entity]:
        """Build or update entities from a client payload.

        The resource may be wrapped under the singular or plural wire name of
        *entity_type*, or sent bare as ``{"data": ...}`` or as
        ``{"attributes": ...}``. A single entity is returned unless the payload
        was wrapped under the plural name or carried more than one datum.

        Args:
            entity_type: Entity type the payload describes.
            raw: JSON text or an already parsed object.
            resolver: Returns the stored entity for an id, or ``None``.
            all_fields: Accept every non-internal field and assign submitted
                ids to new entities.

        Raises:
            InboundFormatError: If the payload is not valid JSON, is not shaped
                like a resource document, or a value has the wrong type.
        """
        schema = self.registry.get(entity_type)
        payload = _load(raw)
        if not isinstance(payload, Mapping):
            raise InboundFormatError(
                f"Expected a JSON object for '{schema.singular}', got {type(payload).__name__}"
            )

        plural_wrapped = schema.plural in payload and schema.plural != schema.singular
        if schema.singular in payload:
            block = payload[schema.singular]
        elif schema.plural in payload:
            block = payload[schema.plural]
        else:
            block = payload
        request = self._parse_request(schema, block)

        entities = []
        for datum in request.items:
            if datum.type and datum.type not in _type_names(schema):
                raise InboundFormatError(
                    f"Resource type '{datum.type}' does not match '{schema.path}'"
                )
            attributes = self.codec.from_wire_attributes(
                datum.attributes or {}, schema, all_fields=all_fields
            )
            entity = resolver(schema, datum.id) if resolver and datum.id else None
            if entity is None:
                entity = schema.new()
                if all_fields and datum.id:
                    entity.id = datum.id
            entity.assign(attributes)
            entities.append(entity)

        if plural_wrapped or len(entities) > 1:
            return entities
        return entities[0] if entities else []

    def from_included(
        self,
        raw: str | bytes | Mapping[str, Any] | Iterable[Any],
        *,
        resolver: Resolver | None = None,
        all_fields: bool = False,
    ) -> list[Entity]:
        """Build entities from ``included`` resources of any declared type.

        Raises:
            SchemaError: If a resource names an undeclared type.
            WireFormatError: If a resource is not a valid resource object.
        """
        items = _load(raw)
        if isinstance(items, Mapping):
            items = [items]
        if not isinstance(items, list):
            raise WireFormatError("Included resources must be an object or a list")

        entities = []
        for item in items:
            try:
                resource = JSONAPIResource.model_validate(item)
            except ValidationError as exc:
                raise WireFormatError(f"Malformed included resource: {exc}") from exc
            schema = self.registry.get(resource.type)
            entities.append(
                self.from_wire(
                    schema,
                    {"data": resource.model_dump(exclude={"links", "meta"})},
                    resolver=resolver,
                    all_fields=all_fields,
                )
            )
        return entities

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def to_wire(
        self,
        entities: Entity | Iterable[Entity],
        *,
        entity_type: EntityType | None = None,
        related: Iterable[Entity | JSONAPIResource | Mapping[str, Any]] | None = None,
        path: str | None = None,
        collection: bool = False,
        exclude: Collection[str] = (),
        skip_id: bool = False,
    ) -> WireDocument:
        """Wrap one or more entities in a document.

        Meta fields of a single entity go to the document meta. In collection
        mode only the first entity's meta values are kept.

        Args:
            entities: An entity or a list of entities of one type.
            entity_type: Type of the document; defaults to the first entity's.
            related: Entities or resource objects rendered under ``included``.
            path: Extra path segment appended to generated links.
            collection: Render as a collection even with one entity.
            exclude: Field names left out of every attribute map.
            skip_id: Leave resource ids out.
        """
        if isinstance(entities, Entity):
            entities = [entities]
        entities = list(entities)

        if entity_type is not None:
            schema = self.registry.get(entity_type)
        elif entities:
            schema = entities[0].schema
        else:
            raise SchemaError("Cannot determine the entity type of an empty document")

        document = self.document(schema, path=path, collection=collection)
        if entities:
            document.add_parent(entities[0].root_parent)
            for entity in entities:
                document.add_datum(
                    None if skip_id or entity.id is None else str(entity.id),
                    self.codec.to_wire_attributes(entity, exclude=exclude),
                )
            for key, value in entities[0].meta_values().items():
                document.add_meta(key, value)

        if related:
            document.add_related([self._related_resource(item) for item in related])
        return document

    def to_wire_collection(
        self,
        entities: Iterable[Entity],
        *,
        entity_type: EntityType,
        related: Iterable[Entity | JSONAPIResource | Mapping[str, Any]] | None = None,
        **params: Any,
    ) -> WireDocument:
        """Wrap *entities* in a paginated collection document.

        *params* are the request's query parameters; ``total`` defaults to the
        number of entities.
        """
        entities = list(entities)
        document = self.to_wire(
            entities, entity_type=entity_type, related=related, collection=True
        )
        params.setdefault("total", len(entities))
        apply_pagination(document, params, self.settings)
        return document

    def as_error(self, status: int, title: str, detail: str | None = None) -> WireDocument:
        document = self.document()
        document.add_error(status, title, detail)
        return document

    def from_exception(self, exc: SerializationError) -> WireDocument:
        """Report a serialization failure as a one-error document."""
        return self.as_error(exc.status, exc.title, str(exc) or None)

    def serialize(
        self,
        document: WireDocument,
        *,
        flat: bool = False,
        collection: bool | None = None,
        exclude_self_link: bool = False,
    ) -> dict[str, Any]:
        return document.render(
            flat=flat, collection=collection, exclude_self_link=exclude_self_link
        )

    def dumps(self, document: WireDocument, **options: Any) -> str:
        """Render *document* as JSON text."""
        return json.dumps(self.serialize(document, **options))

    def _related_resource(
        self, item: Entity | JSONAPIResource | Mapping[str, Any]
    ) -> JSONAPIResource | Mapping[str, Any]:
        if isinstance(item, Entity):
            return self.serialize(self.to_wire(item))["data"]
        return item

    @staticmethod
    def _parse_request(schema: EntityTypeSchema, block: Any) -> JSONAPIRequest:
        if isinstance(block, list):
            block = {"data": block}
        if not isinstance(block, Mapping):
            raise InboundFormatError(f"Malformed '{schema.singular}' payload")
        if "data" not in block:
            if "attributes" not in block:
                raise InboundFormatError(
                    f"Payload has no '{schema.singular}' or '{schema.plural}' resource"
                )
            block = {"data": block}
        try:
            return JSONAPIRequest.model_validate(block)
        except ValidationError as exc:
            logger.info("Rejected %s payload: %s", schema.name, exc)
            raise InboundFormatError(f"Malformed '{schema.singular}' data block") from exc


def _load(raw: Any) -> Any:
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise InboundFormatError(f"Payload is not valid JSON: {exc.msg}") from exc
        except UnicodeDecodeError as exc:
            raise InboundFormatError(f"Payload is not valid UTF-8: {exc.reason}") from exc
    return raw


def _type_names(schema: EntityTypeSchema) -> set[str]:
    return {
        schema.path,
        schema.plural,
        schema.singular,
        schema.name,
        schema.entity_class.__name__,
    }
