"""Conversion between entity attributes and wire-format attribute maps.

Outbound, :meth:`AttributeCodec.to_wire_attributes` reads an entity through
its schema and produces camelCase attributes, flattening embedded children.
Inbound, :meth:`AttributeCodec.from_wire_attributes` accepts only the fields a
client may set, coerces each value to its declared type, and returns internal
attributes for the caller to apply.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Mapping
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Annotated, Any
from uuid import UUID

from pydantic import BeforeValidator, ConfigDict, TypeAdapter, ValidationError

from aragorn.serialization.document import WireDocument
from aragorn.serialization.entity import LOOKUP_KEY, NESTED_SUFFIX, Entity
from aragorn.serialization.errors import InboundFormatError
from aragorn.serialization.fields import FieldSpec, FieldType

if TYPE_CHECKING:
    from aragorn.serialization.fields import EntityTypeSchema
    from aragorn.serialization.registry import EntityType, SchemaRegistry

logger = logging.getLogger(__name__)


def _reject_bool(value: Any) -> Any:
    if isinstance(value, bool):
        raise ValueError("booleans are not numbers")
    return value


_ADAPTERS: dict[FieldType, TypeAdapter[Any]] = {
    FieldType.STRING: TypeAdapter(str),
    FieldType.NUMBER: TypeAdapter(Annotated[int | float, BeforeValidator(_reject_bool)]),
    FieldType.BOOLEAN: TypeAdapter(bool),
    FieldType.TIMESTAMP: TypeAdapter(datetime),
    FieldType.IDENTIFIER: TypeAdapter(str, config=ConfigDict(coerce_numbers_to_str=True)),
}


def format_timestamp(value: datetime) -> str:
    """Render a timestamp in the canonical wire format (UTC, ISO 8601)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(value: Any) -> datetime:
    """Parse a canonical wire timestamp into an aware UTC datetime."""
    parsed = _ADAPTERS[FieldType.TIMESTAMP].validate_python(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_wire_value(spec: FieldSpec, value: Any) -> Any:
    """Convert one attribute value to its wire representation."""
    if value is None:
        return None
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_to_wire_scalar(spec.of, item) for item in value]
    return _to_wire_scalar(spec.type, value)


def _to_wire_scalar(field_type: FieldType, value: Any) -> Any:
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, UUID) or field_type is FieldType.IDENTIFIER:
        return str(value)
    return value


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return not value
    return False


class AttributeCodec:
    """Schema-guided conversion of attributes in both directions.

    Args:
        registry: Registry used to resolve entity types named by callers.
    """

    def __init__(self, registry: SchemaRegistry) -> None:
        self.registry = registry

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def to_wire_attributes(
        self, entity: Entity, *, exclude: Collection[str] = ()
    ) -> dict[str, Any]:
        """Return the wire attribute map of *entity*.

        Fields are visited in declaration order. The primary key and fields
        flagged ``internal``, ``inbound`` or ``meta`` are skipped, as is any
        field named in *exclude* (by internal or wire name). Embedded children
        are flattened under the relation's wire name.
        """
        attributes: dict[str, Any] = {}
        for spec in entity.schema.fields:
            if spec.is_primary_key or spec.internal or spec.inbound or spec.meta:
                continue
            if spec.key in exclude or spec.wire_name in exclude:
                continue

            value = entity.read_attribute(spec.key)
            if not spec.is_relation:
                attributes[spec.wire_name] = to_wire_value(spec, value)
            elif spec.is_many:
                attributes[spec.wire_name] = [
                    self.flatten(child, exclude=exclude) for child in value or []
                ]
            else:
                attributes[spec.wire_name] = (
                    None
                    if value is None
                    else self.flatten(value, exclude=exclude, skip_id=True)
                )
        return attributes

    def flatten(
        self, entity: Entity, *, exclude: Collection[str] = (), skip_id: bool = False
    ) -> dict[str, Any]:
        """Render an embedded child as ``{id?, **attributes}`` with no envelope."""
        document = WireDocument(entity.schema, parent=entity.root_parent)
        identifier = None if skip_id or entity.id is None else str(entity.id)
        document.add_datum(identifier, self.to_wire_attributes(entity, exclude=exclude))
        return document.render(flat=True)

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def from_wire_attributes(
        self,
        wire_map: Mapping[str, Any],
        entity_type: EntityType,
        *,
        all_fields: bool = False,
    ) -> dict[str, Any]:
        """Convert a wire attribute map into internal attributes.

        Only keys present in *wire_map* are returned, so applying the result
        never overwrites attributes the client did not send. Embedded
        relations are returned as ``<relation>_attributes`` entries.

        Args:
            wire_map: Attributes as submitted by the client.
            entity_type: Entity type the attributes belong to.
            all_fields: Also accept the primary key, ``synthetic`` and
                ``outbound`` fields (trusted sources such as fixtures).

        Raises:
            InboundFormatError: If *wire_map* is not an object or a value
                cannot be coerced to its declared type.
        """
        schema = self.registry.get(entity_type)
        if not isinstance(wire_map, Mapping):
            raise InboundFormatError(
                f"Expected an attributes object for '{schema.singular}', "
                f"got {type(wire_map).__name__}"
            )

        attributes: dict[str, Any] = {}
        for spec in schema.fields:
            if not self._accepts(spec, all_fields=all_fields):
                continue
            if spec.wire_name not in wire_map:
                continue

            value = wire_map[spec.wire_name]
            if spec.is_relation:
                attributes[f"{spec.key}{NESTED_SUFFIX}"] = self._nested_attributes(
                    schema, spec, value, all_fields=all_fields
                )
            else:
                attributes[spec.key] = self._from_wire_value(schema, spec, value)
        return attributes

    def from_params(
        self,
        params: Mapping[str, Any],
        entity_type: EntityType,
        *,
        all_fields: bool = False,
    ) -> dict[str, Any]:
        """Extract the attributes of the first datum nested under the singular key."""
        schema = self.registry.get(entity_type)
        wrapped = params.get(schema.singular) or {}
        data = (wrapped.get("data") or {}) if isinstance(wrapped, Mapping) else {}
        if isinstance(data, list):
            data = data[0] if data else {}
        if not isinstance(data, Mapping):
            raise InboundFormatError(f"Malformed '{schema.singular}' data block")
        return self.from_wire_attributes(
            data.get("attributes") or {}, schema, all_fields=all_fields
        )

    @staticmethod
    def _accepts(spec: FieldSpec, *, all_fields: bool) -> bool:
        if spec.internal:
            return False
        if all_fields:
            return True
        return not (spec.is_primary_key or spec.synthetic or spec.outbound)

    def _nested_attributes(
        self,
        schema: EntityTypeSchema,
        spec: FieldSpec,
        value: Any,
        *,
        all_fields: bool,
    ) -> Any:
        child_schema = schema.relations[spec.key]
        if not spec.is_many:
            if value is None:
                return None
            return self.from_wire_attributes(value, child_schema, all_fields=all_fields)

        if value is None:
            return []
        if not isinstance(value, list):
            raise InboundFormatError(
                f"'{spec.wire_name}' of '{schema.singular}' must be a list"
            )
        nested = []
        for item in value:
            attributes = self.from_wire_attributes(item, child_schema, all_fields=all_fields)
            if not all_fields and isinstance(item, Mapping) and item.get("id") is not None:
                attributes[LOOKUP_KEY] = str(item["id"])
            nested.append(attributes)
        return nested

    def _from_wire_value(self, schema: EntityTypeSchema, spec: FieldSpec, value: Any) -> Any:
        if spec.is_array:
            if _is_blank(value):
                return []
            items = value if isinstance(value, list) else [value]
            return [
                self._coerce(schema, spec, spec.of, item)
                for item in items
                if not _is_blank(item)
            ]
        if value is None:
            return None
        return self._coerce(schema, spec, spec.type, value)

    @staticmethod
    def _coerce(
        schema: EntityTypeSchema, spec: FieldSpec, field_type: FieldType, value: Any
    ) -> Any:
        try:
            if field_type is FieldType.TIMESTAMP:
                return parse_timestamp(value)
            return _ADAPTERS[field_type].validate_python(value)
        except ValidationError as exc:
            logger.info(
                "Rejected %s.%s value %r: %s",
                schema.name,
                spec.key,
                value,
                exc.errors()[0]["msg"] if exc.errors() else exc,
            )
            raise InboundFormatError(
                f"Invalid value for '{spec.wire_name}' of '{schema.singular}': "
                f"expected {field_type.value}"
            ) from exc
