"""Field declarations and the immutable per-entity-type schema built from them.

A declaration is an ordered list of :class:`FieldSpec` values, written either
as models or as plain dicts in the same shape::

    RECALL_FIELDS = [
        {"field": "_id", "as": "id", "type": "identifier"},
        {"field": "t", "as": "title"},
        {"field": "pd", "as": "publication_date", "type": "timestamp"},
        {"field": "ct", "as": "categories", "type": "array"},
    ]

Direction flags:

- ``inbound``: accepted from clients, never emitted (e.g. a password).
- ``outbound``: emitted, never accepted (computed from relationships).
- ``synthetic``: transient, computed on read, never stored.
- ``internal``: stored, never serialized in either direction.
- ``meta``: emitted only in the document ``meta`` block.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from aragorn.serialization.errors import SchemaError
from aragorn.serialization.naming import jsonize, pluralize, underscore

if TYPE_CHECKING:
    from aragorn.serialization.entity import Entity


class FieldType(str, Enum):
    """Semantic type of a plain field."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    IDENTIFIER = "identifier"
    ARRAY = "array"


class FieldSpec(BaseModel):
    """One declared field, or one embedded relation, of an entity type."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    field: str | None = None
    as_: str | None = Field(default=None, alias="as")
    embeds_one: str | None = None
    embeds_many: str | None = None
    # Entity type of an embedded relation; derived from the relation name when omitted
    target: str | None = None

    type: FieldType = FieldType.STRING
    of: FieldType = FieldType.STRING
    default: Any = None

    inbound: bool = False
    outbound: bool = False
    synthetic: bool = False
    internal: bool = False
    meta: bool = False

    @model_validator(mode="after")
    def check_declaration(self) -> FieldSpec:
        kinds = [k for k in (self.field, self.embeds_one, self.embeds_many) if k]
        if len(kinds) != 1:
            raise ValueError(
                "exactly one of 'field', 'embeds_one' or 'embeds_many' must be declared"
            )
        if self.inbound and self.outbound:
            raise ValueError(f"field '{self.key}' cannot be both inbound and outbound")
        if self.internal and self.meta:
            raise ValueError(f"field '{self.key}' cannot be both internal and meta")
        if self.of is FieldType.ARRAY:
            raise ValueError(f"field '{self.key}' cannot be a list of lists")
        if self.is_relation and self.as_:
            raise ValueError(f"relation '{self.key}' cannot declare an alias")
        return self

    @property
    def key(self) -> str:
        """Internal attribute name; the ``as`` alias wins over the stored name."""
        return self.as_ or self.field or self.embeds_one or self.embeds_many or ""

    @property
    def wire_name(self) -> str:
        return jsonize(self.key)

    @property
    def is_relation(self) -> bool:
        return bool(self.embeds_one or self.embeds_many)

    @property
    def is_many(self) -> bool:
        return bool(self.embeds_many)

    @property
    def is_array(self) -> bool:
        return not self.is_relation and self.type is FieldType.ARRAY

    @property
    def is_primary_key(self) -> bool:
        return not self.is_relation and self.key == "id"

    @property
    def is_stored(self) -> bool:
        """Whether the value lives in the entity's attribute map."""
        return not (self.is_relation or self.inbound or self.synthetic)


def coerce_field_spec(declaration: FieldSpec | Mapping[str, Any]) -> FieldSpec:
    """Validate a single declaration, raising :class:`SchemaError` on failure."""
    if isinstance(declaration, FieldSpec):
        return declaration
    try:
        return FieldSpec.model_validate(dict(declaration))
    except (TypeError, ValueError) as exc:
        raise SchemaError(f"Invalid field declaration {declaration!r}: {exc}") from exc


@dataclass(frozen=True, eq=False)
class EntityTypeSchema:
    """Immutable, shared description of how one entity type is serialized.

    Built once by :meth:`SchemaRegistry.declare` and borrowed by every entity
    of that type. All derived name sets are computed up front.
    """

    name: str
    entity_class: type[Entity]
    fields: tuple[FieldSpec, ...]
    singular: str
    plural: str
    path: str
    relations: Mapping[str, EntityTypeSchema] = field(default_factory=dict)

    array_fields: frozenset[str] = frozenset()
    inbound_fields: tuple[str, ...] = ()
    outbound_fields: tuple[str, ...] = ()
    synthetic_fields: tuple[str, ...] = ()
    json_fields: tuple[str, ...] = ()
    meta_fields: tuple[str, ...] = ()

    # Original declaration, compared when a type is declared again
    declaration: tuple[Any, ...] = ()

    @classmethod
    def build(
        cls,
        entity_class: type[Entity],
        fields: Iterable[FieldSpec],
        relations: Mapping[str, EntityTypeSchema],
        *,
        path: str | None = None,
        singleton: bool = False,
        plural: str | None = None,
    ) -> EntityTypeSchema:
        """Validate *fields* as a whole and compute the derived name sets."""
        fields = tuple(fields)
        name = underscore(entity_class.__name__)
        plural_name = plural or pluralize(name)

        seen: dict[str, str] = {}
        for spec in fields:
            if spec.wire_name in seen:
                raise SchemaError(
                    f"{entity_class.__name__}: fields '{seen[spec.wire_name]}' and "
                    f"'{spec.key}' share the wire name '{spec.wire_name}'"
                )
            seen[spec.wire_name] = spec.key

        segment = path if path is not None else (name if singleton else plural_name)

        return cls(
            name=name,
            entity_class=entity_class,
            fields=fields,
            singular=jsonize(name),
            plural=jsonize(plural_name),
            path=segment,
            relations=MappingProxyType(dict(relations)),
            array_fields=frozenset(s.key for s in fields if s.is_array),
            inbound_fields=tuple(s.wire_name for s in fields if s.inbound),
            outbound_fields=tuple(s.wire_name for s in fields if s.outbound),
            synthetic_fields=tuple(s.wire_name for s in fields if s.synthetic),
            json_fields=tuple(
                s.wire_name for s in fields if not (s.internal or s.meta)
            ),
            meta_fields=tuple(s.key for s in fields if s.meta),
            declaration=(fields, path, singleton, plural),
        )

    def __repr__(self) -> str:
        return f"EntityTypeSchema({self.name!r}, path={self.path!r})"

    def get_field(self, key: str) -> FieldSpec | None:
        """Return the field declared under internal name *key*."""
        for spec in self.fields:
            if spec.key == key:
                return spec
        return None

    def accepted_fields(self, disallowed: Iterable[str] = ()) -> tuple[str, ...]:
        """Wire names a client may submit on create or update."""
        rejected = {*self.outbound_fields, *self.synthetic_fields, *disallowed}
        return tuple(n for n in self.json_fields if n not in rejected)

    def defaults(self) -> dict[str, Any]:
        """Fresh default values for every stored attribute."""
        values: dict[str, Any] = {}
        for spec in self.fields:
            if not spec.is_stored:
                continue
            if spec.default is None and spec.is_array:
                values[spec.key] = []
            else:
                values[spec.key] = copy.deepcopy(spec.default)
        for spec in self.fields:
            if spec.is_relation:
                values[spec.key] = [] if spec.is_many else None
        return values

    def new(self, id: Any = None, *, parent: Entity | None = None, **attributes: Any) -> Entity:
        """Build a new entity of this type with defaults applied."""
        return self.entity_class(self, id, parent=parent, **attributes)
