"""Process-wide, write-once registry of entity type schemas.

Entity types are declared during application bootstrap (see
:func:`aragorn.models.build_registry`), after which the registry is frozen
and shared read-only by every request.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator, Mapping
from typing import Any, Union

from aragorn.serialization.entity import Entity
from aragorn.serialization.errors import SchemaError
from aragorn.serialization.fields import EntityTypeSchema, FieldSpec, coerce_field_spec
from aragorn.serialization.naming import singularize, underscore

logger = logging.getLogger(__name__)

EntityType = Union[type[Entity], str, EntityTypeSchema]


class SchemaRegistry:
    """Holds one :class:`EntityTypeSchema` per declared entity class.

    Schemas can be looked up by class, by type name (``vehicle_recall``), by
    class name, by singular or plural wire name, or by path segment.
    """

    def __init__(self) -> None:
        self._schemas: dict[type[Entity], EntityTypeSchema] = {}
        self._names: dict[str, EntityTypeSchema] = {}
        self._lock = threading.Lock()
        self._frozen = False

    def __contains__(self, entity_type: object) -> bool:
        try:
            self.get(entity_type)  # type: ignore[arg-type]
        except SchemaError:
            return False
        return True

    def __iter__(self) -> Iterator[EntityTypeSchema]:
        return iter(list(self._schemas.values()))

    def __len__(self) -> int:
        return len(self._schemas)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def declare(
        self,
        entity_class: type[Entity],
        fields: Iterable[FieldSpec | Mapping[str, Any]],
        *,
        path: str | None = None,
        singleton: bool = False,
        plural: str | None = None,
    ) -> EntityTypeSchema:
        """Declare the fields of *entity_class* and return its schema.

        Declaring the same class again with an identical declaration returns
        the existing schema unchanged.

        Args:
            entity_class: The :class:`Entity` subclass being declared.
            fields: Ordered field declarations.
            path: URL path segment, overriding the pluralized type name.
            singleton: Use the singular type name as the path segment.
            plural: Plural type name, overriding the inflected one.

        Raises:
            SchemaError: If a declaration is invalid, references an undeclared
                embedded type, repeats a wire name, conflicts with an earlier
                declaration, or the registry is frozen.
        """
        specs = tuple(coerce_field_spec(f) for f in fields)

        with self._lock:
            existing = self._schemas.get(entity_class)
            if existing is not None:
                if existing.declaration == (specs, path, singleton, plural):
                    return existing
                raise SchemaError(
                    f"{entity_class.__name__} is already declared with different fields"
                )
            if self._frozen:
                raise SchemaError(
                    f"Cannot declare {entity_class.__name__}: the schema registry is frozen"
                )

            relations = {
                spec.key: self._resolve_relation(entity_class, spec)
                for spec in specs
                if spec.is_relation
            }
            schema = EntityTypeSchema.build(
                entity_class,
                specs,
                relations,
                path=path,
                singleton=singleton,
                plural=plural,
            )

            names = {
                schema.name,
                entity_class.__name__,
                schema.singular,
                schema.plural,
                schema.path,
            }
            for name in names:
                taken = self._names.get(name)
                if taken is not None:
                    raise SchemaError(
                        f"{entity_class.__name__}: type name '{name}' is already "
                        f"used by {taken.entity_class.__name__}"
                    )

            self._schemas[entity_class] = schema
            for name in names:
                self._names[name] = schema

        logger.debug(
            "Declared %s with %d fields (path=%s)", schema.name, len(specs), schema.path
        )
        return schema

    def get(self, entity_type: EntityType) -> EntityTypeSchema:
        """Return the schema for *entity_type*.

        Raises:
            SchemaError: If no schema is registered for it.
        """
        if isinstance(entity_type, EntityTypeSchema):
            return entity_type
        if isinstance(entity_type, type):
            for klass in entity_type.__mro__:
                schema = self._schemas.get(klass)
                if schema is not None:
                    return schema
            raise SchemaError(f"No schema is declared for {entity_type.__name__}")

        name = str(entity_type)
        for candidate in (name, underscore(name), singularize(underscore(name))):
            schema = self._names.get(candidate)
            if schema is not None:
                return schema
        raise SchemaError(f"Unknown entity type '{name}'")

    def path_for(self, entity_type: EntityType) -> str:
        return self.get(entity_type).path

    def singular_name(self, entity_type: EntityType) -> str:
        return self.get(entity_type).singular

    def plural_name(self, entity_type: EntityType) -> str:
        return self.get(entity_type).plural

    def new(
        self,
        entity_type: EntityType,
        id: Any = None,
        *,
        parent: Entity | None = None,
        **attributes: Any,
    ) -> Entity:
        """Build a new entity of *entity_type* with defaults applied."""
        return self.get(entity_type).new(id, parent=parent, **attributes)

    def freeze(self) -> None:
        """End the bootstrap phase; later declarations of new types fail."""
        with self._lock:
            self._frozen = True
        logger.info("Schema registry frozen with %d entity types", len(self._schemas))

    def clear(self) -> None:
        """Drop every schema and reopen the registry for declarations."""
        with self._lock:
            self._schemas.clear()
            self._names.clear()
            self._frozen = False

    def _resolve_relation(
        self, entity_class: type[Entity], spec: FieldSpec
    ) -> EntityTypeSchema:
        target = spec.target or singularize(spec.key)
        schema = self._names.get(target) or self._names.get(underscore(target))
        if schema is None:
            raise SchemaError(
                f"{entity_class.__name__}.{spec.key} embeds '{target}', "
                "which has no declared schema"
            )
        return schema
