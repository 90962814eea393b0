"""Base class for domain objects serialized through a declared schema."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from aragorn.serialization.fields import EntityTypeSchema, FieldSpec

NESTED_SUFFIX = "_attributes"

# Client-supplied id of an embedded child; only matches existing children
LOOKUP_KEY = "_lookup_id"


class Entity:
    """A domain object with schema-described attributes.

    Stored attribute values live in :attr:`attributes`, keyed by internal
    name. Subclasses expose computed (synthetic) fields as properties and may
    intercept writes with property setters. Embedded children are held under
    their relation name and keep a reference to the entity that embeds them.

    Args:
        schema: Shared schema of this entity's type.
        id: Primary key, if already assigned.
        parent: Entity embedding this one, if any.
        **attributes: Initial attribute values, including
            ``<relation>_attributes`` maps for embedded children.
    """

    # Whether single-resource documents of this type carry a self link
    self_link: ClassVar[bool] = True

    def __init__(
        self,
        schema: EntityTypeSchema,
        id: Any = None,
        *,
        parent: Entity | None = None,
        **attributes: Any,
    ) -> None:
        self.schema = schema
        self.parent = parent
        self.attributes: dict[str, Any] = schema.defaults()
        if id is not None:
            self.id = id
        self.assign(attributes)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r}>"

    @property
    def id(self) -> Any:
        return self.attributes.get("id")

    @id.setter
    def id(self, value: Any) -> None:
        self.attributes["id"] = value

    @property
    def path_for(self) -> str:
        return self.schema.path

    @property
    def root_parent(self) -> Entity | None:
        """The outermost entity embedding this one, or ``None`` at the top."""
        ancestor = self
        while ancestor.parent is not None:
            ancestor = ancestor.parent
        return ancestor if ancestor is not self else None

    def read_attribute(self, key: str) -> Any:
        if isinstance(getattr(type(self), key, None), property):
            return getattr(self, key)
        return self.attributes.get(key)

    def write_attribute(self, key: str, value: Any) -> None:
        if key in self.schema.array_fields:
            value = _normalize_list(value)

        descriptor = getattr(type(self), key, None)
        if isinstance(descriptor, property) and descriptor.fset is not None:
            setattr(self, key, value)
        else:
            self.attributes[key] = value

    def assign(self, attributes: Mapping[str, Any]) -> None:
        """Apply internal attributes, building or updating embedded children.

        Keys absent from *attributes* are left untouched.

        Raises:
            AttributeError: If a key is not declared on this entity's type.
        """
        for key, value in attributes.items():
            relation_key = key[: -len(NESTED_SUFFIX)] if key.endswith(NESTED_SUFFIX) else None
            if relation_key is not None and relation_key in self.schema.relations:
                self._assign_nested(self.schema.get_field(relation_key), value)
            elif key in self.schema.relations:
                self._adopt(key, value)
            elif key == "id" or self.schema.get_field(key) is not None:
                self.write_attribute(key, value)
            else:
                raise AttributeError(
                    f"'{self.schema.name}' has no declared attribute '{key}'"
                )

    def meta_values(self) -> dict[str, Any]:
        """Current values of the fields declared as document metadata."""
        return {key: self.read_attribute(key) for key in self.schema.meta_fields}

    def _adopt(self, key: str, value: Any) -> None:
        if value is None:
            self.attributes[key] = [] if self.schema.get_field(key).is_many else None
            return
        children = value if isinstance(value, list) else [value]
        for child in children:
            child.parent = self
        self.attributes[key] = value

    def _assign_nested(self, spec: FieldSpec, value: Any) -> None:
        child_schema = self.schema.relations[spec.key]

        if not spec.is_many:
            current = self.attributes.get(spec.key)
            if value is None:
                self.attributes[spec.key] = None
            elif current is not None:
                current.assign(value)
            else:
                self.attributes[spec.key] = child_schema.new(parent=self, **value)
            return

        existing = {
            str(child.id): child
            for child in self.attributes.get(spec.key) or []
            if child.id is not None
        }
        children = []
        for item in value or []:
            item = dict(item)
            child_id = item.pop("id", None)
            lookup_id = item.pop(LOOKUP_KEY, None)
            match_id = child_id if child_id is not None else lookup_id
            child = existing.get(str(match_id)) if match_id is not None else None
            if child is not None:
                child.assign(item)
            else:
                child = child_schema.new(child_id, parent=self, **item)
            children.append(child)
        self.attributes[spec.key] = children


def _normalize_list(value: Any) -> list[Any]:
    """Wrap scalars and drop duplicate entries, keeping first-seen order."""
    if value is None or value == "":
        return []
    if not isinstance(value, (list, tuple, set, frozenset)):
        value = [value]
    unique: list[Any] = []
    for item in value:
        if item not in unique:
            unique.append(item)
    return unique
