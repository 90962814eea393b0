"""JSON:API document models and the mutable envelope they are assembled in.

:class:`WireDocument` collects resource data, included resources, errors,
pagination links and metadata, then renders the top-level document. The
Pydantic models validate the pieces that arrive from clients.

Reference: https://jsonapi.org/format/
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit, urlunsplit

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from aragorn.config import get_settings
from aragorn.serialization.errors import WireFormatError

if TYPE_CHECKING:
    from aragorn.serialization.entity import Entity
    from aragorn.serialization.fields import EntityTypeSchema


def _identifier(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


# ---------------------------------------------------------------------------
# Request wrappers
# ---------------------------------------------------------------------------


class JSONAPIRequestData(BaseModel):
    """One entry of the ``data`` member inside a request body."""

    model_config = ConfigDict(extra="ignore")

    type: str | None = None
    id: str | None = None
    attributes: dict[str, Any] | None = None
    meta: dict[str, Any] | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        return _identifier(value)


class JSONAPIRequest(BaseModel):
    """Request envelope wrapping ``{ data: { type?, id?, attributes } }`` or a list of them."""

    data: JSONAPIRequestData | list[JSONAPIRequestData] | None = None

    @property
    def items(self) -> list[JSONAPIRequestData]:
        if self.data is None:
            return []
        return self.data if isinstance(self.data, list) else [self.data]


# ---------------------------------------------------------------------------
# Document members
# ---------------------------------------------------------------------------


class JSONAPIResource(BaseModel):
    """A single resource object with type, optional id, and attributes."""

    type: str
    id: str | None = None
    attributes: dict[str, Any] = {}
    links: dict[str, str] | None = None
    meta: dict[str, Any] | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        return _identifier(value)

    def as_json(self, *, include_meta: bool = True) -> dict[str, Any]:
        """Render the resource, keeping ``None`` attribute values."""
        resource: dict[str, Any] = {"type": self.type}
        if self.id:
            resource["id"] = self.id
        resource["attributes"] = dict(self.attributes)
        if self.links:
            resource["links"] = dict(self.links)
        if include_meta and self.meta:
            resource["meta"] = dict(self.meta)
        return resource


class JSONAPIError(BaseModel):
    """A single error object."""

    status: int
    title: str
    detail: str | None = None

    def as_json(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------


class WireDocument:
    """Top-level document for one or more resources of a single entity type.

    Args:
        resource: Schema of the entity type the data items belong to.
        base_uri: Scheme and authority used for generated links; defaults to
            the configured ``base_uri``.
        version: Value of ``jsonapi.version``.
        data: Initial resource objects.
        included: Related resources rendered under ``included``.
        errors: Initial error objects.
        links: Initial top-level links.
        parent: Entity scoping this document; links are nested under it.
        path: Extra path segment appended to generated links.
        meta: Initial top-level metadata.
        total: Shortcut for ``meta["total"]``.
        collection: Render as a collection even with a single datum.
    """

    def __init__(
        self,
        resource: EntityTypeSchema | None = None,
        *,
        base_uri: str | None = None,
        version: str | None = None,
        data: Iterable[JSONAPIResource | Mapping[str, Any]] | None = None,
        included: Iterable[JSONAPIResource | Mapping[str, Any]] | None = None,
        errors: Iterable[JSONAPIError] | None = None,
        links: Mapping[str, str] | None = None,
        parent: Entity | None = None,
        path: str | None = None,
        meta: Mapping[str, Any] | None = None,
        total: int | None = None,
        collection: bool = False,
    ) -> None:
        self.resource = resource
        self.base_uri = base_uri
        self.version = version
        self.data: list[JSONAPIResource] = [_to_resource(d) for d in data or []]
        self.included: list[JSONAPIResource] = []
        self.errors: list[JSONAPIError] = list(errors or [])
        self.links: dict[str, str] = dict(links or {})
        self.parent = parent
        self.path = path
        self.meta: dict[str, Any] = dict(meta or {})
        self.collection = collection
        if total is not None:
            self.add_meta("total", total)
        if included:
            self.add_related(list(included))

    @property
    def is_collection(self) -> bool:
        return len(self.data) > 1

    def add_datum(
        self,
        id: Any = None,
        attributes: Mapping[str, Any] | None = None,
        *,
        meta: Mapping[str, Any] | None = None,
        type: str | None = None,
    ) -> JSONAPIResource:
        resource_type = type or (self.resource.path if self.resource else None)
        if resource_type is None:
            raise WireFormatError("Cannot add a datum to a document without a resource type")
        datum = JSONAPIResource(
            type=resource_type,
            id=None if id is None or id == "" else id,
            attributes=dict(attributes or {}),
            meta=dict(meta) if meta else None,
        )
        self.data.append(datum)
        return datum

    def add_error(self, status: int, title: str, detail: str | None = None) -> None:
        self.errors.append(JSONAPIError(status=status, title=title, detail=detail or None))

    def add_related(
        self,
        related: JSONAPIResource | Mapping[str, Any] | Iterable[Any] | None = None,
    ) -> None:
        """Replace the ``included`` resources; blank input is ignored.

        Raises:
            WireFormatError: If an item is not a valid resource object.
        """
        if not related:
            return
        if isinstance(related, (JSONAPIResource, Mapping)):
            related = [related]
        self.included = [_to_resource(item) for item in related]

    def add_meta(self, key: str, value: Any) -> None:
        self.meta[key] = value

    def add_parent(self, parent: Entity | None) -> None:
        self.parent = parent

    def each_datum(self) -> Iterator[tuple[str | None, dict[str, Any], dict[str, Any] | None]]:
        for datum in self.data:
            yield datum.id, datum.attributes, datum.meta

    def each_error(self) -> Iterator[tuple[int, str, str | None]]:
        for error in self.errors:
            yield error.status, error.title, error.detail

    def render(
        self,
        *,
        flat: bool = False,
        collection: bool | None = None,
        exclude_self_link: bool = False,
    ) -> dict[str, Any]:
        """Render the document as a JSON-compatible dict.

        Args:
            flat: Render only ``{id?, **attributes}`` of the first datum, with
                no envelope. Used for embedded children.
            collection: Force (or, with ``False``, suppress) collection
                rendering; defaults to the document's own setting.
            exclude_self_link: Omit ``links.self`` from a single resource.
        """
        if flat:
            datum = self.data[0] if self.data else None
            flattened: dict[str, Any] = {}
            if datum is not None:
                if datum.id:
                    flattened["id"] = datum.id
                flattened.update(datum.attributes)
            return flattened

        document: dict[str, Any] = {
            "jsonapi": {"version": self.version or get_settings().json_api_version}
        }
        if self.errors:
            document["errors"] = [error.as_json() for error in self.errors]
            return document

        as_collection = self.collection if collection is None else collection
        if self.is_collection or as_collection:
            if self.meta:
                document["meta"] = dict(self.meta)
            document["data"] = [d.as_json(include_meta=False) for d in self.data]
            if self.links:
                document["links"] = dict(self.links)
        elif self.data:
            datum = self.data[0]
            rendered = datum.as_json(include_meta=False)
            if self.resource is not None and not self.resource.entity_class.self_link:
                exclude_self_link = True
            if (datum.id or self.path) and not exclude_self_link:
                rendered["links"] = {"self": self.build_uri(id=datum.id)}
            meta = {**(datum.meta or {}), **self.meta}
            if meta:
                rendered["meta"] = meta
            document["data"] = rendered
        else:
            document["data"] = None

        if self.included:
            document["included"] = [r.as_json() for r in self.included]
        return document

    def build_uri(self, *, id: str | None = None, query: str | None = None) -> str:
        """Build a link under the configured base URI.

        Links of a document scoped to a parent are nested beneath the parent
        resource and never carry a query string.
        """
        path = ""
        if self.parent is not None:
            path += f"/{self.parent.path_for}/{self.parent.id}"
        if self.resource is not None:
            path += f"/{self.resource.path}"
        if self.path:
            path += f"/{self.path}"
        if id:
            path += f"/{id}"

        base = urlsplit(self.base_uri or get_settings().base_uri)
        return urlunsplit(
            (
                base.scheme,
                base.netloc,
                base.path.rstrip("/") + path,
                "" if self.parent is not None else query or "",
                "",
            )
        )


def _to_resource(item: JSONAPIResource | Mapping[str, Any]) -> JSONAPIResource:
    if isinstance(item, JSONAPIResource):
        return item
    try:
        return JSONAPIResource.model_validate(item)
    except ValidationError as exc:
        raise WireFormatError(f"Malformed resource object: {exc}") from exc
