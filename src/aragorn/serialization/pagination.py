"""Offset-based pagination for collection documents.

Derives the effective page from request parameters and builds the
``self``/``first``/``prev``/``next``/``last`` links, preserving every other
query parameter of the request.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from aragorn.config import Settings, get_settings
from aragorn.serialization.codec import format_timestamp
from aragorn.serialization.errors import InboundFormatError

if TYPE_CHECKING:
    from aragorn.serialization.document import WireDocument

# Parameters consumed by pagination and never echoed in links
_STRIPPED_PARAMS = frozenset({"total"})


class PageRequest(BaseModel):
    """Paging parameters of a collection request; other parameters pass through."""

    model_config = ConfigDict(extra="allow")

    limit: int | None = None
    offset: int | None = None
    total: int | None = None


class PaginationMeta(BaseModel):
    """Effective page of a collection document."""

    limit: int
    offset: int
    total: int


class PaginationLinks(BaseModel):
    """Pagination links for collection documents."""

    model_config = ConfigDict(populate_by_name=True)

    self_: str = Field(alias="self")
    first: str | None = None
    prev: str | None = None
    next: str | None = None
    last: str | None = None


def compute_page(
    params: Mapping[str, Any], settings: Settings | None = None
) -> PaginationMeta:
    """Clamp the requested page to the configured bounds.

    Raises:
        InboundFormatError: If ``limit``, ``offset`` or ``total`` is not an integer.
    """
    settings = settings or get_settings()
    try:
        request = PageRequest.model_validate(dict(params))
    except ValidationError as exc:
        raise InboundFormatError(f"Invalid pagination parameters: {exc}") from exc

    limit = request.limit if request.limit and request.limit > 0 else settings.default_page_size
    return PaginationMeta(
        limit=min(limit, settings.maximum_page_size),
        offset=max(request.offset or 0, 0),
        total=max(request.total or 0, 0),
    )


def to_query(params: Mapping[str, Any]) -> str:
    """Encode *params* as a query string with keys in sorted order."""
    pairs: list[tuple[str, Any]] = []
    for key in sorted(params):
        value = params[key]
        if value is None:
            continue
        values = value if isinstance(value, (list, tuple)) else [value]
        pairs.extend((key, _query_value(v)) for v in values)
    return urlencode(pairs)


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return format_timestamp(value)
    return str(value)


def apply_pagination(
    document: WireDocument,
    params: Mapping[str, Any],
    settings: Settings | None = None,
) -> PaginationLinks:
    """Store the total in the document meta and set its pagination links.

    A document scoped to a parent only gets a ``self`` link.
    """
    page = compute_page(params, settings)
    passthrough = {k: v for k, v in params.items() if k not in _STRIPPED_PARAMS}

    def link(offset: int) -> str:
        return document.build_uri(query=to_query({**passthrough, "offset": offset}))

    document.add_meta("total", page.total)

    links = PaginationLinks(self_=link(page.offset))
    if document.parent is None:
        links.first = link(0)
        if page.offset > 0:
            links.prev = link(max(page.offset - page.limit, 0))
        if page.offset + page.limit < page.total:
            links.next = link(page.offset + page.limit)
        links.last = link(max(page.total - page.limit, 0))

    document.links = links.model_dump(by_alias=True, exclude_none=True)
    return links
