from aragorn.serialization.codec import AttributeCodec, format_timestamp, parse_timestamp
from aragorn.serialization.document import (
    JSONAPIError,
    JSONAPIRequest,
    JSONAPIRequestData,
    JSONAPIResource,
    WireDocument,
)
from aragorn.serialization.entity import Entity
from aragorn.serialization.envelope import EnvelopeBuilder, Resolver
from aragorn.serialization.errors import (
    InboundFormatError,
    SchemaError,
    SerializationError,
    WireFormatError,
)
from aragorn.serialization.fields import EntityTypeSchema, FieldSpec, FieldType
from aragorn.serialization.pagination import (
    PageRequest,
    PaginationLinks,
    PaginationMeta,
    apply_pagination,
)
from aragorn.serialization.registry import EntityType, SchemaRegistry

__all__ = [
    "AttributeCodec",
    "format_timestamp",
    "parse_timestamp",
    "JSONAPIError",
    "JSONAPIRequest",
    "JSONAPIRequestData",
    "JSONAPIResource",
    "WireDocument",
    "Entity",
    "EnvelopeBuilder",
    "Resolver",
    "InboundFormatError",
    "SchemaError",
    "SerializationError",
    "WireFormatError",
    "EntityTypeSchema",
    "FieldSpec",
    "FieldType",
    "PageRequest",
    "PaginationLinks",
    "PaginationMeta",
    "apply_pagination",
    "EntityType",
    "SchemaRegistry",
]
