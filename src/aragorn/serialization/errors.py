"""Error taxonomy for the serialization boundary.

Every error carries the HTTP status and title it is reported with when the
transport layer turns it into a single-error document.
"""

from __future__ import annotations


class SerializationError(ValueError):
    """Base class for all errors raised while converting to or from the wire."""

    status: int = 400
    title: str = "Bad Request"


class SchemaError(SerializationError):
    """Malformed or inconsistent field declarations.

    Raised while entity types are declared during bootstrap; never recovered.
    """

    status = 500
    title = "Invalid Schema"


class InboundFormatError(SerializationError):
    """A client payload could not be converted into entity attributes."""

    status = 400
    title = "Bad Request"


class WireFormatError(SerializationError):
    """An ``included`` or related resource structure is malformed."""

    status = 400
    title = "Malformed Document"
