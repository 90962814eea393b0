"""Exception handlers turning failures into single-error JSON:API documents."""

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from aragorn.api.responses import JSONAPIResponse
from aragorn.serialization.document import WireDocument
from aragorn.serialization.envelope import EnvelopeBuilder
from aragorn.serialization.errors import SerializationError
from aragorn.serialization.registry import SchemaRegistry

logger = logging.getLogger(__name__)


def log_errors(name: str, document: WireDocument) -> None:
    """Log each error of *document*: warnings below 500, errors otherwise."""
    for status, title, detail in document.each_error():
        level = logging.WARNING if status < 500 else logging.ERROR
        logger.log(level, "%s Exception: %s %s %s", name, status, title, detail or "")


def _status_title(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "HTTP Error"


def _builder(request: Request) -> EnvelopeBuilder:
    builder = getattr(request.app.state, "envelope_builder", None)
    if builder is None:
        # Failures before startup completes still render with the default settings
        builder = EnvelopeBuilder(SchemaRegistry())
    return builder


def _respond(request: Request, name: str, document: WireDocument, status_code: int) -> JSONAPIResponse:
    log_errors(name, document)
    return JSONAPIResponse(
        status_code=status_code,
        content=_builder(request).serialize(document),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install the handlers that render every failure as an error document."""

    @app.exception_handler(SerializationError)
    async def serialization_error_handler(request: Request, exc: SerializationError) -> JSONAPIResponse:
        document = _builder(request).from_exception(exc)
        return _respond(request, type(exc).__name__, document, exc.status)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONAPIResponse:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
            for error in exc.errors()
        )
        document = _builder(request).as_error(400, "Bad Request", details or None)
        return _respond(request, "RequestValidationError", document, 400)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONAPIResponse:
        detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        document = _builder(request).as_error(
            exc.status_code, _status_title(exc.status_code), detail
        )
        return _respond(request, "HTTPException", document, exc.status_code)
