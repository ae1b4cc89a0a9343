# app/core/errors.py
"""
Domain error taxonomy and the FastAPI handlers that render it.

Services and repositories raise these plain exceptions (no HTTP types),
`register_exception_handlers` maps them onto the JSON error envelope:

    {"success": false, "error": "<kind>", "message": "...", "errors": [...]}
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Base class for errors that carry their own HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind: str = "ServerError"

    def __init__(self, message: str, errors: list[dict[str, str]] | None = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class ValidationError(CatalogError):
    """Malformed or missing input. `errors` lists every violated field."""

    status_code = status.HTTP_400_BAD_REQUEST
    kind = "ValidationError"

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, [{"field": field, "message": message}])


class UploadRejected(CatalogError):
    """Request-level rejection of the attached files (type, count, size)."""

    status_code = 422
    kind = "UploadRejected"


class NotFound(CatalogError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "NotFound"


class Conflict(CatalogError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "Conflict"


class InvalidCredentials(CatalogError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "InvalidCredentials"


class Unauthorized(CatalogError):
    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "Unauthorized"


class UpstreamMediaError(CatalogError):
    """Media store upload/delete failure."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind = "UpstreamMediaError"


def _error_body(kind: str, message: str, errors: list[dict[str, str]] | None = None) -> dict:
    return {
        "success": False,
        "error": kind,
        "message": message,
        "errors": errors or [],
    }


async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.kind, exc.message, exc.errors),
        headers=headers,
    )


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Render FastAPI/pydantic request validation failures as our 400
    ValidationError, one entry per offending field.
    """
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(loc) or "body", "message": err.get("msg", "Invalid value")})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("ValidationError", "Invalid request", errors),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("HTTPError", str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = str(exc) if get_settings().is_development else "Server Error"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("ServerError", message),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CatalogError, catalog_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
