"""
Exception taxonomy for the Vehicle Docs API.

Services raise these exceptions; the handlers registered by
``register_exception_handlers`` translate them into JSON responses of
the form ``{"error": "<message>"}``.  Upstream failures carry an
internal detail that is logged but never sent to the client.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


logger = logging.getLogger(__name__)


class VehicleDocsError(Exception):
    """Base exception class for the application."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message = "Internal server error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class UnauthorizedError(VehicleDocsError):
    """Missing, invalid or anonymous bearer token."""

    status_code = status.HTTP_401_UNAUTHORIZED
    public_message = "Unauthorized"


class NotFoundError(VehicleDocsError):
    """Record absent or not owned by the caller."""

    status_code = status.HTTP_404_NOT_FOUND
    public_message = "Not found"


class BadRequestError(VehicleDocsError):
    """Missing multipart parts, malformed JSON or rejected input."""

    status_code = status.HTTP_400_BAD_REQUEST
    public_message = "Bad request"


class UpstreamError(VehicleDocsError):
    """A call to the identity provider or a storage backend failed.

    ``message`` is the user-safe text returned to the client; ``detail``
    holds the provider's own explanation and is only logged.
    """

    def __init__(self, message: str = "", detail: str = "") -> None:
        super().__init__(message)
        self.detail = detail


class StorageError(UpstreamError):
    public_message = "Storage operation failed"


class BlobConflictError(StorageError):
    """Upload refused because an object already exists at the path."""

    public_message = "File already exists"


class IdentityError(UpstreamError):
    public_message = "Identity provider error"


def _error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the error handlers for the taxonomy above to ``app``."""

    @app.exception_handler(UnauthorizedError)
    async def unauthorized(request: Request, exc: UnauthorizedError) -> JSONResponse:
        logger.info("Unauthorized request to %s: %s", request.url.path, exc.message)
        return _error_response(exc.status_code, exc.message, headers={"WWW-Authenticate": "Bearer"})

    @app.exception_handler(UpstreamError)
    async def upstream_failure(request: Request, exc: UpstreamError) -> JSONResponse:
        logger.error(
            "Upstream failure on %s %s: %s (%s)",
            request.method,
            request.url.path,
            exc.message,
            exc.detail,
            exc_info=exc,
        )
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(VehicleDocsError)
    async def domain_error(request: Request, exc: VehicleDocsError) -> JSONResponse:
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("Rejected malformed request to %s", request.url.path)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "Invalid request body",
                "details": [{"loc": list(err.get("loc", ())), "msg": err.get("msg")} for err in exc.errors()],
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
