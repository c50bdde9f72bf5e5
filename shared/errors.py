"""Error taxonomy and global FastAPI exception handlers.

Business outcomes (validation, not found, conflict) map straight to client
status codes. Dependency failures carry a client-safe message only; the
underlying error is logged with its type name and never returned.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger()


class ServiceError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class StoreUnavailableError(ServiceError):
    """The backing store could not be reached or timed out."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Data store unavailable"

    def __init__(self, message: str | None = None, *, error_type: str = "") -> None:
        super().__init__(message)
        self.error_type = error_type


class UpstreamUnreachableError(ServiceError):
    """A downstream service could not be reached, timed out, or misbehaved."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Failed to reach dependency"

    def __init__(self, message: str | None = None, *, error_type: str = "") -> None:
        super().__init__(message)
        self.error_type = error_type


def error_body(message: str) -> dict[str, str]:
    return {"error": message}


def add_error_handlers(app: FastAPI) -> None:
    """Add global error handlers to the FastAPI app."""

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        if exc.status_code >= 500:
            logger.error(
                "request_failed",
                path=request.url.path,
                status=exc.status_code,
                error_type=getattr(exc, "error_type", "") or type(exc).__name__,
            )
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body("Invalid request body"),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            message = "Not found"
        elif exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            message = "Method not allowed"
        else:
            message = str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.error(
            "unhandled_error",
            path=request.url.path,
            error_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body("Internal server error"),
        )
