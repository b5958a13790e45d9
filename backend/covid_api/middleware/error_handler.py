"""
Global error handlers for the Kosovo COVID-19 API.

Translates exceptions into the JSON error envelope
{"success": false, "error": ..., "message": ..., "details"?: [...]}.
Storage details are only exposed outside production.
"""
import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config import settings

logger = structlog.get_logger("covid.api.errors")


class DomainError(Exception):
    """Base class for domain-level errors."""
    status_code: int = 400
    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, details: list | dict | None = None):
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationFailedError(DomainError):
    """Write rejected by a domain validation rule."""
    status_code = 400
    error_code = "VALIDATION_FAILED"


class NotFoundError(DomainError):
    """Resource not found."""
    status_code = 404
    error_code = "NOT_FOUND"


class ConflictError(DomainError):
    """Resource already exists."""
    status_code = 409
    error_code = "CONFLICT"


class StorageError(DomainError):
    """The query gateway reported a failure."""
    status_code = 500
    error_code = "DATABASE_ERROR"


def error_body(error: str, message: str | None = None, details=None) -> dict:
    body = {"success": False, "error": error}
    if message is not None:
        body["message"] = message
    if details:
        body["details"] = details
    return body


def _validation_details(exc: RequestValidationError) -> list[dict]:
    details = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        details.append({
            "field": ".".join(loc[1:]) if len(loc) > 1 else ".".join(loc),
            "location": loc[0] if loc else None,
            "message": err.get("msg"),
        })
    return details


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        logger.error("storage_error", error=exc.message, path=request.url.path)
        message = "Database operation failed" if settings.is_production() else exc.message
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.error_code, message),
        )

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.error_code, exc.message, exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = _validation_details(exc)
        logger.warning("validation_error", path=request.url.path, errors=len(details))
        return JSONResponse(
            status_code=400,
            content=error_body("VALIDATION_FAILED", "Validation failed", details),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404 and exc.detail == "Not Found":
            message = f"Route {request.method} {request.url.path} not found"
        else:
            message = str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body("HTTP_ERROR" if exc.status_code != 404 else "NOT_FOUND", message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "unhandled_error",
            error_type=type(exc).__name__,
            error=str(exc),
            path=request.url.path,
        )
        message = "An unexpected error occurred." if settings.is_production() else str(exc)
        return JSONResponse(
            status_code=500,
            content=error_body("INTERNAL_ERROR", message),
        )
