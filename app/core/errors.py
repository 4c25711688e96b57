"""Service-level exception taxonomy.

Services raise these; ``register_exception_handlers`` maps them onto HTTP
responses shaped ``{"error", "message", "status", "details"?}``.
"""
import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    status_code = 400
    title = "Bad Request"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class AuthenticationError(ServiceError):
    """Unknown API key or cross-tenant template use."""
    status_code = 401
    title = "Unauthorized"


class NotFoundError(ServiceError):
    status_code = 404
    title = "Resource Not Found"


class ValidationError(ServiceError):
    """Bad tags, malformed or duplicate recipients, empty recipient list."""
    status_code = 400
    title = "Validation Error"


class StateError(ServiceError):
    """Inactive or deleted tenant/template, retry on a non-FAILED record."""
    status_code = 400
    title = "Invalid Operation"


class DuplicateError(ServiceError):
    status_code = 409
    title = "Duplicate Resource"


def error_body(exc: ServiceError) -> dict:
    body = {"error": exc.title, "message": exc.message, "status": exc.status_code}
    if exc.details:
        body["details"] = exc.details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        if isinstance(exc, AuthenticationError):
            logger.error(f"Security violation on {request.method} {request.url.path}: {exc.message}")
        else:
            logger.warning(f"{exc.title} on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=error_body(exc))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.critical(f"Unhandled exception for request {request.method} {request.url.path}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal Server Error", "message": "An internal server error occurred.", "status": 500},
        )
