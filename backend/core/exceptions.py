"""
Custom exception handlers for consistent API error responses.

Every error leaves the API as ``{"error", "message", "path"}`` with an
optional ``details`` payload, whether it was raised as one of the errors
below, as a plain HTTPException, or as a standard Python exception.
"""

from http import HTTPStatus
from typing import Any, Dict, Optional
import logging

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def _status_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


class APIError(HTTPException):
    """Base API error with consistent structure"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error: Optional[str] = None,
        details: Optional[Any] = None,
        headers: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error = error or _status_phrase(status_code)
        self.details = details


class ValidationError(APIError):
    """Validation error"""

    def __init__(
        self,
        detail: str = "Validation failed",
        error: str = "Validation error",
        details: Optional[Any] = None,
    ):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error=error,
            details=details,
        )


class AuthenticationError(APIError):
    """Authentication error"""

    def __init__(self, detail: str = "Authentication failed", error: str = "Unauthorized"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error=error,
            headers={"WWW-Authenticate": "Bearer"},
        )


class PermissionDeniedError(APIError):
    """Permission denied error"""

    def __init__(self, detail: str = "Permission denied", error: str = "Forbidden"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN, detail=detail, error=error
        )


class NotFoundError(APIError):
    """Resource not found error"""

    def __init__(
        self,
        resource: str = "Resource",
        identifier: Any = None,
        details: Optional[Any] = None,
    ):
        if identifier is None:
            detail = f"{resource} not found"
        else:
            detail = f"{resource} with identifier {identifier} not found"
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error=f"{resource} not found",
            details=details,
        )


class ConflictError(APIError):
    """Resource conflict error"""

    def __init__(self, detail: str = "Resource conflict", details: Optional[Any] = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error="Conflict",
            details=details,
        )


def error_body(
    request: Request, error: str, message: str, details: Optional[Any] = None
) -> Dict[str, Any]:
    body = {"error": error, "message": message, "path": str(request.url.path)}
    if details is not None:
        body["details"] = details
    return body


async def handle_api_error(request: Request, exc: APIError) -> JSONResponse:
    """Handle custom API errors"""
    if exc.status_code >= 500:
        logger.error(f"APIError at {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.error, str(exc.detail), exc.details),
        headers=exc.headers,
    )


async def handle_http_exception(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Reshape framework HTTP errors (404 routes, 405, plain HTTPException)"""
    details = None
    if isinstance(exc.detail, dict):
        message = str(exc.detail.get("message", _status_phrase(exc.status_code)))
        details = exc.detail.get("details")
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, _status_phrase(exc.status_code), message, details),
        headers=getattr(exc, "headers", None),
    )


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert request body/query validation failures to 400"""
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]
    logger.warning(f"Request validation failed at {request.url.path}: {errors}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(request, "Validation error", "Request validation failed", errors),
    )


async def handle_integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
    """Convert database constraint violations to 409"""
    logger.warning(f"IntegrityError at {request.url.path}: {exc.orig}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=error_body(
            request,
            "Conflict",
            "Resource already exists or violates a database constraint",
        ),
    )


async def handle_value_error(request: Request, exc: ValueError) -> JSONResponse:
    """Convert ValueError to consistent API response"""
    logger.warning(f"ValueError at {request.url.path}: {str(exc)}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(request, "Bad Request", str(exc)),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error at {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(request, "Internal server error", "An unexpected error occurred"),
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app"""
    app.add_exception_handler(APIError, handle_api_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(IntegrityError, handle_integrity_error)
    app.add_exception_handler(ValueError, handle_value_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
