"""
Error types and exception handlers shared by every router
"""

import uuid
import traceback
import logging
from typing import Optional, Dict, Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from herbstore.config import settings
from herbstore.database import get_db, utcnow
from herbstore.services.activity_logger import ActivityLogger
from herbstore.utils.request_info import client_ip

logger = logging.getLogger(__name__)

class ApiError(HTTPException):
    """HTTP error with a client-facing message"""

    def __init__(self, status_code: int, message: str, headers: Optional[Dict[str, str]] = None):
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.message = message

    @classmethod
    def bad_request(cls, message: str = "Bad request"):
        return cls(status.HTTP_400_BAD_REQUEST, message)

    @classmethod
    def unauthorized(cls, message: str = "Unauthorized"):
        return cls(status.HTTP_401_UNAUTHORIZED, message, headers={"WWW-Authenticate": "Bearer"})

    @classmethod
    def forbidden(cls, message: str = "Forbidden"):
        return cls(status.HTTP_403_FORBIDDEN, message)

    @classmethod
    def not_found(cls, message: str = "Resource not found"):
        return cls(status.HTTP_404_NOT_FOUND, message)

    @classmethod
    def conflict(cls, message: str = "Resource already exists"):
        return cls(status.HTTP_409_CONFLICT, message)

    @classmethod
    def too_many_requests(cls, message: str = "Too many requests"):
        return cls(status.HTTP_429_TOO_MANY_REQUESTS, message)

    @classmethod
    def internal(cls, message: str = "Internal server error"):
        return cls(status.HTTP_500_INTERNAL_SERVER_ERROR, message)

class DatabaseError(Exception):
    """Custom exception for database-related errors"""
    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(self.message)


def _error_body(message: str, error: Optional[Exception] = None, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message}
    body.update(extra)
    if error is not None and settings.is_development:
        body["error_type"] = type(error).__name__
        body["stack"] = "".join(traceback.format_exception(type(error), error, error.__traceback__))
    return body


def integrity_error_message(error: IntegrityError) -> tuple[int, str]:
    """Map a constraint violation to a status code and message"""
    text = str(getattr(error, "orig", error)).lower()
    sqlstate = getattr(getattr(error, "orig", None), "sqlstate", None)

    if sqlstate == "23505" or "unique" in text or "duplicate key" in text:
        return status.HTTP_409_CONFLICT, "Duplicate entry found"
    if sqlstate == "23503" or "foreign key" in text:
        return status.HTTP_400_BAD_REQUEST, "Referenced resource does not exist"
    if sqlstate == "23502" or "not null" in text:
        return status.HTTP_400_BAD_REQUEST, "Required field is missing"
    return status.HTTP_400_BAD_REQUEST, "Database constraint violation"


def format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()))
        msg = err.get("msg", "is invalid")
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        parts.append(f"{location} {msg}".strip())
    return f"Validation failed: {', '.join(parts)}"


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(message),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    message = format_validation_errors(exc)
    logger.info(f"Rejected {request.method} {request.url.path}: {message}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_body(message))


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit hit by {client_ip(request)} on {request.method} {request.url.path}: {exc.detail}")
    response = JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=_error_body(f"Too many requests: {exc.detail}. Please try again later."),
    )
    # Retry-After and X-RateLimit-* headers, when the limiter tracked this request
    limiter = getattr(request.app.state, "limiter", None)
    current_limit = getattr(request.state, "view_rate_limit", None)
    if limiter is not None and current_limit is not None:
        response = limiter._inject_headers(response, current_limit)
    return response


async def integrity_exception_handler(request: Request, exc: IntegrityError):
    status_code, message = integrity_error_message(exc)
    logger.warning(f"Integrity error in {request.method} {request.url.path}: {exc.orig}")
    return JSONResponse(status_code=status_code, content=_error_body(message, exc))


async def database_exception_handler(request: Request, exc: DatabaseError):
    error_id = str(uuid.uuid4())
    logger.error(
        f"Database error {error_id} in {request.method} {request.url.path}: {exc.message}",
        exc_info=exc.original_error or exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("A database error occurred. Please try again later.", exc, error_id=error_id),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    """Last-resort handler: log with an error id and keep internals out of the response"""
    error_id = str(uuid.uuid4())

    logger.error(
        f"Unhandled exception {error_id}: {type(exc).__name__} in {request.method} {request.url.path}",
        extra={
            "error_id": error_id,
            "endpoint": str(request.url.path),
            "method": request.method,
            "error_type": type(exc).__name__,
            "error_message": str(exc),
        },
        exc_info=exc,
    )

    # Audit the failure, but never let the audit itself fail the response
    db_dependency = request.app.dependency_overrides.get(get_db, get_db)
    db_gen = db_dependency()
    try:
        db = next(db_gen)
        await ActivityLogger(db).record(request, 500, error_message=f"[{error_id}] {str(exc)}")
    except Exception as log_error:
        logger.error(f"Failed to log error activity: {log_error}")
    finally:
        db_gen.close()

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            "An unexpected error occurred. Please try again later.",
            exc,
            error_id=error_id,
            timestamp=utcnow().isoformat(),
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(IntegrityError, integrity_exception_handler)
    app.add_exception_handler(DatabaseError, database_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
