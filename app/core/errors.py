"""
Error types and exception handlers
"""

import traceback
from typing import Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from slowapi.errors import RateLimitExceeded

from app.core.config import config
from app.core.logger import logger


class ErrorResponse(Exception):
    """Custom exception for application errors"""

    def __init__(self, message: str, status_code: int = 400, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class NotFoundError(ErrorResponse):
    """Target does not exist or is not visible to the caller"""

    def __init__(self, message: str = "Review not found", details: dict = None):
        super().__init__(message, status_code=404, details=details)


class ForbiddenError(ErrorResponse):
    """Caller may not perform the action on this review"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=403, details=details)


class ConflictError(ErrorResponse):
    """Write rejected by a uniqueness rule"""

    def __init__(self, message: str, code: str, details: dict = None):
        super().__init__(message, status_code=409, details={"code": code, **(details or {})})

    @property
    def code(self) -> str:
        return self.details["code"]


class DatabaseError(ErrorResponse):
    """Unexpected data store failure"""

    def __init__(self, message: str = "Database error", details: dict = None):
        super().__init__(message, status_code=503, details=details)


class ErrorResponseModel(BaseModel):
    """Pydantic model for error responses"""
    error: str
    details: Optional[dict] = None


async def error_response_handler(request: Request, exc: ErrorResponse):
    """Handler for custom ErrorResponse exceptions"""
    metadata = {
        "event": "error_response",
        "status_code": exc.status_code,
        "url": str(request.url),
        "method": request.method,
        **exc.details,
    }

    if config.environment == "development" and exc.status_code >= 500:
        metadata["traceback"] = traceback.format_exc()

    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"Error: {exc.message}", metadata=metadata)

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "details": exc.details}
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """Handler for FastAPI HTTPException"""
    logger.warning(
        f"HTTPException: {exc.detail}",
        metadata={
            "event": "http_exception",
            "status_code": exc.status_code,
            "url": str(request.url),
            "method": request.method,
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handler for request validation failures"""
    logger.warning(
        "Validation error",
        metadata={"event": "validation_error", "url": str(request.url), "errors": exc.errors()}
    )
    return JSONResponse(
        status_code=422,
        content={"error": "Validation error", "details": jsonable_errors(exc)}
    )


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Handler for slowapi rate limit rejections"""
    logger.warning(
        "Rate limit exceeded",
        metadata={
            "event": "rate_limit_exceeded",
            "url": str(request.url),
            "ip_address": request.client.host if request.client else None,
            "limit": str(exc.detail),
        }
    )
    return JSONResponse(status_code=429, content={"error": "Rate limit exceeded"})


def jsonable_errors(exc: RequestValidationError) -> list:
    """Strip non-serializable context (e.g. exception instances) from pydantic errors"""
    errors = []
    for err in exc.errors():
        err = dict(err)
        if "ctx" in err:
            err["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        errors.append(err)
    return errors
