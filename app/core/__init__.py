"""
Core module initialization
"""

from .config import config
from .errors import (
    ErrorResponse,
    ErrorResponseModel,
    NotFoundError,
    ForbiddenError,
    ConflictError,
    DatabaseError,
)
from .logger import logger

__all__ = [
    "config",
    "ErrorResponse",
    "ErrorResponseModel",
    "NotFoundError",
    "ForbiddenError",
    "ConflictError",
    "DatabaseError",
    "logger",
]
