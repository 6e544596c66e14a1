"""
API schemas module initialization
"""

from .review import (
    ReviewCreate,
    ReviewUpdate,
    ReviewResponse,
    ReviewSortBy,
    ReviewsSummary,
    ReviewsPaginatedResponse,
)

__all__ = [
    "ReviewCreate",
    "ReviewUpdate",
    "ReviewResponse",
    "ReviewSortBy",
    "ReviewsSummary",
    "ReviewsPaginatedResponse",
]
