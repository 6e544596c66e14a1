"""
Repositories module initialization
"""

from .review import ReviewRepository, DuplicateReviewError
from .review_like import ReviewLikeRepository
from .product import ProductRatingRepository

__all__ = [
    "ReviewRepository",
    "DuplicateReviewError",
    "ReviewLikeRepository",
    "ProductRatingRepository",
]
