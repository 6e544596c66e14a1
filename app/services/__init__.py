"""
Services module initialization
"""

from .rating import ProductRatingService
from .review import ReviewService
from .recompute import RatingRecomputeJob, LikeCountRepairJob, RecomputeReport

__all__ = [
    "ProductRatingService",
    "ReviewService",
    "RatingRecomputeJob",
    "LikeCountRepairJob",
    "RecomputeReport",
]
