"""
Models module initialization
"""

from .review import Review, ReviewStatus
from .rating import RatingDistribution, RatingSnapshot, build_rating_snapshot, round_average
from .user import User

__all__ = [
    "Review",
    "ReviewStatus",
    "RatingDistribution",
    "RatingSnapshot",
    "build_rating_snapshot",
    "round_average",
    "User",
]
