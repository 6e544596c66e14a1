"""
Dependencies module initialization
"""

from .auth import get_current_user, get_current_user_optional, require_admin
from .review import get_review_service, get_product_rating_service, get_rating_recompute_job

__all__ = [
    "get_current_user",
    "get_current_user_optional",
    "require_admin",
    "get_review_service",
    "get_product_rating_service",
    "get_rating_recompute_job",
]
