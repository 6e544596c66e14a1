"""
Review API endpoints
Thin transport layer over ReviewService
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import config
from app.core.errors import ErrorResponseModel
from app.core.logger import logger
from app.dependencies.auth import get_current_user, get_current_user_optional, require_admin
from app.dependencies.review import get_product_rating_service, get_rating_recompute_job, get_review_service
from app.models.rating import RatingSnapshot
from app.models.user import User
from app.schemas.review import (
    ReviewCreate,
    ReviewResponse,
    ReviewSortBy,
    ReviewsPaginatedResponse,
    ReviewsSummary,
    ReviewUpdate,
)
from app.services.rating import ProductRatingService
from app.services.recompute import RatingRecomputeJob
from app.services.review import ReviewService

limiter = Limiter(key_func=get_remote_address)

router = APIRouter()


@router.post(
    "",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        401: {"model": ErrorResponseModel},
        409: {"model": ErrorResponseModel},
        429: {"description": "Rate limit exceeded"},
    },
)
@limiter.limit(config.review_create_rate_limit)
async def create_review(
    request: Request,
    review: ReviewCreate,
    service: ReviewService = Depends(get_review_service),
    user: User = Depends(get_current_user),
):
    """
    Create a review. One active review per user per product; a duplicate
    returns 409 with the existing review id so the client can switch to editing.
    """
    return await service.create(user.id, user.display_name, review)


@router.get(
    "",
    response_model=ReviewsPaginatedResponse,
)
async def list_reviews(
    product_id: str = Query(..., alias="productId", description="Product to list reviews for"),
    page: int = Query(1, description="Page number, starting at 1"),
    page_size: int = Query(config.review_page_size_default, alias="pageSize",
                           description=f"Items per page (max {config.review_page_size_max})"),
    sort_by: ReviewSortBy = Query(ReviewSortBy.NEWEST, alias="sortBy"),
    rating: Optional[int] = Query(None, ge=1, le=5, description="Only reviews with this rating"),
    service: ReviewService = Depends(get_review_service),
    user: Optional[User] = Depends(get_current_user_optional),
):
    """
    Published reviews for a product with pagination, sorting, an optional
    rating filter and a live summary (average, count, distribution).
    """
    return await service.find_by_product_id_with_pagination(
        product_id,
        page=page,
        page_size=page_size,
        user_id=user.id if user else None,
        sort_by=sort_by,
        rating_filter=rating,
    )


@router.get(
    "/product/{product_id}/summary",
    response_model=ReviewsSummary,
)
async def get_product_summary(
    product_id: str,
    service: ReviewService = Depends(get_review_service),
):
    """Live rating summary computed from published reviews"""
    return await service.get_reviews_summary(product_id)


@router.get(
    "/product/{product_id}/rating",
    response_model=RatingSnapshot,
    responses={404: {"model": ErrorResponseModel}},
)
async def get_product_rating(
    product_id: str,
    ratings: ProductRatingService = Depends(get_product_rating_service),
):
    """Denormalized rating snapshot stored on the product (catalog fast path)"""
    return await ratings.get_rating_snapshot(product_id)


@router.post(
    "/product/{product_id}/rating/recompute",
    response_model=RatingSnapshot,
    responses={
        401: {"model": ErrorResponseModel},
        403: {"model": ErrorResponseModel},
        404: {"model": ErrorResponseModel},
    },
)
async def recompute_product_rating(
    product_id: str,
    admin: User = Depends(require_admin),
    job: RatingRecomputeJob = Depends(get_rating_recompute_job),
):
    """Admin only: rebuild the product's rating snapshot from its published reviews"""
    drifted = await job.recompute_product(product_id)
    logger.info(
        f"Rating snapshot recomputed for product {product_id}",
        user_id=admin.id,
        metadata={"event": "rating_recompute_requested", "product_id": product_id, "drifted": drifted}
    )
    return await job.ratings.get_rating_snapshot(product_id)


@router.get(
    "/user/product/{product_id}",
    response_model=Optional[ReviewResponse],
    responses={401: {"model": ErrorResponseModel}},
)
async def get_user_review(
    product_id: str,
    service: ReviewService = Depends(get_review_service),
    user: User = Depends(get_current_user),
):
    """The caller's own review for a product, or null"""
    return await service.get_user_review_for_product(product_id, user.id)


@router.get(
    "/{review_id}",
    response_model=ReviewResponse,
    responses={404: {"model": ErrorResponseModel}},
)
async def get_review(
    review_id: str,
    service: ReviewService = Depends(get_review_service),
    user: Optional[User] = Depends(get_current_user_optional),
):
    """A single review; ``isLiked`` is false for anonymous callers"""
    return await service.get_public_review(review_id, user.id if user else None)


@router.patch(
    "/{review_id}",
    response_model=ReviewResponse,
    responses={
        401: {"model": ErrorResponseModel},
        403: {"model": ErrorResponseModel},
        404: {"model": ErrorResponseModel},
    },
)
async def update_review(
    review_id: str,
    review: ReviewUpdate,
    service: ReviewService = Depends(get_review_service),
    user: User = Depends(get_current_user),
):
    """Edit rating and/or text of your own published review"""
    return await service.update(review_id, user.id, review)


@router.delete(
    "/{review_id}",
    response_model=ReviewResponse,
    responses={
        401: {"model": ErrorResponseModel},
        403: {"model": ErrorResponseModel},
        404: {"model": ErrorResponseModel},
    },
)
async def delete_review(
    review_id: str,
    service: ReviewService = Depends(get_review_service),
    user: User = Depends(get_current_user),
):
    """Soft delete a review. Only the author or an admin can delete."""
    return await service.remove(review_id, user.id, is_admin=user.is_admin(config.admin_role))


@router.post(
    "/{review_id}/like",
    response_model=ReviewResponse,
    responses={
        401: {"model": ErrorResponseModel},
        403: {"model": ErrorResponseModel},
        404: {"model": ErrorResponseModel},
        429: {"description": "Rate limit exceeded"},
    },
)
@limiter.limit(config.review_like_rate_limit)
async def toggle_like(
    request: Request,
    review_id: str,
    service: ReviewService = Depends(get_review_service),
    user: User = Depends(get_current_user),
):
    """Like the review, or remove the like if already liked"""
    return await service.toggle_like(review_id, user.id)
