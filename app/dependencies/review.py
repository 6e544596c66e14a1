"""
Dependency injection for review services and repositories
"""

from fastapi import Depends

from app.db.mongodb import get_product_collection, get_review_collection, get_review_like_collection
from app.repositories.product import ProductRatingRepository
from app.repositories.review import ReviewRepository
from app.repositories.review_like import ReviewLikeRepository
from app.services.rating import ProductRatingService
from app.services.recompute import RatingRecomputeJob
from app.services.review import ReviewService


async def get_review_repository() -> ReviewRepository:
    return ReviewRepository(await get_review_collection())


async def get_review_like_repository() -> ReviewLikeRepository:
    return ReviewLikeRepository(await get_review_like_collection())


async def get_product_rating_repository() -> ProductRatingRepository:
    return ProductRatingRepository(await get_product_collection())


async def get_product_rating_service(
    repository: ProductRatingRepository = Depends(get_product_rating_repository)
) -> ProductRatingService:
    return ProductRatingService(repository)


async def get_review_service(
    reviews: ReviewRepository = Depends(get_review_repository),
    likes: ReviewLikeRepository = Depends(get_review_like_repository),
    ratings: ProductRatingService = Depends(get_product_rating_service),
) -> ReviewService:
    """Get review service instance"""
    return ReviewService(reviews, likes, ratings)


async def get_rating_recompute_job(
    products: ProductRatingRepository = Depends(get_product_rating_repository),
    reviews: ReviewRepository = Depends(get_review_repository),
    ratings: ProductRatingService = Depends(get_product_rating_service),
) -> RatingRecomputeJob:
    return RatingRecomputeJob(products, reviews, ratings)
