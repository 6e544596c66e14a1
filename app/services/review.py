"""
Review service containing the review lifecycle business logic.

Writes go review store -> like store -> rating aggregator. Uniqueness is
enforced by the store (unique indexes) and reacted to here; counters only move
through atomic increments; a review write and its rating delta are separate
writes with no rollback coupling.
"""

import asyncio
from typing import Dict, List, Optional

from pymongo import ASCENDING, DESCENDING

from app.core.config import config
from app.core.errors import ConflictError, ForbiddenError, NotFoundError
from app.core.logger import logger
from app.models.rating import build_rating_snapshot
from app.models.review import Review, ReviewStatus
from app.repositories.review import DuplicateReviewError, ReviewRepository
from app.repositories.review_like import ReviewLikeRepository
from app.schemas.review import (
    ReviewCreate,
    ReviewResponse,
    ReviewSortBy,
    ReviewsPaginatedResponse,
    ReviewsSummary,
    ReviewUpdate,
)
from app.services.rating import ProductRatingService

REVIEW_ALREADY_EXISTS = "REVIEW_ALREADY_EXISTS"

EDIT_FORBIDDEN_MESSAGES = {
    ReviewStatus.DELETED: "Cannot edit a deleted review",
    ReviewStatus.HIDDEN: "Cannot edit a hidden review. Contact an administrator.",
}

# createdAt (newest first) breaks ties on the primary key; _id makes the order total
SORT_OPTIONS: Dict[ReviewSortBy, list] = {
    ReviewSortBy.NEWEST: [("createdAt", DESCENDING), ("_id", DESCENDING)],
    ReviewSortBy.OLDEST: [("createdAt", ASCENDING), ("_id", ASCENDING)],
    ReviewSortBy.RATING_DESC: [("rating", DESCENDING), ("createdAt", DESCENDING), ("_id", DESCENDING)],
    ReviewSortBy.RATING_ASC: [("rating", ASCENDING), ("createdAt", DESCENDING), ("_id", DESCENDING)],
    ReviewSortBy.MOST_LIKED: [("likesCount", DESCENDING), ("createdAt", DESCENDING), ("_id", DESCENDING)],
}


def get_sort_options(sort_by: ReviewSortBy) -> list:
    return SORT_OPTIONS.get(sort_by, SORT_OPTIONS[ReviewSortBy.NEWEST])


class ReviewService:
    """Service layer for review business logic"""

    def __init__(
        self,
        reviews: ReviewRepository,
        likes: ReviewLikeRepository,
        ratings: ProductRatingService,
    ):
        self.reviews = reviews
        self.likes = likes
        self.ratings = ratings

    async def create(self, user_id: str, user_name: str, data: ReviewCreate) -> ReviewResponse:
        """
        Create a published review. A second active review for the same
        (product, user) is rejected by the store and reported as a conflict
        carrying the existing review id.
        """
        review = Review(
            product_id=data.product_id,
            user_id=user_id,
            user_name=user_name,
            rating=data.rating,
            text=data.text,
            status=ReviewStatus.PUBLISHED,
            likes_count=0,
        )

        try:
            saved = await self.reviews.insert(review)
        except DuplicateReviewError as e:
            logger.info(
                f"Duplicate review rejected for product {data.product_id}",
                user_id=user_id,
                metadata={
                    "event": "review_conflict",
                    "product_id": data.product_id,
                    "existing_review_id": e.existing_review_id,
                }
            )
            raise ConflictError(
                "You have already reviewed this product. You can edit your existing review.",
                code=REVIEW_ALREADY_EXISTS,
                details={"existingReviewId": e.existing_review_id},
            )

        await self.ratings.on_review_created(saved.product_id, saved.rating)

        logger.info(
            f"Created review {saved.id}",
            user_id=user_id,
            metadata={"event": "review_created", "review_id": saved.id, "product_id": saved.product_id}
        )

        return ReviewResponse.from_review(saved, is_liked=False)

    async def find_one(self, review_id: str, include_unpublished: bool = False) -> Review:
        """Get a review; unless ``include_unpublished`` only published ones are found"""
        review = await self.reviews.find_by_id(review_id)
        if review is None:
            raise NotFoundError()
        if not include_unpublished and review.status is not ReviewStatus.PUBLISHED:
            raise NotFoundError()
        return review

    async def get_public_review(self, review_id: str, user_id: Optional[str] = None) -> ReviewResponse:
        """
        Published reviews are visible to everyone. The author may also read
        their own hidden review; anything else reads as not found.
        """
        review = await self.find_one(review_id, include_unpublished=True)
        if review.status is not ReviewStatus.PUBLISHED:
            if review.status is ReviewStatus.DELETED or review.user_id != user_id:
                raise NotFoundError()

        is_liked = await self.likes.exists(review_id, user_id) if user_id else False
        return ReviewResponse.from_review(review, is_liked)

    async def update(self, review_id: str, user_id: str, data: ReviewUpdate) -> ReviewResponse:
        """Owner-only edit of a published review"""
        review = await self.find_one(review_id, include_unpublished=True)
        self._check_can_edit(review, user_id)

        changes = data.changes()
        if not changes:
            is_liked = await self.likes.exists(review_id, user_id)
            return ReviewResponse.from_review(review, is_liked)

        result = await self.reviews.apply_patch(review_id, changes)
        if result is None:
            # Status changed between the read and the guarded write
            current = await self.find_one(review_id, include_unpublished=True)
            self._check_can_edit(current, user_id)
            raise NotFoundError()
        before, after = result

        if before.status.counts_toward_rating and before.rating != after.rating:
            await self.ratings.on_review_rating_changed(after.product_id, before.rating, after.rating)

        logger.info(
            f"Updated review {review_id}",
            user_id=user_id,
            metadata={"event": "review_updated", "review_id": review_id, "fields": sorted(changes)}
        )

        is_liked = await self.likes.exists(review_id, user_id)
        return ReviewResponse.from_review(after, is_liked)

    async def remove(self, review_id: str, user_id: str, is_admin: bool = False) -> ReviewResponse:
        """
        Soft delete by the author or an admin. The rating snapshot is only
        adjusted if the review was published when the delete landed.
        """
        review = await self.find_one(review_id, include_unpublished=True)
        is_owner = review.user_id == user_id

        if not is_owner and not is_admin:
            if review.status is not ReviewStatus.PUBLISHED:
                raise NotFoundError()
            raise ForbiddenError("You can only delete your own reviews")

        result = None
        if review.status.can_transition_to(ReviewStatus.DELETED):
            result = await self.reviews.mark_deleted(review_id)

        if result is None:
            # Already deleted: nothing to transition, nothing to uncount
            deleted = review.model_copy(update={"status": ReviewStatus.DELETED})
        else:
            before, deleted = result
            if before.status.counts_toward_rating:
                await self.ratings.on_review_unpublished(before.product_id, before.rating)

        logger.info(
            f"Deleted review {review_id}",
            user_id=user_id,
            metadata={
                "event": "review_deleted",
                "review_id": review_id,
                "by_admin": is_admin and not is_owner,
                "already_deleted": result is None,
            }
        )

        is_liked = await self.likes.exists(review_id, user_id)
        return ReviewResponse.from_review(deleted, is_liked)

    async def toggle_like(self, review_id: str, user_id: str) -> ReviewResponse:
        """
        Like, or unlike if already liked. The like record decides; the counter
        follows with an atomic increment or a guarded decrement.
        """
        review = await self.find_one(review_id, include_unpublished=True)
        if not review.status.is_likeable:
            raise ForbiddenError(f"Cannot like a {review.status.value} review")

        if await self.likes.add(review_id, user_id):
            await self.reviews.increment_likes(review_id)
            is_liked = True
        else:
            if await self.likes.remove(review_id, user_id):
                await self.reviews.decrement_likes(review_id)
            is_liked = False

        # Read back so concurrent toggles by other users are reflected
        refreshed = await self.reviews.find_by_id(review_id)
        if refreshed is None:
            raise NotFoundError()

        logger.info(
            f"Toggled like on review {review_id}",
            user_id=user_id,
            metadata={
                "event": "review_like_toggled",
                "review_id": review_id,
                "is_liked": is_liked,
                "likes_count": refreshed.likes_count,
            }
        )

        return ReviewResponse.from_review(refreshed, is_liked)

    async def find_by_product_id(self, product_id: str, user_id: Optional[str] = None) -> List[ReviewResponse]:
        """All published reviews for a product, newest first"""
        reviews = await self.reviews.find_published(product_id, get_sort_options(ReviewSortBy.NEWEST))
        return await self._to_responses(reviews, user_id)

    async def find_by_product_id_with_pagination(
        self,
        product_id: str,
        page: int = 1,
        page_size: int = None,
        user_id: Optional[str] = None,
        sort_by: ReviewSortBy = ReviewSortBy.NEWEST,
        rating_filter: Optional[int] = None,
    ) -> ReviewsPaginatedResponse:
        """
        One page of published reviews plus a live summary. The summary is
        computed from the reviews themselves, never from the product snapshot.
        """
        if page_size is None:
            page_size = config.review_page_size_default
        page = max(page, 1)
        page_size = min(max(page_size, 1), config.review_page_size_max)
        skip = (page - 1) * page_size

        reviews, total, summary = await asyncio.gather(
            self.reviews.find_published(
                product_id, get_sort_options(sort_by), skip=skip, limit=page_size, rating=rating_filter
            ),
            self.reviews.count_published(product_id, rating=rating_filter),
            self.get_reviews_summary(product_id),
        )

        items = await self._to_responses(reviews, user_id)

        logger.info(
            f"Fetched {len(items)} reviews for product {product_id}",
            metadata={
                "event": "list_reviews",
                "product_id": product_id,
                "page": page,
                "page_size": page_size,
                "total": total,
                "sort_by": sort_by.value,
                "rating": rating_filter,
            }
        )

        return ReviewsPaginatedResponse(
            items=items,
            page=page,
            page_size=page_size,
            total=total,
            summary=summary,
        )

    async def get_reviews_summary(self, product_id: str) -> ReviewsSummary:
        """Authoritative aggregate over the product's published reviews"""
        rows = await self.reviews.summarize_published(product_id)
        snapshot = build_rating_snapshot(rows)
        return ReviewsSummary(
            avg=snapshot.avg,
            count=snapshot.count,
            distribution=snapshot.distribution.as_dict(),
        )

    async def get_reviews_count(self, product_id: str) -> int:
        return await self.reviews.count_published(product_id)

    async def get_user_review_for_product(self, product_id: str, user_id: str) -> Optional[ReviewResponse]:
        """The caller's active (published or hidden) review, used for the edit flow"""
        review = await self.reviews.find_active_for_user(product_id, user_id)
        if review is None:
            return None
        is_liked = await self.likes.exists(review.id, user_id)
        return ReviewResponse.from_review(review, is_liked)

    async def _to_responses(self, reviews: List[Review], user_id: Optional[str]) -> List[ReviewResponse]:
        liked = await self.likes.liked_review_ids([r.id for r in reviews], user_id) if user_id else set()
        return [ReviewResponse.from_review(r, r.id in liked) for r in reviews]

    @staticmethod
    def _check_can_edit(review: Review, user_id: str) -> None:
        if review.user_id != user_id:
            # Other users' unpublished reviews read as missing
            if review.status is not ReviewStatus.PUBLISHED:
                raise NotFoundError()
            raise ForbiddenError("You can only edit your own reviews")
        if not review.status.is_editable:
            raise ForbiddenError(EDIT_FORBIDDEN_MESSAGES.get(review.status, "Cannot edit this review"))
