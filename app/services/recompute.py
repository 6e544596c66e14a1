"""
Offline repair jobs for denormalized counters.

Both jobs rebuild a cached value from its source of truth and overwrite it
per document. They are idempotent and safe to run against live traffic: each
write is a single independent update.
"""

from typing import List

from pydantic import BaseModel, Field

from app.core.logger import logger
from app.models.rating import build_rating_snapshot
from app.repositories.product import ProductRatingRepository
from app.repositories.review import ReviewRepository
from app.repositories.review_like import ReviewLikeRepository
from app.services.rating import ProductRatingService


class RecomputeReport(BaseModel):
    """Outcome of a repair run"""
    processed: int = 0
    changed: int = 0
    changed_ids: List[str] = Field(default_factory=list)


class RatingRecomputeJob:
    """Rebuilds every product's ``ratingStats`` from its published reviews"""

    def __init__(
        self,
        products: ProductRatingRepository,
        reviews: ReviewRepository,
        ratings: ProductRatingService,
    ):
        self.products = products
        self.reviews = reviews
        self.ratings = ratings

    async def recompute_product(self, product_id: str) -> bool:
        """Overwrite one product's snapshot; returns whether it had drifted"""
        rows = await self.reviews.summarize_published(product_id)
        snapshot = build_rating_snapshot(rows)

        current = await self.products.get_rating_snapshot(product_id)
        drifted = current is None or current.model_dump(exclude={"updated_at"}) != snapshot.model_dump(
            exclude={"updated_at"}
        )

        await self.ratings.set_rating_snapshot(product_id, snapshot)
        return drifted

    async def run(self) -> RecomputeReport:
        report = RecomputeReport()

        async for product_id in self.products.iter_product_ids():
            report.processed += 1
            if await self.recompute_product(product_id):
                report.changed += 1
                report.changed_ids.append(product_id)

        logger.info(
            f"Recomputed rating snapshots for {report.processed} products",
            metadata={"event": "rating_recompute_finished", "processed": report.processed, "changed": report.changed}
        )
        return report


class LikeCountRepairJob:
    """Resets each review's ``likesCount`` to the number of its like records"""

    def __init__(self, reviews: ReviewRepository, likes: ReviewLikeRepository):
        self.reviews = reviews
        self.likes = likes

    async def repair_review(self, review_id: str) -> bool:
        """Recount one review; returns whether its counter was corrected"""
        actual = await self.likes.count_for_review(review_id)
        repaired = await self.reviews.set_likes_count(review_id, actual)
        if repaired:
            logger.warning(
                f"Repaired likesCount on review {review_id}",
                metadata={"event": "likes_count_repaired", "review_id": review_id, "actual": actual}
            )
        return repaired

    async def run(self) -> RecomputeReport:
        report = RecomputeReport()
        actual_counts = await self.likes.counts_by_review()

        async for review_id, stored in self.reviews.iter_likes_counts():
            report.processed += 1
            actual = actual_counts.get(review_id, 0)
            if stored != actual and await self.reviews.set_likes_count(review_id, actual):
                report.changed += 1
                report.changed_ids.append(review_id)
                logger.warning(
                    f"Repaired likesCount on review {review_id}",
                    metadata={"event": "likes_count_repaired", "review_id": review_id, "stored": stored, "actual": actual}
                )

        logger.info(
            f"Checked like counters on {report.processed} reviews",
            metadata={"event": "likes_repair_finished", "processed": report.processed, "changed": report.changed}
        )
        return report
