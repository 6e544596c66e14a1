"""
Product rating aggregator.

Keeps ``Product.ratingStats`` in step with the set of published reviews
through O(1) deltas instead of recomputation. Each public method is two
sequential writes: an atomic ``$inc`` delta, then an average recompute from
the just-updated sum/count. The average may briefly lag a concurrent delta;
it is display-only and the recompute job repairs any drift.
"""

from typing import Optional

from app.core.errors import NotFoundError
from app.core.logger import logger
from app.models.rating import RatingSnapshot, round_average
from app.repositories.product import ProductRatingRepository


class ProductRatingService:
    """Applies review lifecycle deltas to product rating snapshots"""

    def __init__(self, repository: ProductRatingRepository):
        self.repository = repository

    async def on_review_created(self, product_id: str, rating: int) -> None:
        await self.repository.increment_rating_stats(product_id, {
            "sum": rating,
            "count": 1,
            f"distribution.{rating}": 1,
        })
        await self._update_average(product_id)

        logger.info(
            f"Rating snapshot updated for product {product_id}",
            metadata={"event": "rating_review_created", "product_id": product_id, "rating": rating}
        )

    async def on_review_published(self, product_id: str, rating: int) -> None:
        """A hidden review returned to published; counted again like a new one"""
        await self.on_review_created(product_id, rating)

    async def on_review_rating_changed(self, product_id: str, old_rating: int, new_rating: int) -> None:
        if old_rating == new_rating:
            return

        await self.repository.increment_rating_stats(product_id, {
            "sum": new_rating - old_rating,
            f"distribution.{old_rating}": -1,
            f"distribution.{new_rating}": 1,
        })
        await self._update_average(product_id)

        logger.info(
            f"Rating snapshot updated for product {product_id}",
            metadata={
                "event": "rating_review_changed",
                "product_id": product_id,
                "old_rating": old_rating,
                "new_rating": new_rating,
            }
        )

    async def on_review_unpublished(self, product_id: str, rating: int) -> None:
        applied = await self.repository.increment_rating_stats(
            product_id,
            {"sum": -rating, "count": -1, f"distribution.{rating}": -1},
            require_positive_count=True,
        )
        if not applied:
            logger.warning(
                f"Skipped rating decrement for product {product_id}: count already 0 or product missing",
                metadata={"event": "rating_decrement_skipped", "product_id": product_id, "rating": rating}
            )

        await self._update_average(product_id)

        logger.info(
            f"Rating snapshot updated for product {product_id}",
            metadata={"event": "rating_review_unpublished", "product_id": product_id, "rating": rating}
        )

    async def set_rating_snapshot(self, product_id: str, snapshot: RatingSnapshot) -> None:
        """Unconditional overwrite, used by the recompute job"""
        matched = await self.repository.set_rating_snapshot(product_id, snapshot)
        if not matched:
            raise NotFoundError(f"Product {product_id} not found")

        logger.info(
            f"Rating snapshot set for product {product_id}",
            metadata={
                "event": "rating_snapshot_set",
                "product_id": product_id,
                "count": snapshot.count,
                "avg": snapshot.avg,
            }
        )

    async def get_rating_snapshot(self, product_id: str) -> RatingSnapshot:
        snapshot: Optional[RatingSnapshot] = await self.repository.get_rating_snapshot(product_id)
        if snapshot is None:
            raise NotFoundError(f"Product {product_id} not found")
        return snapshot

    async def _update_average(self, product_id: str) -> None:
        totals = await self.repository.get_rating_totals(product_id)
        if totals is None:
            logger.warning(
                f"Cannot recompute rating average, product {product_id} not found",
                metadata={"event": "rating_product_missing", "product_id": product_id}
            )
            raise NotFoundError(f"Product {product_id} not found")

        avg = round_average(totals["sum"], totals["count"])
        await self.repository.set_rating_average(product_id, avg)
