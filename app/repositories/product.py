"""
Product repository limited to the embedded ``ratingStats`` snapshot.

The catalog itself is owned elsewhere; this repository only patches and reads
the rating fields of existing product documents.
"""

from datetime import datetime, timezone
from typing import AsyncIterator, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import PyMongoError

from app.core.errors import DatabaseError
from app.core.logger import logger
from app.models.rating import RatingSnapshot
from app.models.review import to_object_id


class ProductRatingRepository:
    """Repository for product rating snapshot operations"""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def increment_rating_stats(
        self,
        product_id: str,
        increments: Dict[str, int],
        require_positive_count: bool = False,
    ) -> bool:
        """
        Atomically ``$inc`` fields under ``ratingStats``.

        With ``require_positive_count`` the ``count > 0`` guard is part of the
        update filter. Returns whether a product matched.
        """
        query = {"_id": to_object_id(product_id)}
        if require_positive_count:
            query["ratingStats.count"] = {"$gt": 0}

        try:
            result = await self.collection.update_one(
                query,
                {"$inc": {f"ratingStats.{field}": value for field, value in increments.items()}},
            )
        except PyMongoError as e:
            logger.error("MongoDB error updating rating stats", error=e)
            raise DatabaseError("Database error during rating update")
        return result.matched_count > 0

    async def get_rating_totals(self, product_id: str) -> Optional[Dict[str, int]]:
        """``{"sum", "count"}`` of the snapshot, or None when the product is missing"""
        try:
            doc = await self.collection.find_one(
                {"_id": to_object_id(product_id)},
                {"ratingStats.sum": 1, "ratingStats.count": 1},
            )
        except PyMongoError as e:
            logger.error("MongoDB error reading rating stats", error=e)
            raise DatabaseError("Database error during rating retrieval")
        if doc is None:
            return None
        stats = doc.get("ratingStats") or {}
        return {"sum": stats.get("sum", 0), "count": stats.get("count", 0)}

    async def set_rating_average(self, product_id: str, avg: float) -> bool:
        try:
            result = await self.collection.update_one(
                {"_id": to_object_id(product_id)},
                {"$set": {
                    "ratingStats.avg": avg,
                    "rating": avg,  # legacy field used by catalog sorting
                    "ratingStats.updatedAt": datetime.now(timezone.utc),
                }},
            )
        except PyMongoError as e:
            logger.error("MongoDB error updating rating average", error=e)
            raise DatabaseError("Database error during rating update")
        return result.matched_count > 0

    async def set_rating_snapshot(self, product_id: str, snapshot: RatingSnapshot) -> bool:
        """Unconditional overwrite of ``ratingStats`` and the legacy ``rating``"""
        try:
            result = await self.collection.update_one(
                {"_id": to_object_id(product_id)},
                {"$set": {"rating": snapshot.avg, "ratingStats": snapshot.to_document()}},
            )
        except PyMongoError as e:
            logger.error("MongoDB error setting rating snapshot", error=e)
            raise DatabaseError("Database error during rating update")
        return result.matched_count > 0

    async def get_rating_snapshot(self, product_id: str) -> Optional[RatingSnapshot]:
        try:
            doc = await self.collection.find_one({"_id": to_object_id(product_id)}, {"ratingStats": 1})
        except PyMongoError as e:
            logger.error("MongoDB error reading rating snapshot", error=e)
            raise DatabaseError("Database error during rating retrieval")
        if doc is None:
            return None
        return RatingSnapshot.model_validate(doc.get("ratingStats") or {})

    async def iter_product_ids(self) -> AsyncIterator[str]:
        cursor = self.collection.find({}, {"_id": 1})
        async for doc in cursor:
            yield str(doc["_id"])
