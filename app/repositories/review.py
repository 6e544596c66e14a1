"""
Review repository for data access layer following Repository pattern
"""

from datetime import datetime, timezone
from typing import AsyncIterator, Dict, List, Optional, Sequence, Tuple

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.core.errors import DatabaseError
from app.core.logger import logger
from app.models.review import Review, ReviewStatus, to_object_id

SortSpec = Sequence[Tuple[str, int]]


class DuplicateReviewError(Exception):
    """The (product, user) pair already has an active review"""

    def __init__(self, existing_review_id: Optional[str]):
        self.existing_review_id = existing_review_id
        super().__init__(f"Active review already exists: {existing_review_id}")


class ReviewRepository:
    """Repository for review data access operations"""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    @staticmethod
    def _published_filter(product_id: str, rating: Optional[int] = None) -> dict:
        query = {"productId": to_object_id(product_id), "status": ReviewStatus.PUBLISHED.value}
        if rating:
            query["rating"] = rating
        return query

    async def insert(self, review: Review) -> Review:
        """
        Insert a new review. The partial unique index on (productId, userId)
        rejects a second active review; that surfaces as DuplicateReviewError.
        """
        doc = review.to_document()
        try:
            result = await self.collection.insert_one(doc)
        except DuplicateKeyError:
            existing = await self.find_active_for_user(review.product_id, review.user_id)
            raise DuplicateReviewError(existing.id if existing else None)
        except PyMongoError as e:
            logger.error("MongoDB error creating review", error=e)
            raise DatabaseError("Database error during review creation")

        return review.model_copy(update={"id": str(result.inserted_id)})

    async def find_by_id(self, review_id: str) -> Optional[Review]:
        """Get review by ID regardless of status"""
        if not ObjectId.is_valid(review_id):
            return None
        try:
            doc = await self.collection.find_one({"_id": ObjectId(review_id)})
        except PyMongoError as e:
            logger.error("MongoDB error getting review", error=e)
            raise DatabaseError("Database error during review retrieval")
        return Review.from_document(doc) if doc else None

    async def find_active_for_user(self, product_id: str, user_id: str) -> Optional[Review]:
        """The user's published or hidden review for a product, if any"""
        try:
            doc = await self.collection.find_one({
                "productId": to_object_id(product_id),
                "userId": to_object_id(user_id),
                "status": {"$in": [s.value for s in ReviewStatus.counted_for_uniqueness()]},
            })
        except PyMongoError as e:
            logger.error("MongoDB error getting user review", error=e)
            raise DatabaseError("Database error during review retrieval")
        return Review.from_document(doc) if doc else None

    async def apply_patch(self, review_id: str, changes: dict) -> Optional[Tuple[Review, Review]]:
        """
        Apply ``changes`` to a published review.

        Returns (before, after), or None when the review is missing or no
        longer published at write time.
        """
        now = datetime.now(timezone.utc)
        try:
            doc = await self.collection.find_one_and_update(
                {"_id": ObjectId(review_id), "status": ReviewStatus.PUBLISHED.value},
                {"$set": {**changes, "updatedAt": now}},
                return_document=ReturnDocument.BEFORE,
            )
        except PyMongoError as e:
            logger.error("MongoDB error updating review", error=e)
            raise DatabaseError("Database error during review update")

        if doc is None:
            return None
        before = Review.from_document(doc)
        after = before.model_copy(update={**changes, "updated_at": now})
        return before, after

    async def mark_deleted(self, review_id: str) -> Optional[Tuple[Review, Review]]:
        """
        Soft delete. Returns (before, after) where ``before`` is the review as
        it was at the instant of the transition, or None when it was already
        deleted (or never existed).
        """
        now = datetime.now(timezone.utc)
        try:
            doc = await self.collection.find_one_and_update(
                {
                    "_id": ObjectId(review_id),
                    "status": {"$in": [s.value for s in ReviewStatus.sources_of(ReviewStatus.DELETED)]},
                },
                {"$set": {"status": ReviewStatus.DELETED.value, "updatedAt": now}},
                return_document=ReturnDocument.BEFORE,
            )
        except PyMongoError as e:
            logger.error("MongoDB error deleting review", error=e)
            raise DatabaseError("Database error during review deletion")

        if doc is None:
            return None
        before = Review.from_document(doc)
        after = before.model_copy(update={"status": ReviewStatus.DELETED, "updated_at": now})
        return before, after

    async def increment_likes(self, review_id: str) -> bool:
        try:
            result = await self.collection.update_one(
                {"_id": ObjectId(review_id)},
                {"$inc": {"likesCount": 1}},
            )
        except PyMongoError as e:
            logger.error("MongoDB error incrementing likes", error=e)
            raise DatabaseError("Database error during like update")
        return result.modified_count > 0

    async def decrement_likes(self, review_id: str) -> bool:
        """Decrement guarded by likesCount > 0 in the same write"""
        try:
            result = await self.collection.update_one(
                {"_id": ObjectId(review_id), "likesCount": {"$gt": 0}},
                {"$inc": {"likesCount": -1}},
            )
        except PyMongoError as e:
            logger.error("MongoDB error decrementing likes", error=e)
            raise DatabaseError("Database error during like update")
        return result.modified_count > 0

    async def set_likes_count(self, review_id: str, likes_count: int) -> bool:
        """Overwrite the counter; returns True only if the stored value changed"""
        try:
            result = await self.collection.update_one(
                {"_id": ObjectId(review_id), "likesCount": {"$ne": likes_count}},
                {"$set": {"likesCount": likes_count}},
            )
        except PyMongoError as e:
            logger.error("MongoDB error setting likes count", error=e)
            raise DatabaseError("Database error during like count repair")
        return result.modified_count > 0

    async def find_published(
        self,
        product_id: str,
        sort: SortSpec,
        skip: int = 0,
        limit: Optional[int] = None,
        rating: Optional[int] = None,
    ) -> List[Review]:
        """Published reviews for a product in the given order"""
        try:
            cursor = self.collection.find(self._published_filter(product_id, rating)).sort(list(sort)).skip(skip)
            if limit is not None:
                cursor = cursor.limit(limit)
            docs = await cursor.to_list(length=limit)
        except PyMongoError as e:
            logger.error("MongoDB error listing reviews", error=e)
            raise DatabaseError("Database error during review listing")
        return [Review.from_document(doc) for doc in docs]

    async def count_published(self, product_id: str, rating: Optional[int] = None) -> int:
        try:
            return await self.collection.count_documents(self._published_filter(product_id, rating))
        except PyMongoError as e:
            logger.error("MongoDB error counting reviews", error=e)
            raise DatabaseError("Database error during review count")

    async def summarize_published(self, product_id: str) -> List[Dict[str, int]]:
        """Per-star rows ``{"rating", "count", "sum"}`` over published reviews"""
        pipeline = [
            {"$match": self._published_filter(product_id)},
            {"$group": {
                "_id": "$rating",
                "count": {"$sum": 1},
                "sum": {"$sum": "$rating"},
            }},
        ]
        try:
            rows = await self.collection.aggregate(pipeline).to_list(length=None)
        except PyMongoError as e:
            logger.error("MongoDB error aggregating reviews", error=e)
            raise DatabaseError("Database error during review summary")
        return [{"rating": row["_id"], "count": row["count"], "sum": row["sum"]} for row in rows]

    async def iter_likes_counts(self) -> AsyncIterator[Tuple[str, int]]:
        """(review id, stored likesCount) for every review"""
        cursor = self.collection.find({}, {"likesCount": 1})
        async for doc in cursor:
            yield str(doc["_id"]), doc.get("likesCount", 0)
